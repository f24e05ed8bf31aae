"""Compilation diagnostics, with spans converted for UTF-16 string hosts.

feaLib reports errors at a (line, column) position; these are turned into
Diagnostic objects carrying a span of UTF-8 byte offsets into the source,
which DiagnosticTranslator then converts into UTF-16 code unit offsets,
the way JavaScript strings are indexed.
"""
from __future__ import annotations

import logging
import re
import threading
import warnings
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from fontTools.feaLib.error import FeatureLibError

logger = logging.getLogger(__name__)

Span = Tuple[int, int]

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
_TOKEN_RE = re.compile(r"\S+")


@dataclass(frozen=True)
class Diagnostic:
    level: str
    message: str
    fileName: Optional[str] = None
    # start, end byte offsets in the UTF-8 encoded source
    span: Optional[Span] = None


@dataclass(frozen=True)
class Message:
    level: str
    text: str
    # start, end offsets in UTF-16 code units
    span: Optional[Span] = None

    def __str__(self):
        return f"{self.level}: {self.text}"


def utf16Offset(source: str, byteOffset: int) -> int:
    """Convert an offset into the UTF-8 encoding of `source` into an offset
    in UTF-16 code units.

    Raise ValueError if the offset is out of range or falls inside the
    encoding of a character.
    """
    data = source.encode("utf-8")
    if not 0 <= byteOffset <= len(data):
        raise ValueError(f"offset {byteOffset} out of range 0..{len(data)}")
    prefix = data[:byteOffset].decode("utf-8")
    return sum(2 if ord(c) > 0xFFFF else 1 for c in prefix)


class DiagnosticTranslator:
    """Convert Diagnostics into Messages for a host indexing strings by
    UTF-16 code units.

    `sources` maps file names to their text. A diagnostic whose file can't
    be found, or whose offsets don't fall on character boundaries, keeps
    its byte offsets unchanged.
    """

    def __init__(self, sources: Mapping[str, str]):
        self.sources = dict(sources)

    def sourceText(self, fileName: Optional[str]) -> str:
        return self.sources.get(fileName, "")

    def convertOffset(self, source: str, offset: int) -> int:
        try:
            return utf16Offset(source, offset)
        except ValueError as e:
            logger.debug("Can't convert offset %d: %s", offset, e)
            return offset

    def translateOne(self, diagnostic: Diagnostic) -> Message:
        span = diagnostic.span
        if span is not None:
            source = self.sourceText(diagnostic.fileName)
            start, end = span
            span = (self.convertOffset(source, start), self.convertOffset(source, end))
        return Message(diagnostic.level.lower(), diagnostic.message, span)

    def translate(self, diagnostics: Iterable[Diagnostic]) -> List[Message]:
        return [self.translateOne(diagnostic) for diagnostic in diagnostics]


def byteSpanAt(source: str, line: int, column: int) -> Optional[Span]:
    """Return the UTF-8 byte span of the token starting at the 1-based
    `line` and `column` (counted in characters) in `source`.
    """
    lineStarts = [0] + [m.end() for m in _LINE_BREAK_RE.finditer(source)]
    if not 0 < line <= len(lineStarts) or column < 1:
        return None
    start = min(lineStarts[line - 1] + column - 1, len(source))
    m = _TOKEN_RE.match(source, start)
    end = m.end() if m else start
    startByte = len(source[:start].encode("utf-8"))
    return startByte, startByte + len(source[start:end].encode("utf-8"))


def diagnosticFromFeatureLibError(
    error: FeatureLibError, sources: Mapping[str, str]
) -> Diagnostic:
    message = error.args[0] if error.args else str(error)
    location = error.location
    if not location:
        return Diagnostic("error", str(message))
    fileName, line, column = location[0], location[1], location[2]
    span = None
    if fileName in sources and line is not None and column is not None:
        span = byteSpanAt(sources[fileName], line, column)
    return Diagnostic("error", str(message), fileName, span)


def diagnosticsFromLogRecords(records: Iterable[logging.LogRecord]) -> List[Diagnostic]:
    """Logged records never abort a compilation (fatal problems are raised
    as exceptions), so they are all reported as warnings, whatever their
    logging level.
    """
    return [Diagnostic("warning", record.getMessage()) for record in records]


def diagnosticsFromWarnings(
    caught: Iterable[warnings.WarningMessage],
) -> List[Diagnostic]:
    return [
        Diagnostic("warning", str(w.message))
        for w in caught
        if issubclass(w.category, UserWarning)
    ]


class LogCapture(logging.Handler):
    """Collect the records logged by the current thread on some loggers.

    Used as a context manager around a compilation; records from other
    threads are ignored so that concurrent compilations don't see each
    other's warnings.
    """

    def __init__(self, loggerNames: Sequence[str], level=logging.WARNING):
        super().__init__(level=level)
        self.loggers = [logging.getLogger(name) for name in loggerNames]
        self.thread = threading.get_ident()
        self.records = []

    def __enter__(self):
        for log in self.loggers:
            log.addHandler(self)
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        for log in self.loggers:
            log.removeHandler(self)

    def emit(self, record):
        if record.thread == self.thread:
            self.records.append(record)
