import logging
import threading
import warnings

import pytest
from fontTools.feaLib.error import FeatureLibError
from fontTools.feaLib.location import FeatureLibLocation

from shaperfont.diagnostics import (
    Diagnostic,
    DiagnosticTranslator,
    LogCapture,
    Message,
    byteSpanAt,
    diagnosticFromFeatureLibError,
    diagnosticsFromLogRecords,
    diagnosticsFromWarnings,
    utf16Offset,
)

EMOJI = "\U0001F600"


class Utf16OffsetTest:
    def test_ascii(self):
        source = "feature kern { pos A V -50; } kern;"
        for offset in range(len(source) + 1):
            assert utf16Offset(source, offset) == offset

    def test_astral_character_counts_twice(self):
        source = f"# {EMOJI}\nfeature"
        assert len(EMOJI.encode("utf-8")) == 4
        # '#', ' ', emoji
        assert utf16Offset(source, 6) == 4
        assert utf16Offset(source, 7) == 5

    def test_bmp_multibyte(self):
        source = "# é€\n"
        # é is 2 bytes, € is 3 bytes, both one UTF-16 code unit
        assert utf16Offset(source, 2 + 2 + 3) == 4

    def test_not_on_boundary(self):
        with pytest.raises(ValueError):
            utf16Offset(f"a{EMOJI}b", 2)

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            utf16Offset("abc", 4)
        with pytest.raises(ValueError):
            utf16Offset("abc", -1)


class DiagnosticTranslatorTest:
    def test_translate(self):
        source = f"# {EMOJI}\nlanguagesystem"
        translator = DiagnosticTranslator({"features.fea": source})
        (message,) = translator.translate(
            [Diagnostic("ERROR", "oops", "features.fea", (7, 21))]
        )
        assert message == Message("error", "oops", (5, 19))

    def test_preserves_order(self):
        translator = DiagnosticTranslator({"a.fea": "abc"})
        messages = translator.translate(
            [
                Diagnostic("Warning", "first", "a.fea", (0, 1)),
                Diagnostic("error", "second", "a.fea", (1, 2)),
                Diagnostic("WARNING", "third"),
            ]
        )
        assert [(m.level, m.text) for m in messages] == [
            ("warning", "first"),
            ("error", "second"),
            ("warning", "third"),
        ]
        assert messages[2].span is None

    def test_unknown_file_passes_offsets_through(self):
        translator = DiagnosticTranslator({})
        (message,) = translator.translate(
            [Diagnostic("error", "oops", "other.fea", (10, 12))]
        )
        assert message.span == (10, 12)

    def test_bad_offset_passes_through(self):
        source = f"a{EMOJI}b"
        translator = DiagnosticTranslator({"a.fea": source})
        (message,) = translator.translate(
            [Diagnostic("error", "oops", "a.fea", (2, 5))]
        )
        assert message.span == (2, 3)

    def test_str(self):
        assert str(Message("warning", "hello", (0, 1))) == "warning: hello"


def test_byteSpanAt():
    source = "feature kern {\n    pos A V -50\n} kern;\n"
    start, end = byteSpanAt(source, 2, 5)
    assert source.encode("utf-8")[start:end] == b"pos"


def test_byteSpanAt_multibyte():
    source = f"# {EMOJI}\r\nfoo bar"
    start, end = byteSpanAt(source, 2, 5)
    assert source.encode("utf-8")[start:end] == b"bar"


def test_byteSpanAt_out_of_range():
    assert byteSpanAt("abc", 3, 1) is None
    assert byteSpanAt("abc", 1, 0) is None


def test_diagnosticFromFeatureLibError():
    source = "languagesystem DFLT dflt;\nfeature kern { pos A B; } kern;\n"
    error = FeatureLibError(
        "Unknown glyph", FeatureLibLocation("features.fea", 2, 22)
    )
    diagnostic = diagnosticFromFeatureLibError(error, {"features.fea": source})
    assert diagnostic.level == "error"
    assert diagnostic.message == "Unknown glyph"
    assert diagnostic.fileName == "features.fea"
    start, end = diagnostic.span
    assert source.encode("utf-8")[start:end] == b"B;"


def test_diagnosticFromFeatureLibError_no_location():
    diagnostic = diagnosticFromFeatureLibError(FeatureLibError("oops", None), {})
    assert diagnostic == Diagnostic("error", "oops")


def _logRecord(level, msg, args=()):
    return logging.LogRecord(
        "fontTools.feaLib.builder", level, __file__, 1, msg, args, None
    )


def test_diagnosticsFromLogRecords():
    record = _logRecord(logging.WARNING, "%s: bad", ("x",))
    assert diagnosticsFromLogRecords([record]) == [Diagnostic("warning", "x: bad")]


@pytest.mark.parametrize("level", [logging.WARNING, logging.ERROR, logging.CRITICAL])
def test_diagnosticsFromLogRecords_always_warnings(level):
    (diagnostic,) = diagnosticsFromLogRecords([_logRecord(level, "not fatal")])
    assert diagnostic.level == "warning"


def test_diagnosticsFromWarnings():
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        warnings.warn("Feature liga has not been defined")
        warnings.warn("old", DeprecationWarning)
    assert diagnosticsFromWarnings(caught) == [
        Diagnostic("warning", "Feature liga has not been defined")
    ]


class LogCaptureTest:
    def test_captures_warnings(self):
        log = logging.getLogger("fontTools.feaLib.builder")
        with LogCapture(["fontTools"]) as capture:
            log.warning("hello %s", "world")
            log.info("ignored")
        log.warning("after")
        assert [r.getMessage() for r in capture.records] == ["hello world"]

    def test_ignores_other_threads(self):
        log = logging.getLogger("fontTools.feaLib.builder")
        with LogCapture(["fontTools"]) as capture:
            thread = threading.Thread(target=log.warning, args=("elsewhere",))
            thread.start()
            thread.join()
            log.warning("here")
        assert [r.getMessage() for r in capture.records] == ["here"]

    def test_handler_removed(self):
        log = logging.getLogger("shaperfont")
        with LogCapture(["shaperfont"]) as capture:
            assert capture in log.handlers
        assert capture not in log.handlers
