from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from io import BytesIO
from typing import IO, List, Optional, Sequence, Tuple

from fontTools.feaLib.error import FeatureLibError
from fontTools.fontBuilder import FontBuilder
from fontTools.misc.loggingTools import Timer

from shaperfont.axisSpace import AxisSpace
from shaperfont.axisTableBuilder import addAxisTable
from shaperfont.constants import CAPTURED_LOGGERS, FEATURES_FILENAME, MAX_DIAGNOSTICS
from shaperfont.diagnostics import (
    Diagnostic,
    DiagnosticTranslator,
    LogCapture,
    Message,
    diagnosticFromFeatureLibError,
    diagnosticsFromLogRecords,
    diagnosticsFromWarnings,
)
from shaperfont.errors import Error
from shaperfont.featureCompiler import (
    VariableFeatureBuilder,
    parseFeatureSource,
    tagInsertMarkers,
)
from shaperfont.metricResolver import MetricResolver


@dataclass(frozen=True)
class InsertMarker:
    tag: str
    lookupId: int


@dataclass
class CompilationResult:
    fontData: Optional[bytes] = None
    insertMarkers: List[InsertMarker] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.fontData is not None

    def formatMessages(self) -> str:
        return "\n".join(str(message) for message in self.messages)


@dataclass
class ShaperFontCompiler:
    """Compile feature source into a minimal font for shaping.

    A compiler can be reused; nothing is kept from one call of `compile`
    to the next.
    """

    unitsPerEm: int = 1000
    maxDiagnostics: int = MAX_DIAGNOSTICS
    sourceName: str = FEATURES_FILENAME
    debugFeatureFile: Optional[IO[str]] = None

    def __post_init__(self):
        if not 16 <= self.unitsPerEm <= 16384:
            raise ValueError(f"unitsPerEm must be in 16..16384: {self.unitsPerEm}")
        self.logger = logging.getLogger("shaperfont")
        self.timer = Timer(logging.getLogger("shaperfont.timer"), level=logging.DEBUG)

    def compile(self, glyphOrder, featureSource, axes=None) -> CompilationResult:
        """Return a CompilationResult; never raises on invalid input data.

        On failure, `fontData` is None and the errors are in `messages`,
        along with any warning emitted before.
        """
        diagnostics = []
        fontData = None
        insertMarkers = []
        with LogCapture(CAPTURED_LOGGERS) as capture, warnings.catch_warnings(
            record=True
        ) as caught:
            warnings.simplefilter("always", UserWarning)
            try:
                fontData, insertMarkers = self._compile(
                    list(glyphOrder), featureSource, axes or ()
                )
            except FeatureLibError as e:
                error = diagnosticFromFeatureLibError(
                    e, {self.sourceName: featureSource}
                )
            except Error as e:
                error = Diagnostic("error", str(e))
            except Exception as e:
                # e.g. values that feaLib accepts but don't fit the binary
                # tables, or malformed axis descriptions
                self.logger.debug("Unexpected error while compiling", exc_info=True)
                error = Diagnostic("error", str(e) or repr(e))
            else:
                error = None
        diagnostics.extend(diagnosticsFromLogRecords(capture.records))
        diagnostics.extend(diagnosticsFromWarnings(caught))
        if error is not None:
            self.logger.debug("Compilation failed: %s", error.message)
            diagnostics.append(error)

        if len(diagnostics) > self.maxDiagnostics:
            self.logger.debug(
                "Dropping %d diagnostics", len(diagnostics) - self.maxDiagnostics
            )
            diagnostics = diagnostics[: self.maxDiagnostics]

        translator = DiagnosticTranslator({self.sourceName: featureSource})
        return CompilationResult(
            fontData=fontData,
            insertMarkers=insertMarkers,
            messages=translator.translate(diagnostics),
        )

    def _compile(
        self, glyphOrder: List[str], featureSource: str, axes: Sequence
    ) -> Tuple[bytes, List[InsertMarker]]:
        axisSpace = AxisSpace(axes)

        fb = FontBuilder(unitsPerEm=self.unitsPerEm)
        fb.setupGlyphOrder(glyphOrder)
        fb.setupNameTable({}, mac=False)
        fb.setupPost(keepGlyphNames=False)
        fb.setupMaxp()
        font = fb.font

        # feaLib needs the axes while compiling variable scalars,
        # condition sets and feature variations
        addAxisTable(font, axisSpace.axes)

        with self.timer("parse feature source"):
            featureFile = parseFeatureSource(featureSource, glyphOrder, self.sourceName)
            tagInsertMarkers(featureFile)
        if self.debugFeatureFile is not None:
            self.debugFeatureFile.write(featureFile.asFea())

        metricResolver = MetricResolver(axisSpace) if axisSpace else None
        builder = VariableFeatureBuilder(font, featureFile, metricResolver)
        with self.timer("build OpenType features"):
            builder.build()

        font["head"].unitsPerEm = self.unitsPerEm

        with self.timer("serialize font"):
            buf = BytesIO()
            font.save(buf)

        insertMarkers = [
            InsertMarker(tag, lookupId)
            for tag, lookupId in sorted(builder.insertMarkers.items())
        ]
        return buf.getvalue(), insertMarkers


def buildShaperFont(
    unitsPerEm: int,
    glyphOrder: Sequence[str],
    featureSource: str,
    axes: Optional[Sequence] = None,
) -> CompilationResult:
    """Compile `featureSource` into a font with the given glyph order.

    *axes* is an optional list of design axes, each either a dict with
    "tag", "minValue", "defaultValue" and "maxValue" keys, or a
    (tag, min, default, max) sequence. If given, an fvar table is added and
    variable values in the feature source are supported.

    Returns a CompilationResult with the binary font data (None if
    compilation failed), the insertion markers sorted by feature tag, and
    the error and warning messages.
    """
    return ShaperFontCompiler(unitsPerEm=unitsPerEm).compile(
        glyphOrder, featureSource, axes
    )
