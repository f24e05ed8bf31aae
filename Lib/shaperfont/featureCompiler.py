from __future__ import annotations

import logging
import re
from io import StringIO
from typing import Iterable, Optional

from fontTools.feaLib import ast
from fontTools.feaLib.builder import Builder
from fontTools.feaLib.error import FeatureLibError
from fontTools.feaLib.parser import Parser
from fontTools.feaLib.variableScalar import VariableScalar
from fontTools.varLib.builder import buildVarDevTable

from shaperfont.constants import (
    FEATURES_FILENAME,
    GPOS_FEATURE_TAGS,
    INSERT_FEATURE_MARKER,
)
from shaperfont.errors import Error
from shaperfont.metricResolver import MetricResolver

logger = logging.getLogger(__name__)

NO_VARIATION_INDEX = 0xFFFFFFFF


def parseFeatureSource(
    featureSource: str,
    glyphNames: Iterable[str] = (),
    sourceName: str = FEATURES_FILENAME,
) -> ast.FeatureFile:
    """Parse feature file text into a feaLib.ast.FeatureFile instance.

    Error locations refer to `sourceName`. include() statements are not
    supported, since there is no directory to resolve them against.
    """
    buf = StringIO(featureSource)
    buf.name = sourceName
    parser = Parser(buf, glyphNames=set(glyphNames), followIncludes=False)
    featureFile = parser.parse()
    for statement in _iterStatements(featureFile):
        if isinstance(statement, ast.IncludeStatement):
            raise FeatureLibError(
                "include() is not supported when compiling from a string: "
                f"{statement.filename!r}",
                statement.location,
            )
    return featureFile


def _iterStatements(block):
    for statement in block.statements:
        yield statement
        if hasattr(statement, "statements"):
            yield from _iterStatements(statement)


class InsertMarkerComment(ast.Comment):
    """An insertion marker comment inside a feature block.

    When built, it records the index of the lookup that automatically
    generated code for the feature should be inserted at.
    """

    def __init__(self, text, featureTag, location=None):
        super().__init__(text, location=location)
        self.featureTag = featureTag

    def build(self, builder):
        builder.addInsertMarker(self.featureTag, self.location)


def tagInsertMarkers(
    featureFile: ast.FeatureFile, pattern: str = INSERT_FEATURE_MARKER
) -> int:
    """Replace insertion marker comments in top-level feature blocks with
    InsertMarkerComment statements. Return the number of markers found.
    """
    regex = re.compile(pattern)
    regexIgnoreCase = re.compile(pattern, re.IGNORECASE)
    count = 0
    # insertion markers can only meaningfully occur in top-level feature blocks
    for block in featureFile.statements:
        if not isinstance(block, ast.FeatureBlock):
            continue
        for i, statement in enumerate(block.statements):
            if not isinstance(statement, ast.Comment):
                continue
            text = statement.text
            if regex.match(text):
                block.statements[i] = InsertMarkerComment(
                    text, block.name, location=statement.location
                )
                count += 1
            elif regexIgnoreCase.match(text):
                logger.warning(
                    "%s: The insertion comment '%s' is miscased "
                    "(search pattern: %s), ignoring it.",
                    statement.location,
                    text.strip(),
                    pattern,
                )
    return count


class VariableFeatureBuilder(Builder):
    """feaLib Builder resolving variable scalars with a MetricResolver.

    Each variable scalar found in the feature file is handed to the
    resolver, which returns the default value and the deltas for the
    non-default masters; these are stored in the GDEF variation store and
    referenced from a VariationIndex device table.

    The builder also keeps track of the insertion markers it meets.
    """

    def __init__(
        self, font, featurefile, metricResolver: Optional[MetricResolver] = None
    ):
        super().__init__(font, featurefile)
        self.metricResolver = metricResolver
        # {featureTag: lookupIndex}
        self.insertMarkers = {}

    def addInsertMarker(self, featureTag, location):
        tableTag = "GPOS" if featureTag in GPOS_FEATURE_TAGS else "GSUB"
        if featureTag in self.insertMarkers:
            logger.warning(
                "%s: Ignoring additional insertion marker in feature '%s'",
                location,
                featureTag,
            )
        else:
            self.insertMarkers[featureTag] = sum(
                1 for lookup in self.lookups_ if lookup.table == tableTag
            )
        # rules following the marker go in a new lookup
        self.cur_lookup_ = None

    def makeVariablePos(self, location, varscalar: VariableScalar):
        if self.metricResolver is None or self.varstorebuilder is None:
            raise FeatureLibError(
                "Can't define a variable scalar in a non-variable font", location
            )

        try:
            default, deltas = self.metricResolver.resolveUserLocations(
                varscalar.values
            )
        except (Error, ValueError) as e:
            raise FeatureLibError(str(e), location) from e

        if not any(delta for _, delta in deltas):
            return default, None

        self.varstorebuilder.setSupports([region for region, _ in deltas])
        index = self.varstorebuilder.storeDeltas([delta for _, delta in deltas])

        device = None
        if index is not None and index != NO_VARIATION_INDEX:
            device = buildVarDevTable(index)
        return default, device
