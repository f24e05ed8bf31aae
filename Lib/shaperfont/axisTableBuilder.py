from __future__ import annotations

import logging
from typing import Iterable, List, NamedTuple, Sequence, Tuple

from fontTools.misc.fixedTools import fixedToFloat, floatToFixed
from fontTools.ttLib import newTable
from fontTools.ttLib.tables._f_v_a_r import Axis as FvarAxis

from shaperfont.axisSpace import Axis
from shaperfont.constants import LAST_RESERVED_NAME_ID, MAX_NAME_ID
from shaperfont.errors import AxisValueOverflow, IdentifierOverflow

logger = logging.getLogger(__name__)

FIXED_MIN = -0x80000000
FIXED_MAX = 0x7FFFFFFF


class NameRecord(NamedTuple):
    nameID: int
    label: str


class AxisRecord(NamedTuple):
    """An fvar axis record; values are 16.16 fixed-point integers."""

    tag: str
    minValue: int
    defaultValue: int
    maxValue: int
    nameID: int


class NameIDAllocator:
    """Hand out name IDs above both the reserved range and existing names."""

    def __init__(self, existingNameIDs: Iterable[int] = ()):
        self.nextID = max([LAST_RESERVED_NAME_ID, *existingNameIDs]) + 1

    def allocate(self) -> int:
        if self.nextID > MAX_NAME_ID:
            raise IdentifierOverflow(
                f"cannot allocate name ID {self.nextID}; "
                f"the maximum is {MAX_NAME_ID}"
            )
        nameID = self.nextID
        self.nextID += 1
        return nameID


def toFixed(value: float) -> int:
    try:
        fixed = floatToFixed(value, precisionBits=16)
    except (OverflowError, ValueError) as e:
        raise AxisValueOverflow(f"invalid axis value: {value!r}") from e
    if not FIXED_MIN <= fixed <= FIXED_MAX:
        raise AxisValueOverflow(f"axis value {value!r} does not fit in 16.16 format")
    return fixed


class AxisTableBuilder:
    """Assemble fvar axis records and the name records labelling them."""

    def __init__(self, axes: Sequence[Axis]):
        self.axes = list(axes)

    def build(
        self, existingNameIDs: Iterable[int] = ()
    ) -> Tuple[List[NameRecord], List[AxisRecord]]:
        """Return (nameRecords, axisRecords), one of each per axis, in order.

        New name IDs start right above the largest of `existingNameIDs`
        and the last reserved name ID. Both lists are empty if there are
        no axes.
        """
        nameRecords = []
        axisRecords = []
        if not self.axes:
            return nameRecords, axisRecords

        allocator = NameIDAllocator(existingNameIDs)
        for axis in self.axes:
            nameID = allocator.allocate()
            nameRecords.append(NameRecord(nameID, axis.label))
            axisRecords.append(
                AxisRecord(
                    axis.tag,
                    toFixed(axis.minValue),
                    toFixed(axis.defaultValue),
                    toFixed(axis.maxValue),
                    nameID,
                )
            )
        return nameRecords, axisRecords


def buildFvarTable(axisRecords: Sequence[AxisRecord]):
    fvar = newTable("fvar")
    fvar.axes = []
    fvar.instances = []
    for record in axisRecords:
        axis = FvarAxis()
        axis.axisTag = record.tag
        axis.minValue = fixedToFloat(record.minValue, 16)
        axis.defaultValue = fixedToFloat(record.defaultValue, 16)
        axis.maxValue = fixedToFloat(record.maxValue, 16)
        axis.axisNameID = record.nameID
        axis.flags = 0
        fvar.axes.append(axis)
    return fvar


def addAxisTable(ttFont, axes: Sequence[Axis]) -> List[AxisRecord]:
    """Add an fvar table for `axes` to `ttFont`, with English axis names.

    Does nothing and returns an empty list if `axes` is empty: an fvar
    table without axes is not allowed.
    """
    if not axes:
        return []

    if "name" in ttFont:
        nameTable = ttFont["name"]
    else:
        nameTable = ttFont["name"] = newTable("name")
        nameTable.names = []

    nameRecords, axisRecords = AxisTableBuilder(axes).build(
        name.nameID for name in nameTable.names
    )
    for record in nameRecords:
        nameTable.setName(record.label, record.nameID, 3, 1, 0x409)
    ttFont["fvar"] = buildFvarTable(axisRecords)

    logger.debug(
        "Added fvar table with axes %s", ", ".join(r.tag for r in axisRecords)
    )
    return axisRecords
