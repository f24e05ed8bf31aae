import pytest
from fontTools.fontBuilder import FontBuilder

from shaperfont.axisSpace import Axis
from shaperfont.axisTableBuilder import (
    AxisRecord,
    AxisTableBuilder,
    NameIDAllocator,
    NameRecord,
    addAxisTable,
    buildFvarTable,
    toFixed,
)
from shaperfont.errors import AxisValueOverflow, IdentifierOverflow


class NameIDAllocatorTest:
    def test_starts_after_reserved_ids(self):
        allocator = NameIDAllocator()
        assert allocator.allocate() == 256
        assert allocator.allocate() == 257

    def test_starts_after_existing_ids(self):
        allocator = NameIDAllocator([1, 2, 300, 256])
        assert allocator.allocate() == 301

    def test_low_existing_ids(self):
        allocator = NameIDAllocator([1, 2, 6])
        assert allocator.allocate() == 256

    def test_overflow(self):
        allocator = NameIDAllocator([32766])
        assert allocator.allocate() == 32767
        with pytest.raises(IdentifierOverflow):
            allocator.allocate()


def test_toFixed():
    assert toFixed(400) == 400 << 16
    assert toFixed(-1.5) == -(3 << 15)
    assert toFixed(0.1) == 6554


@pytest.mark.parametrize("value", [32768, -32769, float("inf"), float("nan")])
def test_toFixed_overflow(value):
    with pytest.raises(AxisValueOverflow):
        toFixed(value)


class AxisTableBuilderTest:
    def test_empty(self):
        assert AxisTableBuilder([]).build({1, 2, 3}) == ([], [])

    def test_one_axis(self, wghtAxis):
        nameRecords, axisRecords = AxisTableBuilder([wghtAxis]).build()
        assert nameRecords == [NameRecord(256, "wght")]
        assert axisRecords == [
            AxisRecord("wght", 100 << 16, 400 << 16, 900 << 16, 256)
        ]

    def test_ids_increase_without_gaps(self, wghtAxis, wdthAxis):
        axes = [wghtAxis, wdthAxis, Axis("opsz", 8, 12, 72)]
        nameRecords, axisRecords = AxisTableBuilder(axes).build([256, 270])
        assert [r.nameID for r in nameRecords] == [271, 272, 273]
        assert [r.nameID for r in axisRecords] == [271, 272, 273]
        assert [r.label for r in nameRecords] == ["wght", "Width", "opsz"]
        assert [r.tag for r in axisRecords] == ["wght", "wdth", "opsz"]

    def test_identifier_overflow(self, wghtAxis, wdthAxis):
        with pytest.raises(IdentifierOverflow):
            AxisTableBuilder([wghtAxis, wdthAxis]).build([32766])

    def test_value_overflow(self):
        with pytest.raises(AxisValueOverflow):
            AxisTableBuilder([Axis("wght", 100, 400, 40000)]).build()

    def test_no_clamping(self):
        _, axisRecords = AxisTableBuilder([Axis("XOPQ", -500, 0, 1000)]).build()
        assert axisRecords[0].minValue == -500 << 16


def test_buildFvarTable():
    fvar = buildFvarTable([AxisRecord("wght", 100 << 16, 400 << 16, 900 << 16, 256)])
    assert fvar.instances == []
    (axis,) = fvar.axes
    assert axis.axisTag == "wght"
    assert (axis.minValue, axis.defaultValue, axis.maxValue) == (100, 400, 900)
    assert axis.axisNameID == 256
    assert axis.flags == 0


def _makeFont():
    fb = FontBuilder(unitsPerEm=1000)
    fb.setupGlyphOrder([".notdef"])
    fb.setupNameTable({"familyName": "Test"}, mac=False)
    return fb.font


def test_addAxisTable(wghtAxis, wdthAxis):
    font = _makeFont()
    existing = max(n.nameID for n in font["name"].names)
    assert existing < 256

    records = addAxisTable(font, [wghtAxis, wdthAxis])

    assert [r.nameID for r in records] == [256, 257]
    assert [a.axisTag for a in font["fvar"].axes] == ["wght", "wdth"]
    assert font["name"].getDebugName(256) == "wght"
    assert font["name"].getDebugName(257) == "Width"


def test_addAxisTable_no_axes():
    font = _makeFont()
    assert addAxisTable(font, []) == []
    assert "fvar" not in font
