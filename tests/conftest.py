import pytest

from shaperfont.axisSpace import Axis, AxisSpace
from shaperfont.metricResolver import MetricResolver


@pytest.fixture
def wghtAxis():
    return Axis("wght", 100, 400, 900)


@pytest.fixture
def wdthAxis():
    return Axis("wdth", 75, 100, 125, name="Width")


@pytest.fixture
def axisSpace(wghtAxis, wdthAxis):
    return AxisSpace([wghtAxis, wdthAxis])


@pytest.fixture
def resolver(axisSpace):
    return MetricResolver(axisSpace)


@pytest.fixture
def glyphOrder():
    return [".notdef", "A", "V", "A.alt"]
