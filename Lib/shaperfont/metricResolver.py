from __future__ import annotations

import math
from typing import List, Mapping, Optional, Tuple

from fontTools.misc.vector import Vector
from fontTools.varLib.models import supportScalar

from shaperfont.axisSpace import (
    AxisSpace,
    NormalizedLocation,
    normalizedLocation,
)
from shaperfont.errors import UnsupportedOperation, VariationResolutionError
from shaperfont.variationModelCache import VariationModelCache

# a region is the support of a master in the model: {axisTag: (lower, peak, upper)}
Region = Mapping[str, Tuple[float, float, float]]
VariationDelta = Tuple[Region, int]

INT16_MIN = -0x8000
INT16_MAX = 0x7FFF


def roundHalfAwayFromZero(value: float) -> int:
    """Round to the nearest integer, moving ties away from zero.

    >>> roundHalfAwayFromZero(2.5), roundHalfAwayFromZero(-2.5)
    (3, -3)
    """
    magnitude = abs(value)
    rounded = math.floor(magnitude)
    # magnitude - rounded is exact, unlike magnitude + 0.5
    if magnitude - rounded >= 0.5:
        rounded += 1
    return -rounded if value < 0 else rounded


class MetricResolver:
    """Turn per-location values of one metric into a default and deltas.

    This is what the feature compiler calls every time it meets a variable
    scalar, e.g. ``pos A V (wght=100:-20 wght=900:-80);``. It also gives
    the compiler access to the axes the font was compiled with.
    """

    def __init__(
        self, axisSpace: AxisSpace, modelCache: Optional[VariationModelCache] = None
    ):
        self.axisSpace = axisSpace
        if modelCache is None:
            modelCache = VariationModelCache(axisSpace.axisOrder)
        self.modelCache = modelCache

    @property
    def axisCount(self) -> int:
        return len(self.axisSpace)

    def axis(self, tag):
        """Return the (index, Axis) for `tag`, or None if there's no such axis."""
        for index, axis in enumerate(self.axisSpace):
            if axis.tag == tag:
                return index, axis
        return None

    def resolve(
        self, samples: Mapping[NormalizedLocation, float]
    ) -> Tuple[int, List[VariationDelta]]:
        """Return (defaultValue, deltas) for a mapping of normalized
        locations to values.

        The deltas list holds one (region, delta) pair for each non-default
        master; the default master's contribution is folded into the
        default value.
        """
        if not samples:
            raise VariationResolutionError("no values to resolve")
        samples = _canonicalSamples(samples)
        model = self.modelCache.modelFor(samples.keys())

        try:
            masterValues = [
                Vector([samples[normalizedLocation(location)]])
                for location in model.origLocations
            ]
            deltas, supports = model.getDeltasAndSupports(masterValues)
        except (AssertionError, KeyError, TypeError, ValueError) as e:
            raise VariationResolutionError(
                f"failed to compute deltas for {dict(samples)}: {e!r}"
            ) from e

        defaultValue = 0
        result = []
        for region, delta in zip(supports, deltas):
            if len(delta) != 1:
                # each sample is one-dimensional, so should be every delta
                raise VariationResolutionError(
                    f"expected a single delta per region, found {len(delta)} "
                    f"for region {region}"
                )
            value = delta[0]
            scalar = supportScalar({}, region)
            if scalar:
                defaultValue += value * scalar
            else:
                result.append((region, _checkInt16(roundHalfAwayFromZero(value))))

        return _checkInt16(roundHalfAwayFromZero(defaultValue)), result

    def resolveUserLocations(self, values) -> Tuple[int, List[VariationDelta]]:
        """Like `resolve`, for values keyed by user-space locations.

        Locations are tuples of (tag, value) pairs, as found in feaLib's
        VariableScalar.values; axes not mentioned are at their default.
        """
        samples = {}
        for location, value in values.items():
            key = self.axisSpace.normalizeLocation(location)
            if key in samples:
                raise VariationResolutionError(
                    f"location {dict(location)} normalizes to the same "
                    f"location as another value: {dict(key)}"
                )
            samples[key] = value
        return self.resolve(samples)

    def resolveNamedValue(self, name):
        raise UnsupportedOperation(
            f"resolving named variable values is not supported: {name!r}"
        )


def _canonicalSamples(samples):
    # keys compare by structure: order of the coordinates and zero
    # coordinates don't matter
    result = {}
    for location, value in samples.items():
        key = normalizedLocation(dict(location))
        if key in result:
            raise VariationResolutionError(
                f"location {location} is the same as another location: {key}"
            )
        result[key] = value
    return result


def _checkInt16(value):
    if not INT16_MIN <= value <= INT16_MAX:
        raise VariationResolutionError(f"value {value} does not fit in 16 bits")
    return value
