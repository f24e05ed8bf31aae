from __future__ import annotations

import logging
from typing import Iterable, Sequence

from fontTools.varLib.models import VariationModel, VariationModelError

from shaperfont.axisSpace import NormalizedLocation, normalizedLocation
from shaperfont.errors import VariationResolutionError

logger = logging.getLogger(__name__)


class VariationModelCache:
    """Build VariationModels for sparse sets of master locations, once each.

    Metrics in a feature file are often only defined at a few of the
    locations a font has sources for. Models are keyed by the set of
    normalized locations, so the order in which locations are given does
    not matter; each model is built over the locations in sorted order,
    which makes the result independent of insertion order too.

    The cache is meant to live for a single compilation: entries are never
    evicted.
    """

    def __init__(self, axisOrder: Sequence[str] = ()):
        self.axisOrder = list(axisOrder)
        self._models = {}

    def __len__(self):
        return len(self._models)

    def __contains__(self, locations):
        return _cacheKey(locations) in self._models

    def modelFor(self, locations: Iterable[NormalizedLocation]) -> VariationModel:
        key = _cacheKey(locations)
        model = self._models.get(key)
        if model is None:
            model = self._models[key] = self._buildModel(key)
        return model

    def _buildModel(self, locations: frozenset) -> VariationModel:
        masters = [dict(location) for location in sorted(locations)]
        logger.debug("Building variation model for %d masters", len(masters))
        try:
            return VariationModel(masters, axisOrder=self.axisOrder)
        except (VariationModelError, ValueError) as e:
            raise VariationResolutionError(
                f"cannot build variation model for locations {masters}: {e}"
            ) from e


def _cacheKey(locations):
    return frozenset(normalizedLocation(dict(location)) for location in locations)

