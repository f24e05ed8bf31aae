"""Design axes and the normalized locations used to key interpolation models.

A NormalizedLocation is a tuple of ``(axisTag, value)`` pairs sorted by tag,
with the axes sitting at their default (0.0) left out, e.g.
``(("wdth", -0.5), ("wght", 1.0))``. The empty tuple is the default location.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Tuple, Union

from fontTools.misc.textTools import tostr
from fontTools.varLib.models import normalizeValue

from shaperfont.errors import InvalidAxisTag, VariationResolutionError

NormalizedLocation = Tuple[Tuple[str, float], ...]
UserLocation = Mapping[str, float]


def parseAxisTag(tag: Union[str, bytes]) -> str:
    """Return `tag` as a 4-character str, padding short tags with spaces.

    Raise InvalidAxisTag if the tag is empty, longer than 4 characters,
    starts with a space, or contains characters outside printable ASCII.
    """
    if isinstance(tag, bytes):
        try:
            tag = tostr(tag, encoding="ascii")
        except UnicodeDecodeError as e:
            raise InvalidAxisTag(f"invalid axis tag: {tag!r}") from e
    if not isinstance(tag, str):
        raise InvalidAxisTag(f"axis tag must be a string, found {type(tag).__name__}")
    if not 0 < len(tag) <= 4:
        raise InvalidAxisTag(f"axis tag must have 1 to 4 characters: {tag!r}")
    if tag[0] == " " or any(not 0x20 <= ord(c) <= 0x7E for c in tag):
        raise InvalidAxisTag(f"invalid axis tag: {tag!r}")
    return tag.ljust(4)


def normalizedLocation(location: Mapping[str, float]) -> NormalizedLocation:
    """Turn a dict of normalized coordinates into a hashable location key."""
    return tuple(sorted((tag, value) for tag, value in location.items() if value != 0))


@dataclass(frozen=True)
class Axis:
    """A design axis in user coordinates.

    The caller must make sure that minValue <= defaultValue <= maxValue;
    this is not checked here.
    """

    tag: str
    minValue: float
    defaultValue: float
    maxValue: float
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "tag", parseAxisTag(self.tag))

    @classmethod
    def fromSpec(cls, spec) -> Axis:
        """Make an Axis from a host description.

        Accepts either a mapping with a "tag" and "minValue", "defaultValue",
        "maxValue" keys (or "min", "default", "max"), or a sequence
        (tag, min, default, max[, name]).
        """
        if isinstance(spec, Axis):
            return spec
        if isinstance(spec, Mapping):
            try:
                return cls(
                    spec["tag"],
                    _lookup(spec, "minValue", "min"),
                    _lookup(spec, "defaultValue", "default"),
                    _lookup(spec, "maxValue", "max"),
                    spec.get("name"),
                )
            except KeyError as e:
                raise TypeError(f"axis {spec!r} is missing {e}") from e
        spec = tuple(spec)
        if len(spec) not in (4, 5):
            raise TypeError(
                f"expected (tag, min, default, max[, name]), found {spec!r}"
            )
        return cls(*spec)

    @property
    def label(self) -> str:
        return self.name or self.tag

    @property
    def triple(self) -> Tuple[float, float, float]:
        return (self.minValue, self.defaultValue, self.maxValue)

    def normalize(self, value: float) -> float:
        """Map a user coordinate to [-1, 1]: min -> -1, default -> 0, max -> 1.

        Values outside the axis range are clamped.
        """
        return normalizeValue(value, self.triple)


def _lookup(mapping, key, alias):
    if key in mapping:
        return mapping[key]
    return mapping[alias]


class AxisSpace:
    """The ordered axes of one compilation."""

    def __init__(self, axes: Iterable[Axis] = ()):
        self.axes = tuple(Axis.fromSpec(axis) for axis in axes)
        self._axesByTag = {}
        for axis in self.axes:
            if axis.tag in self._axesByTag:
                raise InvalidAxisTag(f"duplicate axis tag: {axis.tag!r}")
            self._axesByTag[axis.tag] = axis

    def __repr__(self):
        return f"{self.__class__.__name__}({list(self.axes)!r})"

    def __len__(self):
        return len(self.axes)

    def __iter__(self):
        return iter(self.axes)

    def __contains__(self, tag):
        return tag in self._axesByTag

    def __getitem__(self, tag) -> Axis:
        return self._axesByTag[tag]

    @property
    def axisOrder(self):
        return [axis.tag for axis in self.axes]

    @property
    def defaultLocation(self) -> dict:
        return {axis.tag: axis.defaultValue for axis in self.axes}

    def normalizeLocation(
        self, location: Union[UserLocation, Iterable[Tuple[str, float]]]
    ) -> NormalizedLocation:
        """Normalize a user-space location; missing axes are at their default."""
        location = dict(location)
        unknown = set(location).difference(self._axesByTag)
        if unknown:
            raise VariationResolutionError(
                "unknown axis %s in location %r"
                % (", ".join(repr(tag) for tag in sorted(unknown)), location)
            )
        return normalizedLocation(
            {
                axis.tag: axis.normalize(location.get(axis.tag, axis.defaultValue))
                for axis in self.axes
            }
        )
