class Error(Exception):
    """Base exception class for all shaperfont errors."""

    pass


class InvalidAxisTag(Error):
    """Raised when an axis tag is not a valid 4-character OpenType tag."""

    pass


class IdentifierOverflow(Error):
    """Raised when no font-specific name ID is left to allocate."""

    pass


class AxisValueOverflow(Error):
    """Raised when an axis value can't be stored as a 16.16 fixed number."""

    pass


class VariationResolutionError(Error):
    """Raised when a variable metric can't be turned into default + deltas."""

    pass


class UnsupportedOperation(Error):
    """Raised for feature file constructs that can't be compiled here."""

    pass
