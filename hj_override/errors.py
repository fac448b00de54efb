"""
Exception Types for HJ Override

All errors raised by the value-function engine derive from HJOverrideError
and from the builtin type a caller would naturally catch, so code written
against plain ValueError / RuntimeError / IndexError keeps working.
"""


class HJOverrideError(Exception):
    """Base class for all hj_override errors."""


class GridNotLoadedError(HJOverrideError, RuntimeError):
    """Query issued against a grid whose data has not been loaded yet."""


class GridLoadError(HJOverrideError, ValueError):
    """Grid data is missing, unreadable or internally inconsistent."""


class DimensionMismatchError(HJOverrideError, ValueError):
    """State, offset or control vector has the wrong length."""


class PaletteIndexError(HJOverrideError, IndexError):
    """Palette dispatch with a set id outside the palette."""


def check_dimension(vector, expected: int, what: str = "state") -> None:
    """Raise DimensionMismatchError if len(vector) != expected."""
    if len(vector) != expected:
        raise DimensionMismatchError(f"Expected {what} of length {expected}, got {len(vector)}")
