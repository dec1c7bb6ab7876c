"""Exceptions raised by compute engines on bad arguments."""

import numbers


class InvalidArgument(ValueError):
    """Raised when an engine receives an argument outside its domain."""


def check_int(value, name: str) -> int:
    """Return value as int, rejecting bools, floats and non-numbers."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    return int(value)
