"""Zero-value convention shared by argument encoding and output digging.

A value that is absent or equal to its type's zero value is "not set":
the encoder never sends it to terraform and the digger returns it when an
output is missing.
"""
import math

ZERO_TYPES = (str, int, float, bool, list, tuple, dict)


def zero_value(kind):
    """Return the zero value for a builtin type ("" / 0 / 0.0 / False / [] / {})."""
    return kind()


def is_zero(value):
    if value is None:
        return True
    if isinstance(value, ZERO_TYPES):
        return not value
    return False


def coerce(value, kind):
    """Return value as kind, or the zero value of kind when it does not fit.

    JSON numbers convert between int and float (floats truncate). Booleans
    are never treated as numbers.
    """
    if kind in (int, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return zero_value(kind)
        if isinstance(value, float) and not math.isfinite(value):
            return zero_value(kind)
        return kind(value)
    if isinstance(value, kind):
        return value
    return zero_value(kind)
