"""Core module defining exceptions and argument validation."""

import operator
import numpy as np
import astropy.units as u


__all__ = [
    "InvalidConfiguration",
    "InvalidArgument",
    "verify_positive",
    "verify_nonnegative_int",
]


class InvalidConfiguration(ValueError):
    """Used to catch invalid constructor arguments."""

    pass


class InvalidArgument(ValueError):
    """Used to catch invalid call-time arguments."""

    pass


def verify_positive(x, name, unit=None, exc=InvalidArgument):
    """Returns ``x`` as a float after checking that it is finite and > 0.

    If ``unit`` is given, ``x`` may also be a scalar astropy Quantity, in
    which case it is converted to ``unit`` first. Quantities in cycles
    per ``unit`` (e.g. ``cycle / s`` for ``Hz``) are also accepted.
    """
    try:
        if unit is not None and isinstance(x, u.Quantity):
            if x.unit.is_equivalent(u.cycle * unit):
                x = x.to_value(u.cycle * unit)
            else:
                x = x.to_value(unit)
        x = float(x)
    except (TypeError, ValueError, u.UnitsError):
        raise exc(f"Invalid {name}. Expected a real number, got {x!r}.")

    if not (np.isfinite(x) and x > 0):
        raise exc(f"Invalid {name}. Must be finite and positive, got {x}.")

    return x


def verify_nonnegative_int(n, name, exc=InvalidArgument):
    """Returns ``n`` as an int after checking that it is an integer >= 0."""
    try:
        n = operator.index(n)
    except TypeError:
        raise exc(f"Invalid {name}. Expected an integer, got {n!r}.")

    if n < 0:
        raise exc(f"Invalid {name}. Must be non-negative, got {n}.")

    return n
