"""
Closed numeric interop: Decimal <-> int, Fraction, float.

Only these kinds are accepted; anything else raises ConversionError. `bool`
counts as int.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Any, Union

from .core.digits import remove_factors, ten_pow
from .core.exc import ConversionError
from .number import Decimal

Number = Union[Decimal, int, Fraction, float]


def _from_fraction(value: Fraction, context) -> Decimal:
    sign = -1 if value < 0 else +1
    num, den = abs(value.numerator), value.denominator
    rest, twos = remove_factors(den, 2)
    rest, fives = remove_factors(rest, 5)
    if rest == 1:
        k = max(twos, fives)
        return Decimal._make(sign, num * ten_pow(k) // den, -k)
    from .context import define_context
    return define_context(context).divide(Decimal(value.numerator), Decimal(den))


def _from_float(value: float) -> Decimal:
    sign = -1 if math.copysign(1.0, value) < 0 else +1
    if math.isnan(value):
        return Decimal._make(sign, 0, 0, "nan")
    if math.isinf(value):
        return Decimal.infinity(sign)
    num, den = abs(value).as_integer_ratio()
    k = den.bit_length() - 1  # den is a power of two
    return Decimal._make(sign, num * 5 ** k, -k)


def to_decimal(value: Any, context=None) -> Decimal:
    """Convert an int, Fraction, float or Decimal to a Decimal.

    int and float convert exactly. A Fraction converts exactly when its
    decimal expansion terminates; otherwise it is divided under `context`
    (the active context when None), which signals Inexact.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(int(value))
    if isinstance(value, Fraction):
        return _from_fraction(value, context)
    if isinstance(value, float):
        return _from_float(value)
    raise ConversionError(value)


def convert_to(x: Decimal, kind: type) -> Number:
    """Convert a Decimal to `kind` (int, Fraction, float or Decimal)."""
    if not isinstance(x, Decimal):
        raise ConversionError(x, getattr(kind, "__name__", repr(kind)))
    if kind is Decimal:
        return x
    if kind is int:
        return int(x)
    if kind is Fraction:
        return x.as_fraction()
    if kind is float:
        return float(x)
    raise ConversionError(x, getattr(kind, "__name__", repr(kind)))


__all__ = ["to_decimal", "convert_to", "Number"]
