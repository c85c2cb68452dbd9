"""
String output for decimal values (scientific, engineering and fixed notation).

Scientific notation is the canonical form: parse(to_sci_string(x)) restores
x's exact (sign, coefficient, exponent). Fixed notation never uses an
exponent, so values with a positive exponent lose their quantum there.
"""

from __future__ import annotations

from typing import Any, Optional

from .digits import int_to_digits

NOTATIONS = ("sci", "eng", "fixed")


def _special_string(sign: int, coefficient: int, special: str) -> str:
    prefix = "-" if sign < 0 else ""
    if special == "inf":
        return prefix + "Infinity"
    payload = int_to_digits(coefficient) if coefficient else ""
    return prefix + ("sNaN" if special == "snan" else "NaN") + payload


def to_sci_string(
    sign: int,
    coefficient: int,
    exponent: int,
    special: Optional[str] = None,
    *,
    capitals: bool = True,
    eng: bool = False,
) -> str:
    """General Decimal Arithmetic to-scientific-string (or to-engineering-string).

    Plain notation is used when exponent <= 0 and the adjusted exponent is
    >= -6; otherwise one digit (or 1-3 digits for eng) precedes the point.
    """
    if special is not None:
        return _special_string(sign, coefficient, special)

    digits = int_to_digits(coefficient)
    leftdigits = exponent + len(digits)
    if exponent <= 0 and leftdigits > -6:
        dotplace = leftdigits
    elif not eng:
        dotplace = 1
    elif coefficient == 0:
        dotplace = (leftdigits + 1) % 3 - 1
    else:
        dotplace = (leftdigits - 1) % 3 + 1

    if dotplace <= 0:
        intpart = "0"
        fracpart = "." + "0" * (-dotplace) + digits
    elif dotplace >= len(digits):
        intpart = digits + "0" * (dotplace - len(digits))
        fracpart = ""
    else:
        intpart = digits[:dotplace]
        fracpart = "." + digits[dotplace:]

    if leftdigits == dotplace:
        exp = ""
    else:
        exp = ("E" if capitals else "e") + "%+d" % (leftdigits - dotplace)
    return ("-" if sign < 0 else "") + intpart + fracpart + exp


def to_fixed_string(sign: int, coefficient: int, exponent: int, special: Optional[str] = None) -> str:
    """Plain positional notation, e.g. 1.2E+3 -> '1200', 5E-3 -> '0.005'."""
    if special is not None:
        return _special_string(sign, coefficient, special)
    digits = int_to_digits(coefficient)
    if exponent >= 0:
        body = digits + "0" * exponent if coefficient else "0"
    else:
        places = -exponent
        digits = digits.rjust(places + 1, "0")
        body = digits[:-places] + "." + digits[-places:]
    return ("-" if sign < 0 else "") + body


def format_decimal(x: Any, notation: str = "sci", capitals: bool = True) -> str:
    """Format a Decimal-like object exposing is_signed/coefficient/exponent/special.

    Only "sci" always parses back to the same (sign, coefficient, exponent)
    triple. "eng" and "fixed" keep the value but can lose the exponent when it
    is positive (2E+17 prints as 200E+15 and as 200000000000000000).
    """
    sign = -1 if x.is_signed() else +1
    if notation == "sci":
        return to_sci_string(sign, x.coefficient, x.exponent, x.special, capitals=capitals)
    if notation == "eng":
        return to_sci_string(sign, x.coefficient, x.exponent, x.special, capitals=capitals, eng=True)
    if notation == "fixed":
        return to_fixed_string(sign, x.coefficient, x.exponent, x.special)
    raise ValueError(f"unknown notation {notation!r}; expected one of {NOTATIONS}")


__all__ = ["NOTATIONS", "to_sci_string", "to_fixed_string", "format_decimal"]
