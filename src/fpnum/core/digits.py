"""
Integer helpers for coefficient arithmetic (centralised).

All coefficients are non-negative Python ints. The interpreter caps int<->str
conversions at a few thousand digits, so long coefficients are converted in
chunks here instead of calling int()/str() directly.
"""

from __future__ import annotations

from math import isqrt
from typing import Tuple

from .constants import DIGIT_CHUNK

_LOG10_2 = 0.30102999566398120


def ten_pow(n: int) -> int:
    """Return 10**n for n >= 0."""
    if n < 0:
        raise ValueError("ten_pow expects non-negative exponent")
    return 10 ** n


def number_of_digits(n: int) -> int:
    """Decimal digit count of a non-negative int (0 has one digit)."""
    if n < 0:
        raise ValueError("number_of_digits expects n >= 0")
    if n < 10:
        return 1
    # floor((bits-1)*log10(2)) is floor(log10(n)) or one less.
    k = int((n.bit_length() - 1) * _LOG10_2)
    return k + 2 if n >= 10 ** (k + 1) else k + 1


def integer_root(n: int, k: int) -> int:
    """floor(n ** (1/k)) for n >= 0, k >= 1 (Newton iteration from above)."""
    if n < 0 or k < 1:
        raise ValueError("integer_root expects n >= 0 and k >= 1")
    if n < 2 or k == 1:
        return n
    if k == 2:
        return isqrt(n)
    x = 1 << -(-n.bit_length() // k)
    while True:
        y = ((k - 1) * x + n // x ** (k - 1)) // k
        if y >= x:
            return x
        x = y


def strip_trailing_zeros(coefficient: int, exponent: int, limit: int) -> Tuple[int, int]:
    """Remove trailing zeros while exponent < limit (ideal exponent)."""
    if coefficient == 0:
        return 0, exponent
    while exponent < limit and coefficient % 10 == 0:
        coefficient //= 10
        exponent += 1
    return coefficient, exponent


def remove_factors(n: int, p: int) -> Tuple[int, int]:
    """Divide out every factor p from n; return (rest, count)."""
    count = 0
    while n and n % p == 0:
        n //= p
        count += 1
    return n, count


def digits_to_int(s: str) -> int:
    """Parse a string of ASCII digits of any length."""
    if len(s) <= DIGIT_CHUNK:
        return int(s)
    value = 0
    for i in range(0, len(s), DIGIT_CHUNK):
        chunk = s[i:i + DIGIT_CHUNK]
        value = value * ten_pow(len(chunk)) + int(chunk)
    return value


def int_to_digits(n: int) -> str:
    """Render a non-negative int of any size as digits."""
    if n < ten_pow(DIGIT_CHUNK):
        return str(n)
    parts = []
    base = ten_pow(DIGIT_CHUNK)
    while n >= base:
        n, r = divmod(n, base)
        parts.append(str(r).rjust(DIGIT_CHUNK, "0"))
    parts.append(str(n))
    return "".join(reversed(parts))


__all__ = [
    "ten_pow",
    "number_of_digits",
    "integer_root",
    "strip_trailing_zeros",
    "remove_factors",
    "digits_to_int",
    "int_to_digits",
]
