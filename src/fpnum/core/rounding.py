"""
Rounding modes and coefficient rounding (integer domain).

`round_coefficient` is the single place where digits are discarded. Every
operation that shortens a coefficient (fix step, quantize, to-integral,
Decimal.round) goes through it.

Alignment notes:
- half_even / half_up / half_down / up / down / ceiling / floor follow the
  General Decimal Arithmetic definitions.
- up05 rounds away from zero only when the discarded digits are exactly one
  half and the last retained digit is 0 or 5; every other case truncates.
"""

from __future__ import annotations

from enum import Enum
from typing import Tuple, Union

from .digits import number_of_digits, ten_pow
from .exc import ContextError


class Rounding(str, Enum):
    """The eight rounding policies."""

    HALF_EVEN = "half_even"
    HALF_UP = "half_up"
    HALF_DOWN = "half_down"
    UP = "up"
    DOWN = "down"
    CEILING = "ceiling"
    FLOOR = "floor"
    UP05 = "up05"

    @classmethod
    def parse(cls, value: Union["Rounding", str]) -> "Rounding":
        """Accept a member or a case-insensitive name, ROUND_ prefix optional."""
        if isinstance(value, Rounding):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            if key.startswith("round_"):
                key = key[len("round_"):]
            key = key.replace("-", "_")
            if key == "05up":
                key = "up05"
            for member in cls:
                if member.value == key:
                    return member
        raise ContextError(f"invalid rounding mode {value!r}")

    def __str__(self) -> str:
        return self.value


def toward_zero_on_overflow(mode: Rounding, sign: int) -> bool:
    """True if `mode` never rounds a value of `sign` away from zero.

    Decides whether an overflowing result becomes the largest finite number
    instead of Infinity.
    """
    if mode is Rounding.DOWN or mode is Rounding.UP05:
        return True
    if mode is Rounding.CEILING:
        return sign < 0
    if mode is Rounding.FLOOR:
        return sign > 0
    return False


def _increment(mode: Rounding, sign: int, kept: int, rem: int, half: int) -> bool:
    """Decide whether the kept coefficient is bumped away from zero."""
    if rem == 0:
        return False
    if mode is Rounding.DOWN:
        return False
    if mode is Rounding.UP:
        return True
    if mode is Rounding.HALF_UP:
        return rem >= half
    if mode is Rounding.HALF_DOWN:
        return rem > half
    if mode is Rounding.HALF_EVEN:
        return rem > half or (rem == half and kept % 2 == 1)
    if mode is Rounding.CEILING:
        return sign > 0
    if mode is Rounding.FLOOR:
        return sign < 0
    if mode is Rounding.UP05:
        return rem == half and kept % 10 in (0, 5)
    raise ContextError(f"invalid rounding mode {mode!r}")


def round_coefficient(sign: int, coefficient: int, drop: int, mode: Rounding) -> Tuple[int, bool]:
    """Remove `drop` low-order digits from `coefficient` under `mode`.

    Returns (new_coefficient, inexact) where inexact is True if any discarded
    digit was nonzero. The caller owns the exponent bookkeeping (+drop).
    A carry may lengthen the result by one digit (e.g. 999 -> 100 with drop=1
    gives 100, one digit more than the kept 99).
    """
    if drop <= 0:
        return coefficient, False
    if coefficient == 0:
        return 0, False
    if drop > number_of_digits(coefficient) + 1:
        # Everything is discarded and the remainder is below one half.
        kept, rem, half = 0, 1, 5
    else:
        scale = ten_pow(drop)
        kept, rem = divmod(coefficient, scale)
        half = 5 * ten_pow(drop - 1)
    if _increment(mode, sign, kept, rem, half):
        kept += 1
    return kept, rem != 0


__all__ = ["Rounding", "round_coefficient", "toward_zero_on_overflow"]
