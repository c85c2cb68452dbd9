"""
Integer fixed-point logarithm and exponential.

A fixed-point number at scale W is an int F standing for F / 10**W. These
helpers back non-integral powers (x**y = exp(y * ln x)); results carry a few
units of error in the last place, so callers add guard digits and treat the
outcome as inexact.
"""

from __future__ import annotations

from functools import lru_cache
from math import isqrt
from typing import Tuple

from .digits import number_of_digits, ten_pow

# Extra digits used internally on top of the caller's scale.
_GUARD = 6

# Halving steps before the exp Taylor series.
_EXP_HALVINGS = 8


def _ln_unit(M: int, W: int) -> int:
    """ln(M / 10**W) * 10**W for 1 <= M / 10**W <= 10."""
    S = ten_pow(W)
    if M < S:
        raise ValueError("_ln_unit expects M >= 10**W")
    k = 0
    threshold = S + S // 1000
    while M > threshold:
        M = isqrt(M * S)
        k += 1
    # ln(y) = 2 * atanh(z), z = (y - 1) / (y + 1)
    z = (M - S) * S // (M + S)
    z2 = z * z // S
    term, total, n = z, 0, 1
    while term:
        total += term // n
        term = term * z2 // S
        n += 2
    return (2 * total) << k


@lru_cache(maxsize=32)
def ln10_fixed(W: int) -> int:
    """ln(10) at scale W."""
    Wp = W + _GUARD
    return _ln_unit(10 * ten_pow(Wp), Wp) // ten_pow(_GUARD)


def ln_fixed(coefficient: int, exponent: int, W: int) -> int:
    """ln(coefficient * 10**exponent) at scale W (coefficient > 0)."""
    if coefficient <= 0:
        raise ValueError("ln_fixed expects a positive coefficient")
    d = number_of_digits(coefficient)
    Wp = W + _GUARD
    shift = Wp - (d - 1)
    if shift >= 0:
        M = coefficient * ten_pow(shift)
    else:
        M = coefficient // ten_pow(-shift)
    power = exponent + d - 1
    extra = number_of_digits(abs(power))
    total = _ln_unit(M, Wp) * ten_pow(extra) + power * ln10_fixed(Wp + extra)
    return total // ten_pow(extra + _GUARD)


def exp_fixed(T: int, W: int) -> Tuple[int, int]:
    """exp(T / 10**W) as (coefficient, exponent), about W+_GUARD digits."""
    n = T // ln10_fixed(W)
    extra = number_of_digits(abs(n)) + 2
    Wp = W + extra
    l10 = ln10_fixed(Wp)
    Tp = T * ten_pow(extra)
    n = Tp // l10
    R = Tp - n * l10  # 0 <= R < ln(10) at scale Wp

    Wg = Wp + _GUARD
    S = ten_pow(Wg)
    R = (R * ten_pow(_GUARD)) >> _EXP_HALVINGS
    term, total, i = S, S, 1
    while term:
        term = term * R // (S * i)
        total += term
        i += 1
    for _ in range(_EXP_HALVINGS):
        total = total * total // S
    return total, n - Wg


__all__ = ["ln_fixed", "ln10_fixed", "exp_fixed"]
