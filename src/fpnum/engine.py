"""
Operation engine: exact compute, then fix.

Every public function here has the shape `op(ctx, *operands) -> Decimal` and
runs the same pipeline:

  1) validate   NaN propagation, indeterminate forms, division by zero
  2) compute    exactly on ints (division/sqrt keep one guard digit plus a
                sticky digit so inexactness is never lost)
  3) fix        round to ctx.precision, then apply emax/emin/etiny bounds
  4) report     hand the collected signals of this occurrence to the context

`ctx` is any object with the Context surface (precision, rounding, emin, emax,
etiny, etop, clamp and `_report`). Operands are Decimals; coercion happens in
the Context / Decimal front-ends.

Alignment notes:
- Results follow the General Decimal Arithmetic rules for ideal exponents,
  tie-breaks and the sign of zero.
- precision == 0 is exact mode: nothing is rounded to a precision; an
  operation whose exact result is not a finite decimal signals Inexact and
  returns an approximation.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

from .core.constants import (
    POWER_EXACT_MAX_DENOMINATOR,
    POWER_EXACT_MAX_DIGITS,
    POWER_GUARD_DIGITS,
    ROUND_METHOD_DEFAULT,
)
from .core.digits import (
    integer_root,
    number_of_digits,
    remove_factors,
    strip_trailing_zeros,
    ten_pow,
)
from .core.fixedpoint import exp_fixed, ln10_fixed, ln_fixed
from .core.rounding import Rounding, round_coefficient, toward_zero_on_overflow
from .core.signals import Signal
from .number import Decimal, compare_values

# Debug printing control
DEBUG_ENGINE = False

def _dbg(msg: str) -> None:
    if DEBUG_ENGINE:
        print(msg)


_D = Decimal._make

Signals = List[Signal]


# ---------------------------------------------------------------------------
# Reporting helpers
# ---------------------------------------------------------------------------

def _finish(ctx, result: Decimal, sig: Signals, operands: Sequence[Decimal], op: str) -> Decimal:
    if sig:
        _dbg(f"{op}: signals {[s.name for s in sig]} -> {result}")
        ctx._report(sig, result=result, operands=operands, explanation=f"{op}: {_describe(sig)}")
    return result


def _describe(sig: Signals) -> str:
    if Signal.OVERFLOW in sig:
        return "result exponent above emax"
    if Signal.UNDERFLOW in sig:
        return "result exponent below emin"
    if Signal.INEXACT in sig:
        return "result rounded, digits lost"
    if Signal.ROUNDED in sig:
        return "result rounded"
    if Signal.CLAMPED in sig:
        return "exponent clamped"
    return ", ".join(s.name for s in sig)


def _invalid(ctx, op: str, operands: Sequence[Decimal], reason: str,
             signal: Signal = Signal.INVALID_OPERATION) -> Decimal:
    result = Decimal.nan()
    ctx._report([signal], result=result, operands=operands, explanation=f"{op}: {reason}")
    return result


def _fix_nan(ctx, x: Decimal) -> Decimal:
    """Quiet copy of a NaN with the payload cut to what the precision allows."""
    payload = x.coefficient
    if ctx.precision > 0:
        room = ctx.precision - (1 if ctx.clamp else 0)
        if number_of_digits(payload) > room:
            payload = payload % ten_pow(room) if room > 0 else 0
    return _D(x._sign, payload, 0, "nan")


def _check_nans(ctx, op: str, *operands: Decimal) -> Optional[Decimal]:
    """NaN result for NaN operands (sNaN first, signalling), else None."""
    for x in operands:
        if x.is_snan():
            result = _fix_nan(ctx, x)
            ctx._report(
                [Signal.INVALID_OPERATION],
                result=result,
                operands=operands,
                explanation=f"{op}: signaling NaN operand",
                forced=True,
            )
            return result
    for x in operands:
        if x.is_qnan():
            return _fix_nan(ctx, x)
    return None


# ---------------------------------------------------------------------------
# Fix: precision rounding and exponent bounds
# ---------------------------------------------------------------------------

def _fix(ctx, sign: int, coefficient: int, exponent: int, sig: Signals) -> Decimal:
    """Round an exact (sign, coefficient, exponent) into ctx; append signals to sig."""
    prec = ctx.precision
    etiny = ctx.etiny
    etop = ctx.etop

    if coefficient == 0:
        hi = etop if ctx.clamp else ctx.emax
        if exponent < etiny:
            exponent = etiny
            sig.append(Signal.CLAMPED)
        elif exponent > hi:
            exponent = hi
            sig.append(Signal.CLAMPED)
        return _D(sign, 0, exponent)

    digits = number_of_digits(coefficient)
    subnormal = exponent + digits - 1 < ctx.emin

    # Single rounding step to the larger of the precision and etiny targets.
    target = exponent
    if prec > 0:
        target = max(target, exponent + digits - prec)
    if subnormal:
        target = max(target, etiny)
    if target > exponent:
        coefficient, inexact = round_coefficient(sign, coefficient, target - exponent, ctx.rounding)
        exponent = target
        sig.append(Signal.ROUNDED)
        if inexact:
            sig.append(Signal.INEXACT)
        if prec > 0 and coefficient and number_of_digits(coefficient) > prec:
            # carry out of the top digit, the dropped digit is a zero
            coefficient //= 10
            exponent += 1

    if coefficient and exponent + number_of_digits(coefficient) - 1 > ctx.emax:
        for s in (Signal.OVERFLOW, Signal.INEXACT, Signal.ROUNDED):
            if s not in sig:
                sig.append(s)
        if prec > 0 and (ctx.clamp or toward_zero_on_overflow(ctx.rounding, sign)):
            _dbg(f"_fix: overflow -> largest finite ({sign})")
            return _D(sign, ten_pow(prec) - 1, etop)
        _dbg(f"_fix: overflow -> Infinity ({sign})")
        return Decimal.infinity(sign)

    if subnormal:
        sig.append(Signal.SUBNORMAL)
        sig.append(Signal.UNDERFLOW)
        if coefficient == 0:
            sig.append(Signal.CLAMPED)
        return _D(sign, coefficient, exponent)

    if ctx.clamp and exponent > etop:
        coefficient *= ten_pow(exponent - etop)
        exponent = etop
        sig.append(Signal.CLAMPED)

    return _D(sign, coefficient, exponent)


def apply(ctx, x: Decimal) -> Decimal:
    """Fit an existing value into ctx (rounding and bounds), keeping its sign."""
    if x.is_nan():
        return _check_nans(ctx, "apply", x)
    if x.is_infinite():
        return x
    sig: Signals = []
    result = _fix(ctx, x._sign, x.coefficient, x.exponent, sig)
    return _finish(ctx, result, sig, (x,), "apply")


# ---------------------------------------------------------------------------
# Integer kernels
# ---------------------------------------------------------------------------

def _sticky_quotient(xc: int, yc: int, p: int) -> Tuple[int, int, bool]:
    """xc / yc to p+1 or p+2 digits.

    Returns (q, shift, exact) with xc / yc ~ q * 10**-shift. An inexact
    quotient gets a nonzero last digit so later rounding sees the remainder.
    """
    shift = number_of_digits(yc) - number_of_digits(xc) + p + 1
    if shift >= 0:
        q, r = divmod(xc * ten_pow(shift), yc)
    else:
        q, r = divmod(xc, yc * ten_pow(-shift))
    if r and q % 5 == 0:
        q += 1
    return q, shift, r == 0


def _terminating_quotient(n: int, d: int) -> Optional[Tuple[int, int]]:
    """n / d as (c, k) with n / d == c * 10**-k, or None if it does not terminate."""
    g = math.gcd(n, d)
    n, d = n // g, d // g
    rest, twos = remove_factors(d, 2)
    rest, fives = remove_factors(rest, 5)
    if rest != 1:
        return None
    k = max(twos, fives)
    return n * ten_pow(k) // d, k


def _sticky_sqrt(c: int, e: int, p: int) -> Tuple[int, int, bool]:
    """sqrt(c * 10**e) to p+1 digits as (n, exponent, exact), sticky when inexact."""
    p += 1
    ideal = e >> 1
    if e & 1:
        c *= 10
        half_len = (number_of_digits(c) - 1 >> 1) + 1
    else:
        half_len = number_of_digits(c) + 1 >> 1
    shift = p - half_len
    if shift >= 0:
        c *= ten_pow(2 * shift)
        exact = True
    else:
        c, rem = divmod(c, ten_pow(-2 * shift))
        exact = not rem
    n = math.isqrt(c)
    exact = exact and n * n == c
    if exact:
        if shift >= 0:
            n //= ten_pow(shift)
        else:
            n *= ten_pow(-shift)
        return n, ideal, True
    if n % 5 == 0:
        n += 1
    return n, ideal - shift, False


def _round_to(sign: int, c: int, e: int, p: int, rounding: Rounding) -> Tuple[int, int]:
    """Round c * 10**e to p significant digits (used for exact-mode fallbacks)."""
    drop = number_of_digits(c) - p
    if drop <= 0:
        return c, e
    c, _ = round_coefficient(sign, c, drop, rounding)
    e += drop
    if number_of_digits(c) > p:
        c //= 10
        e += 1
    return c, e


# ---------------------------------------------------------------------------
# add / subtract / multiply / fma
# ---------------------------------------------------------------------------

def _finite_sum(ctx, xs: int, xc: int, xe: int, ys: int, yc: int, ye: int, sig: Signals) -> Decimal:
    prec = ctx.precision
    exp = min(xe, ye)

    if xc == 0 and yc == 0:
        if xs < 0 and ys < 0:
            sign = -1
        elif xs != ys and ctx.rounding is Rounding.FLOOR:
            sign = -1
        else:
            sign = +1
        return _fix(ctx, sign, 0, exp, sig)

    if xc == 0 or yc == 0:
        # A zero operand only contributes its exponent.
        s, c, e = (ys, yc, ye) if xc == 0 else (xs, xc, xe)
        if prec > 0:
            exp = max(exp, e - prec - 1)
        return _fix(ctx, s, c * ten_pow(e - exp), exp, sig)

    if prec > 0:
        # Fold an operand lying wholly below the other's rounding window into
        # a single sticky unit.
        if xe < ye:
            hi_c, hi_e, lo_c, lo_e = yc, ye, xc, xe
        else:
            hi_c, hi_e, lo_c, lo_e = xc, xe, yc, ye
        window = hi_e + min(-1, number_of_digits(hi_c) - prec - 2)
        if number_of_digits(lo_c) + lo_e - 1 < window:
            lo_c, lo_e = 1, window
        if xe < ye:
            yc, ye, xc, xe = hi_c, hi_e, lo_c, lo_e
        else:
            xc, xe, yc, ye = hi_c, hi_e, lo_c, lo_e

    exp = min(xe, ye)
    a = xs * xc * ten_pow(xe - exp)
    b = ys * yc * ten_pow(ye - exp)
    total = a + b
    if total == 0:
        sign = -1 if ctx.rounding is Rounding.FLOOR else +1
        return _fix(ctx, sign, 0, min(xe, ye), sig)
    return _fix(ctx, -1 if total < 0 else +1, abs(total), exp, sig)


def _add(ctx, x: Decimal, y: Decimal, ysign: int, op: str) -> Decimal:
    operands = (x, y)
    nan = _check_nans(ctx, op, x, y)
    if nan is not None:
        return nan
    if x.is_infinite():
        if y.is_infinite() and x._sign != ysign:
            return _invalid(ctx, op, operands, "Infinity - Infinity")
        return Decimal.infinity(x._sign)
    if y.is_infinite():
        return Decimal.infinity(ysign)
    sig: Signals = []
    result = _finite_sum(ctx, x._sign, x.coefficient, x.exponent, ysign, y.coefficient, y.exponent, sig)
    return _finish(ctx, result, sig, operands, op)


def add(ctx, x: Decimal, y: Decimal) -> Decimal:
    return _add(ctx, x, y, y._sign, "add")


def subtract(ctx, x: Decimal, y: Decimal) -> Decimal:
    return _add(ctx, x, y, -y._sign, "subtract")


def multiply(ctx, x: Decimal, y: Decimal) -> Decimal:
    operands = (x, y)
    nan = _check_nans(ctx, "multiply", x, y)
    if nan is not None:
        return nan
    sign = x._sign * y._sign
    if x.is_infinite() or y.is_infinite():
        if x.is_zero() or y.is_zero():
            return _invalid(ctx, "multiply", operands, "0 * Infinity")
        return Decimal.infinity(sign)
    sig: Signals = []
    result = _fix(ctx, sign, x.coefficient * y.coefficient, x.exponent + y.exponent, sig)
    return _finish(ctx, result, sig, operands, "multiply")


def fma(ctx, x: Decimal, y: Decimal, z: Decimal) -> Decimal:
    """x * y + z with the product kept exact and a single final rounding."""
    operands = (x, y, z)
    nan = _check_nans(ctx, "fma", x, y, z)
    if nan is not None:
        return nan
    psign = x._sign * y._sign
    if x.is_infinite() or y.is_infinite():
        if x.is_zero() or y.is_zero():
            return _invalid(ctx, "fma", operands, "0 * Infinity in fused multiply-add")
        if z.is_infinite() and z._sign != psign:
            return _invalid(ctx, "fma", operands, "Infinity - Infinity in fused multiply-add")
        return Decimal.infinity(psign)
    if z.is_infinite():
        return Decimal.infinity(z._sign)
    sig: Signals = []
    result = _finite_sum(
        ctx,
        psign, x.coefficient * y.coefficient, x.exponent + y.exponent,
        z._sign, z.coefficient, z.exponent,
        sig,
    )
    return _finish(ctx, result, sig, operands, "fma")


# ---------------------------------------------------------------------------
# Division family
# ---------------------------------------------------------------------------

def _divide_finite(ctx, sign: int, xc: int, xe: int, yc: int, ye: int, sig: Signals) -> Decimal:
    """Quotient of two finite nonzero magnitudes, fixed into ctx."""
    ideal = xe - ye
    prec = ctx.precision
    if prec > 0:
        q, shift, exact = _sticky_quotient(xc, yc, prec)
        exp = ideal - shift
        if exact:
            q, exp = strip_trailing_zeros(q, exp, ideal)
        return _fix(ctx, sign, q, exp, sig)

    exact = _terminating_quotient(xc, yc)
    if exact is not None:
        q, k = exact
        q, exp = strip_trailing_zeros(q, ideal - k, ideal)
        return _fix(ctx, sign, q, exp, sig)

    # Not a finite decimal: approximate and let the trap on Inexact decide.
    p = number_of_digits(xc) + 4 * number_of_digits(yc)
    q, shift, _ = _sticky_quotient(xc, yc, p)
    q, exp = _round_to(sign, q, ideal - shift, p, ctx.rounding)
    sig.extend((Signal.INEXACT, Signal.ROUNDED))
    return _fix(ctx, sign, q, exp, sig)


def divide(ctx, x: Decimal, y: Decimal) -> Decimal:
    operands = (x, y)
    nan = _check_nans(ctx, "divide", x, y)
    if nan is not None:
        return nan
    sign = x._sign * y._sign
    if x.is_infinite():
        if y.is_infinite():
            return _invalid(ctx, "divide", operands, "Infinity / Infinity")
        return Decimal.infinity(sign)
    sig: Signals = []
    if y.is_infinite():
        sig.append(Signal.CLAMPED)
        return _finish(ctx, _D(sign, 0, ctx.etiny), sig, operands, "divide")
    if y.is_zero():
        if x.is_zero():
            return _invalid(ctx, "divide", operands, "0 / 0", Signal.DIVISION_UNDEFINED)
        result = Decimal.infinity(sign)
        ctx._report([Signal.DIVISION_BY_ZERO], result=result, operands=operands,
                    explanation="divide: x / 0")
        return result
    if x.is_zero():
        result = _fix(ctx, sign, 0, x.exponent - y.exponent, sig)
    else:
        result = _divide_finite(ctx, sign, x.coefficient, x.exponent, y.coefficient, y.exponent, sig)
    return _finish(ctx, result, sig, operands, "divide")


def _truncated_divmod(ctx, x: Decimal, y: Decimal):
    """(quotient, remainder) of finite x by finite nonzero or infinite y.

    Returns None when the integer quotient needs more than precision digits.
    """
    sign = x._sign * y._sign
    ideal = x.exponent if y.is_infinite() else min(x.exponent, y.exponent)
    prec = ctx.precision
    if x.is_zero() or y.is_infinite():
        return _D(sign, 0, 0), _D(x._sign, x.coefficient * ten_pow(x.exponent - ideal), ideal)
    expdiff = x.adjusted_exponent - y.adjusted_exponent
    if expdiff <= -2:
        return _D(sign, 0, 0), _D(x._sign, x.coefficient * ten_pow(x.exponent - ideal), ideal)
    if prec > 0 and expdiff > prec:
        return None
    a, b = x.coefficient, y.coefficient
    if x.exponent >= y.exponent:
        a *= ten_pow(x.exponent - y.exponent)
    else:
        b *= ten_pow(y.exponent - x.exponent)
    q, r = divmod(a, b)
    if prec > 0 and q >= ten_pow(prec):
        return None
    return _D(sign, q, 0), _D(x._sign, r, ideal)


def divide_int(ctx, x: Decimal, y: Decimal) -> Decimal:
    """Integer part of x / y, truncated toward zero."""
    operands = (x, y)
    nan = _check_nans(ctx, "divide_int", x, y)
    if nan is not None:
        return nan
    sign = x._sign * y._sign
    if x.is_infinite():
        if y.is_infinite():
            return _invalid(ctx, "divide_int", operands, "Infinity // Infinity")
        return Decimal.infinity(sign)
    if y.is_zero():
        if x.is_zero():
            return _invalid(ctx, "divide_int", operands, "0 // 0", Signal.DIVISION_UNDEFINED)
        result = Decimal.infinity(sign)
        ctx._report([Signal.DIVISION_BY_ZERO], result=result, operands=operands,
                    explanation="divide_int: x // 0")
        return result
    pair = _truncated_divmod(ctx, x, y)
    if pair is None:
        return _invalid(ctx, "divide_int", operands, "quotient too large for precision",
                        Signal.DIVISION_IMPOSSIBLE)
    q = pair[0]
    sig: Signals = []
    result = _fix(ctx, q._sign, q.coefficient, q.exponent, sig)
    return _finish(ctx, result, sig, operands, "divide_int")


def remainder(ctx, x: Decimal, y: Decimal) -> Decimal:
    """x - y * divide_int(x, y); the result has the sign of x."""
    operands = (x, y)
    nan = _check_nans(ctx, "remainder", x, y)
    if nan is not None:
        return nan
    if x.is_infinite():
        return _invalid(ctx, "remainder", operands, "Infinity % x")
    if y.is_zero():
        if x.is_zero():
            return _invalid(ctx, "remainder", operands, "0 % 0", Signal.DIVISION_UNDEFINED)
        return _invalid(ctx, "remainder", operands, "x % 0")
    pair = _truncated_divmod(ctx, x, y)
    if pair is None:
        return _invalid(ctx, "remainder", operands, "quotient too large for precision",
                        Signal.DIVISION_IMPOSSIBLE)
    r = pair[1]
    sig: Signals = []
    result = _fix(ctx, r._sign, r.coefficient, r.exponent, sig)
    return _finish(ctx, result, sig, operands, "remainder")


def remainder_near(ctx, x: Decimal, y: Decimal) -> Decimal:
    """x - y * n where n is x / y rounded to the nearest integer (ties to even)."""
    operands = (x, y)
    nan = _check_nans(ctx, "remainder_near", x, y)
    if nan is not None:
        return nan
    if x.is_infinite():
        return _invalid(ctx, "remainder_near", operands, "remainder_near(Infinity, x)")
    if y.is_zero():
        if x.is_zero():
            return _invalid(ctx, "remainder_near", operands, "remainder_near(0, 0)",
                            Signal.DIVISION_UNDEFINED)
        return _invalid(ctx, "remainder_near", operands, "remainder_near(x, 0)")

    sig: Signals = []
    if y.is_infinite():
        return _finish(ctx, _fix(ctx, x._sign, x.coefficient, x.exponent, sig), sig, operands, "remainder_near")

    ideal = min(x.exponent, y.exponent)
    if x.is_zero():
        return _finish(ctx, _fix(ctx, x._sign, 0, ideal, sig), sig, operands, "remainder_near")

    prec = ctx.precision
    expdiff = x.adjusted_exponent - y.adjusted_exponent
    if prec > 0 and expdiff >= prec + 1:
        return _invalid(ctx, "remainder_near", operands, "quotient too large for precision",
                        Signal.DIVISION_IMPOSSIBLE)
    if expdiff <= -2:
        result = _fix(ctx, x._sign, x.coefficient * ten_pow(x.exponent - ideal), ideal, sig)
        return _finish(ctx, result, sig, operands, "remainder_near")

    a, b = x.coefficient, y.coefficient
    if x.exponent >= y.exponent:
        a *= ten_pow(x.exponent - y.exponent)
    else:
        b *= ten_pow(y.exponent - x.exponent)
    q, r = divmod(a, b)
    if 2 * r + (q & 1) > b:
        r -= b
        q += 1
    if prec > 0 and q >= ten_pow(prec):
        return _invalid(ctx, "remainder_near", operands, "quotient too large for precision",
                        Signal.DIVISION_IMPOSSIBLE)
    sign = x._sign
    if r < 0:
        sign, r = -sign, -r
    result = _fix(ctx, sign, r, ideal, sig)
    return _finish(ctx, result, sig, operands, "remainder_near")


def _floor_divmod(ctx, x: Decimal, y: Decimal, op: str):
    """Floor quotient and modulo (sign of divisor) as a pair, or a NaN pair."""
    operands = (x, y)
    nan = _check_nans(ctx, op, x, y)
    if nan is not None:
        return nan, nan
    if x.is_infinite():
        nan = _invalid(ctx, op, operands, "floor division of Infinity")
        return nan, nan
    if y.is_zero():
        if x.is_zero():
            nan = _invalid(ctx, op, operands, "0 / 0", Signal.DIVISION_UNDEFINED)
            return nan, nan
        q = Decimal.infinity(x._sign * y._sign)
        nan = Decimal.nan()
        if op == "div":
            signals = [Signal.DIVISION_BY_ZERO]
        elif op == "modulo":
            signals = [Signal.INVALID_OPERATION]
        else:
            signals = [Signal.DIVISION_BY_ZERO, Signal.INVALID_OPERATION]
        ctx._report(signals, result=(q, nan), operands=operands, explanation=f"{op}: x / 0")
        return q, nan

    sig: Signals = []
    if y.is_infinite():
        if x.is_zero() or x._sign == y._sign:
            q, r = _D(x._sign * y._sign, 0, 0), _fix(ctx, x._sign, x.coefficient, x.exponent, sig)
        else:
            q, r = _D(-1, 1, 0), y
        return _finish(ctx, q, sig, operands, op), r

    ideal = min(x.exponent, y.exponent)
    a, b = x._sign * x.coefficient, y._sign * y.coefficient
    if x.exponent >= y.exponent:
        a *= ten_pow(x.exponent - y.exponent)
    else:
        b *= ten_pow(y.exponent - x.exponent)
    q, r = divmod(a, b)
    prec = ctx.precision
    if prec > 0 and abs(q) >= ten_pow(prec):
        nan = _invalid(ctx, op, operands, "quotient too large for precision",
                       Signal.DIVISION_IMPOSSIBLE)
        return nan, nan
    if q == 0:
        qsign = x._sign * y._sign
    else:
        qsign = -1 if q < 0 else +1
    quotient = _fix(ctx, qsign, abs(q), 0, sig)
    rem = _fix(ctx, -1 if r < 0 else +1, abs(r), ideal, sig)
    _finish(ctx, quotient, sig, operands, op)
    return quotient, rem


def div(ctx, x: Decimal, y: Decimal) -> Decimal:
    """floor(x / y) as an integral Decimal."""
    return _floor_divmod(ctx, x, y, "div")[0]


def modulo(ctx, x: Decimal, y: Decimal) -> Decimal:
    """x - y * floor(x / y); the result has the sign of y."""
    return _floor_divmod(ctx, x, y, "modulo")[1]


def divmod_(ctx, x: Decimal, y: Decimal) -> Tuple[Decimal, Decimal]:
    return _floor_divmod(ctx, x, y, "divmod")


# ---------------------------------------------------------------------------
# Square root
# ---------------------------------------------------------------------------

def sqrt(ctx, x: Decimal) -> Decimal:
    operands = (x,)
    nan = _check_nans(ctx, "sqrt", x)
    if nan is not None:
        return nan
    if x.is_infinite():
        if x._sign < 0:
            return _invalid(ctx, "sqrt", operands, "sqrt(-Infinity)")
        return x
    sig: Signals = []
    if x.is_zero():
        return _finish(ctx, _fix(ctx, x._sign, 0, x.exponent >> 1, sig), sig, operands, "sqrt")
    if x._sign < 0:
        return _invalid(ctx, "sqrt", operands, "sqrt of a negative number")

    prec = ctx.precision
    if prec > 0:
        n, e, _ = _sticky_sqrt(x.coefficient, x.exponent, prec)
        return _finish(ctx, _fix(ctx, +1, n, e, sig), sig, operands, "sqrt")

    c, e = x.coefficient, x.exponent
    if e & 1:
        c, e = c * 10, e - 1
    n = math.isqrt(c)
    if n * n == c:
        return _finish(ctx, _fix(ctx, +1, n, e >> 1, sig), sig, operands, "sqrt")
    p = 2 * number_of_digits(x.coefficient) + 1
    n, e, _ = _sticky_sqrt(x.coefficient, x.exponent, p)
    n, e = _round_to(+1, n, e, p, ctx.rounding)
    sig.extend((Signal.INEXACT, Signal.ROUNDED))
    return _finish(ctx, _fix(ctx, +1, n, e, sig), sig, operands, "sqrt")


# ---------------------------------------------------------------------------
# Power
# ---------------------------------------------------------------------------

def _scale_floor(T: int, e: int) -> int:
    """floor(T * 10**e), without building 10**-e when it dwarfs T."""
    if e >= 0:
        return T * ten_pow(e)
    if number_of_digits(abs(T)) <= -e:
        return 0 if T >= 0 else -1
    return T // ten_pow(-e)


def _power_range(ctx, xc: int, xe: int, ysign: int, yc: int, ye: int) -> int:
    """+1 if |x|**y certainly overflows, -1 if it certainly underflows, else 0."""
    W = 20 + number_of_digits(xc)
    L = ln_fixed(xc, xe, W)
    if L == 0:
        return 0
    direction = ysign * (1 if L > 0 else -1)
    bound = max(abs(ctx.emax), abs(ctx.etiny)) + 10
    # digits of |y * ln x| at scale W, compared against digits of the bound
    size = number_of_digits(yc) + ye + number_of_digits(abs(L)) - W
    if size > number_of_digits(bound) + 2:
        return direction
    if size <= 0:
        # |y * ln x| < 1
        return 0
    T = _scale_floor(ysign * yc * L, ye)
    n = T // ln10_fixed(W)
    if n > ctx.emax + 1:
        return +1
    if n < ctx.etiny - 2:
        return -1
    return 0


def _integral_power(ctx, sign: int, xc: int, xe: int, n: int, sig: Signals) -> Decimal:
    prec = ctx.precision
    if prec == 0:
        if n >= 0:
            return _fix(ctx, sign, xc ** n, xe * n, sig)
        c = xc ** -n
        exact = _terminating_quotient(1, c)
        if exact is not None:
            q, k = exact
            return _fix(ctx, sign, q, -xe * -n - k, sig)
        return _divide_finite(ctx, sign, 1, 0, c, xe * -n, sig)

    w = prec + number_of_digits(abs(n)) + 3
    c, e, lost = 1, 0, False
    base_c, base_e = xc, xe
    k = abs(n)
    while True:
        if k & 1:
            c, e = c * base_c, e + base_e
            drop = number_of_digits(c) - w
            if drop > 0:
                c, r = divmod(c, ten_pow(drop))
                e += drop
                lost = lost or r != 0
        k >>= 1
        if not k:
            break
        base_c, base_e = base_c * base_c, base_e * 2
        drop = number_of_digits(base_c) - w
        if drop > 0:
            base_c, r = divmod(base_c, ten_pow(drop))
            base_e += drop
            lost = lost or r != 0
    if n < 0:
        q, shift, exact = _sticky_quotient(1, c, w)
        c, e = q, -e - shift
        lost = lost or not exact
    if lost:
        c, e = c * 10 + 1, e - 1
    else:
        c, e = strip_trailing_zeros(c, e, xe * n)
    _dbg(f"_integral_power: n={n} w={w} lost={lost}")
    return _fix(ctx, sign, c, e, sig)


def _rational_power(ctx, sign: int, xc: int, xe: int, y: Decimal, sig: Signals) -> Optional[Decimal]:
    """x ** (a/b) when it is an exact finite decimal, else None."""
    # the reduced denominator of c * 10**-k is at least 2**k
    _, ye = strip_trailing_zeros(y.coefficient, y.exponent, 0)
    if -ye >= POWER_EXACT_MAX_DENOMINATOR.bit_length():
        return None
    fy = y.as_fraction()
    a, b = fy.numerator, fy.denominator
    if b > POWER_EXACT_MAX_DENOMINATOR:
        return None
    c, e = strip_trailing_zeros(xc, xe, xe + number_of_digits(xc))
    if e % b:
        return None
    r = integer_root(c, b)
    if r ** b != c:
        return None
    if abs(a) * number_of_digits(r) > POWER_EXACT_MAX_DIGITS:
        return None
    e = e // b * a
    if a >= 0:
        return _fix(ctx, sign, r ** a, e, sig)
    denominator = r ** -a
    if ctx.precision == 0:
        exact = _terminating_quotient(1, denominator)
        if exact is None:
            return None
        q, k = exact
        return _fix(ctx, sign, q, e - k, sig)
    return _divide_finite(ctx, sign, 1, e, denominator, 0, sig)


def _transcendental_power(ctx, sign: int, xc: int, xe: int, y: Decimal, sig: Signals) -> Decimal:
    prec = ctx.precision
    p = prec if prec > 0 else number_of_digits(xc) + number_of_digits(y.coefficient) + POWER_GUARD_DIGITS
    W = p + POWER_GUARD_DIGITS + max(0, y.adjusted_exponent + 1) + number_of_digits(abs(xe) + number_of_digits(xc))
    L = ln_fixed(xc, xe, W)
    T = _scale_floor(y._sign * y.coefficient * L, y.exponent)
    c, e = exp_fixed(T, W)
    drop = number_of_digits(c) - (p + 3)
    if drop > 0:
        c //= ten_pow(drop)
        e += drop
    c, e = c * 10 + 1, e - 1
    _dbg(f"_transcendental_power: W={W} p={p} -> {c}E{e}")
    if prec == 0:
        c, e = _round_to(sign, c, e, p, ctx.rounding)
        sig.extend((Signal.INEXACT, Signal.ROUNDED))
    return _fix(ctx, sign, c, e, sig)


def power(ctx, x: Decimal, y: Decimal) -> Decimal:
    """x ** y."""
    operands = (x, y)
    nan = _check_nans(ctx, "power", x, y)
    if nan is not None:
        return nan
    sig: Signals = []

    if y.is_zero():
        if x.is_zero():
            return _invalid(ctx, "power", operands, "0 ** 0")
        return _finish(ctx, _fix(ctx, +1, 1, 0, sig), sig, operands, "power")

    y_integral = y.is_integral()
    sign = +1
    if x._sign < 0:
        if y_integral:
            if _odd(y):
                sign = -1
        elif not x.is_zero():
            return _invalid(ctx, "power", operands, "negative number raised to a non-integral power")

    if x.is_zero():
        if y._sign > 0:
            return _finish(ctx, _fix(ctx, sign, 0, 0, sig), sig, operands, "power")
        return Decimal.infinity(sign)

    if x.is_infinite():
        if y._sign > 0:
            return Decimal.infinity(sign)
        return _D(sign, 0, 0)

    xc, xe = x.coefficient, x.exponent
    if compare_values(x.copy_abs(), _D(+1, 1, 0)) == 0:
        if y.is_infinite():
            prec = ctx.precision
            sig.extend((Signal.INEXACT, Signal.ROUNDED))
            if prec > 0:
                return _finish(ctx, _D(sign, ten_pow(prec - 1), 1 - prec), sig, operands, "power")
            return _finish(ctx, _D(sign, 1, 0), sig, operands, "power")
        if y_integral and y._sign > 0 and ctx.precision > 0:
            # y > precision saturates, int(y) is never needed beyond that
            k = ctx.precision if y.adjusted_exponent >= number_of_digits(ctx.precision) else min(int(y), ctx.precision)
            exp = xe * k
            if exp < 1 - ctx.precision:
                exp = 1 - ctx.precision
                sig.append(Signal.ROUNDED)
            return _finish(ctx, _D(sign, ten_pow(-exp), exp), sig, operands, "power")
        return _finish(ctx, _fix(ctx, sign, 1, 0, sig), sig, operands, "power")

    if y.is_infinite():
        above_one = compare_values(x.copy_abs(), _D(+1, 1, 0)) > 0
        if above_one == (y._sign > 0):
            return Decimal.infinity(sign)
        return _D(sign, 0, 0)

    direction = _power_range(ctx, xc, xe, y._sign, y.coefficient, y.exponent)
    if direction > 0:
        result = _fix(ctx, sign, 1, ctx.emax + 1, sig)
        return _finish(ctx, result, sig, operands, "power")
    if direction < 0:
        result = _fix(ctx, sign, 1, ctx.etiny - 1, sig)
        return _finish(ctx, result, sig, operands, "power")

    if y_integral:
        result = _integral_power(ctx, sign, xc, xe, int(y), sig)
    else:
        result = _rational_power(ctx, sign, xc, xe, y, sig)
        if result is None:
            result = _transcendental_power(ctx, sign, xc, xe, y, sig)
    return _finish(ctx, result, sig, operands, "power")


def _odd(y: Decimal) -> bool:
    """True if the integral value y is odd."""
    if y.exponent > 0:
        return False
    if y.exponent == 0:
        return y.coefficient & 1 == 1
    if -y.exponent >= number_of_digits(y.coefficient):
        return False
    return (y.coefficient // ten_pow(-y.exponent)) & 1 == 1


# ---------------------------------------------------------------------------
# Comparison and sign operations
# ---------------------------------------------------------------------------

def compare(ctx, x: Decimal, y: Decimal) -> Decimal:
    """-1, 0 or 1 as a Decimal; NaN if either operand is a NaN."""
    nan = _check_nans(ctx, "compare", x, y)
    if nan is not None:
        return nan
    c = compare_values(x, y)
    return _D(-1 if c < 0 else +1, abs(c), 0)


def _signed_copy(ctx, x: Decimal, sign: int, op: str) -> Decimal:
    nan = _check_nans(ctx, op, x)
    if nan is not None:
        return nan
    if x.is_infinite():
        return Decimal.infinity(sign)
    if x.is_zero() and ctx.rounding is not Rounding.FLOOR:
        sign = +1
    sig: Signals = []
    result = _fix(ctx, sign, x.coefficient, x.exponent, sig)
    return _finish(ctx, result, sig, (x,), op)


def plus(ctx, x: Decimal) -> Decimal:
    return _signed_copy(ctx, x, x._sign, "plus")


def minus(ctx, x: Decimal) -> Decimal:
    return _signed_copy(ctx, x, -x._sign, "minus")


def abs_(ctx, x: Decimal) -> Decimal:
    return _signed_copy(ctx, x, +1, "abs")


def reduce(ctx, x: Decimal) -> Decimal:
    """Fix, then strip trailing zeros; zero becomes 0E0 with its sign."""
    nan = _check_nans(ctx, "reduce", x)
    if nan is not None:
        return nan
    if x.is_infinite():
        return x
    sig: Signals = []
    fixed = _fix(ctx, x._sign, x.coefficient, x.exponent, sig)
    if fixed.is_infinite():
        return _finish(ctx, fixed, sig, (x,), "reduce")
    if fixed.is_zero():
        return _finish(ctx, _D(fixed._sign, 0, 0), sig, (x,), "reduce")
    limit = ctx.etop if ctx.clamp else ctx.emax
    c, e = strip_trailing_zeros(fixed.coefficient, fixed.exponent, limit)
    return _finish(ctx, _D(fixed._sign, c, e), sig, (x,), "reduce")


def logb(ctx, x: Decimal) -> Decimal:
    """Adjusted exponent of x as a Decimal."""
    nan = _check_nans(ctx, "logb", x)
    if nan is not None:
        return nan
    if x.is_infinite():
        return Decimal.infinity(+1)
    if x.is_zero():
        result = Decimal.infinity(-1)
        ctx._report([Signal.DIVISION_BY_ZERO], result=result, operands=(x,),
                    explanation="logb: logb(0)")
        return result
    adj = x.adjusted_exponent
    sig: Signals = []
    result = _fix(ctx, -1 if adj < 0 else +1, abs(adj), 0, sig)
    return _finish(ctx, result, sig, (x,), "logb")


def scaleb(ctx, x: Decimal, y: Decimal) -> Decimal:
    """x * 10**y for integral y."""
    operands = (x, y)
    nan = _check_nans(ctx, "scaleb", x, y)
    if nan is not None:
        return nan
    if not y.is_integral():
        return _invalid(ctx, "scaleb", operands, "scale must be an integer")
    limit = 2 * (ctx.emax + ctx.precision)
    if y.adjusted_exponent > number_of_digits(limit) + 1 or abs(int(y)) > limit:
        return _invalid(ctx, "scaleb", operands, "scale out of range")
    if x.is_infinite():
        return x
    sig: Signals = []
    result = _fix(ctx, x._sign, x.coefficient, x.exponent + int(y), sig)
    return _finish(ctx, result, sig, operands, "scaleb")


# ---------------------------------------------------------------------------
# Exponent setting
# ---------------------------------------------------------------------------

def _rescale_checked(ctx, x: Decimal, exp: int, operands: Sequence[Decimal], op: str) -> Decimal:
    if not ctx.etiny <= exp <= ctx.emax:
        return _invalid(ctx, op, operands, "target exponent out of bounds")
    sig: Signals = []
    if x.is_zero():
        return _finish(ctx, _fix(ctx, x._sign, 0, exp, sig), sig, operands, op)
    prec = ctx.precision
    if x.adjusted_exponent > ctx.emax:
        return _invalid(ctx, op, operands, "result exponent too large for context")
    if prec > 0 and x.adjusted_exponent - exp + 1 > prec:
        return _invalid(ctx, op, operands, "result has too many digits for context")

    c, e = x.coefficient, x.exponent
    if exp < e:
        c, e = c * ten_pow(e - exp), exp
    elif exp > e:
        c, inexact = round_coefficient(x._sign, c, exp - e, ctx.rounding)
        e = exp
        sig.append(Signal.ROUNDED)
        if inexact:
            sig.append(Signal.INEXACT)
    if c and e + number_of_digits(c) - 1 > ctx.emax:
        return _invalid(ctx, op, operands, "result exponent too large for context")
    if prec > 0 and number_of_digits(c) > prec:
        return _invalid(ctx, op, operands, "result has too many digits for context")
    result = _fix(ctx, x._sign, c, e, sig)
    return _finish(ctx, result, sig, operands, op)


def quantize(ctx, x: Decimal, y: Decimal) -> Decimal:
    """x rounded to the exponent of y."""
    operands = (x, y)
    nan = _check_nans(ctx, "quantize", x, y)
    if nan is not None:
        return nan
    if x.is_infinite() or y.is_infinite():
        if x.is_infinite() and y.is_infinite():
            return x
        return _invalid(ctx, "quantize", operands, "quantize with one Infinity")
    return _rescale_checked(ctx, x, y.exponent, operands, "quantize")


def rescale(ctx, x: Decimal, exp: int) -> Decimal:
    """x rounded to exponent `exp`."""
    nan = _check_nans(ctx, "rescale", x)
    if nan is not None:
        return nan
    if x.is_infinite():
        return _invalid(ctx, "rescale", (x,), "rescale of Infinity")
    return _rescale_checked(ctx, x, exp, (x,), "rescale")


def _to_integral(ctx, x: Decimal, rounding, op: str, strict: bool) -> Decimal:
    nan = _check_nans(ctx, op, x)
    if nan is not None:
        return nan
    if x.is_infinite() or x.exponent >= 0:
        return x
    mode = ctx.rounding if rounding is None else Rounding.parse(rounding)
    c, inexact = round_coefficient(x._sign, x.coefficient, -x.exponent, mode)
    result = _D(x._sign, c, 0)
    sig: Signals = [Signal.ROUNDED]
    if inexact:
        sig.append(Signal.INEXACT)
    ctx._report(
        sig,
        result=result,
        operands=(x,),
        explanation=f"{op}: fractional digits discarded",
        force_trap=(Signal.INEXACT,) if strict else (),
    )
    return result


def to_integral_value(ctx, x: Decimal, rounding=None) -> Decimal:
    return _to_integral(ctx, x, rounding, "to_integral_value", strict=False)


def to_integral_exact(ctx, x: Decimal, rounding=None) -> Decimal:
    """Like to_integral_value, but a lost fraction raises Inexact unless ignored."""
    return _to_integral(ctx, x, rounding, "to_integral_exact", strict=True)


# ---------------------------------------------------------------------------
# Precision-normalised views
# ---------------------------------------------------------------------------

def to_normalized_int_scale(ctx, x: Decimal) -> Optional[Tuple[int, int]]:
    """(signed significand, exponent) with exactly precision digits, None for specials."""
    if x.is_special():
        return None
    fixed = plus(ctx, x) if not x.is_zero() else x
    if fixed.is_special():
        return None
    c, e = fixed.coefficient, fixed.exponent
    prec = ctx.precision
    if c and prec > 0:
        pad = prec - number_of_digits(c)
        if pad > 0:
            c, e = c * ten_pow(pad), e - pad
    return fixed._sign * c, e


# ---------------------------------------------------------------------------
# Context-free rounding (Decimal.round and friends)
# ---------------------------------------------------------------------------

def round_value(x: Decimal, places: Optional[int] = None, *, precision: Optional[int] = None, rounding=None):
    """Round without a context; see Decimal.round."""
    mode = Rounding.parse(rounding if rounding is not None else ROUND_METHOD_DEFAULT)
    if places is not None and precision is not None:
        raise TypeError("round() takes places or precision, not both")

    if places is None and precision is None:
        if x.is_nan():
            raise ValueError("cannot round a NaN to an integer")
        if x.is_infinite():
            raise OverflowError("cannot round an infinity to an integer")
        if x.exponent >= 0:
            return x._sign * x.coefficient * ten_pow(x.exponent)
        c, _ = round_coefficient(x._sign, x.coefficient, -x.exponent, mode)
        return x._sign * c

    if x.is_special():
        return x

    if precision is not None:
        if precision < 1:
            raise ValueError("precision must be >= 1")
        if x.is_zero():
            return x
        c, e = x.coefficient, x.exponent
        drop = number_of_digits(c) - precision
        if drop <= 0:
            return x
        c, _ = round_coefficient(x._sign, c, drop, mode)
        e += drop
        if number_of_digits(c) > precision:
            c //= 10
            e += 1
        return _D(x._sign, c, e)

    target = -places
    if x.exponent >= target:
        return x
    c, _ = round_coefficient(x._sign, x.coefficient, target - x.exponent, mode)
    return _D(x._sign, c, target)


__all__ = [
    "DEBUG_ENGINE",
    "apply",
    "add",
    "subtract",
    "multiply",
    "fma",
    "divide",
    "divide_int",
    "remainder",
    "remainder_near",
    "div",
    "modulo",
    "divmod_",
    "sqrt",
    "power",
    "compare",
    "plus",
    "minus",
    "abs_",
    "reduce",
    "logb",
    "scaleb",
    "quantize",
    "rescale",
    "to_integral_value",
    "to_integral_exact",
    "to_normalized_int_scale",
    "round_value",
]
