"""
Decimal value primitive: sign * coefficient * 10**exponent, or a special.

- Immutable: constructed from a literal, an int, a (sign, coefficient, exponent)
  triple, a Fraction or a float, or produced by an operation; never mutated.
- Context-free: a Decimal carries no precision. Rounding happens only when an
  operation runs under a Context (explicit `context=` argument, else the
  active context).
- Zero exists at every exponent; (+0, e) and (+0, e') are equal in value but
  differ in quantum.

Equality and ordering are numeric and computed in the integer domain
(adjusted exponents first, then aligned coefficients); never via float.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Optional, Tuple, Union

from .core.digits import number_of_digits, ten_pow
from .core.exc import ConversionError
from .core.fmt import format_decimal, to_sci_string
from .core.parse import parse_literal
from .core.signals import Signal

_HASH_MODULUS = sys.hash_info.modulus
_HASH_10INV = pow(10, _HASH_MODULUS - 2, _HASH_MODULUS)
_HASH_INF = sys.hash_info.inf

_SPECIALS = (None, "inf", "nan", "snan")


def _context(context):
    """Resolve an explicit context, options mapping or None (active context)."""
    from .context import define_context
    return define_context(context)


@dataclass(frozen=True, init=False, eq=False, repr=False)
class Decimal:
    """Arbitrary-precision decimal floating-point value."""

    _sign: int
    _coefficient: int
    _exponent: int
    _special: Optional[str]

    # ------------- constructors -------------

    def __init__(self, *args: Any, context=None) -> None:
        if len(args) == 0:
            self._set(+1, 0, 0, None)
        elif len(args) == 3:
            self._set(*_check_triple(*args), None)
        elif len(args) == 1:
            self._from_value(args[0], context)
        else:
            raise TypeError(f"Decimal() takes 0, 1 or 3 positional arguments ({len(args)} given)")

    def _set(self, sign: int, coefficient: int, exponent: int, special: Optional[str]) -> None:
        object.__setattr__(self, "_sign", sign)
        object.__setattr__(self, "_coefficient", coefficient)
        object.__setattr__(self, "_exponent", exponent)
        object.__setattr__(self, "_special", special)

    def _from_value(self, value: Any, context) -> None:
        if isinstance(value, Decimal):
            self._set(value._sign, value._coefficient, value._exponent, value._special)
        elif isinstance(value, str):
            lit = parse_literal(value)
            self._set(lit.sign, lit.coefficient, lit.exponent, lit.special)
        elif isinstance(value, int):
            self._set(-1 if value < 0 else +1, abs(int(value)), 0, None)
        elif isinstance(value, (tuple, list)) and len(value) == 3:
            self._set(*_check_triple(*value), None)
        elif isinstance(value, (Fraction, float)):
            from .convert import to_decimal
            d = to_decimal(value, context)
            self._set(d._sign, d._coefficient, d._exponent, d._special)
        else:
            raise ConversionError(value)

    @classmethod
    def _make(cls, sign: int, coefficient: int, exponent: int, special: Optional[str] = None) -> "Decimal":
        """Unchecked constructor for engine use."""
        obj = object.__new__(cls)
        obj._set(sign, coefficient, exponent, special)
        return obj

    @classmethod
    def zero(cls, sign: int = +1, exponent: int = 0) -> "Decimal":
        return cls._make(-1 if sign < 0 else +1, 0, exponent)

    @classmethod
    def infinity(cls, sign: int = +1) -> "Decimal":
        return cls._make(-1 if sign < 0 else +1, 0, 0, "inf")

    @classmethod
    def nan(cls, payload: int = 0, *, signaling: bool = False) -> "Decimal":
        return cls._make(+1, payload, 0, "snan" if signaling else "nan")

    # ------------- fields -------------

    @property
    def sign(self) -> Optional[int]:
        """+1 / -1 (also for zero and infinity); None for NaN."""
        if self._special in ("nan", "snan"):
            return None
        return self._sign

    @property
    def coefficient(self) -> int:
        return self._coefficient

    @property
    def exponent(self) -> int:
        return self._exponent

    @property
    def special(self) -> Optional[str]:
        return self._special

    @property
    def payload(self) -> int:
        """Diagnostic payload of a NaN (0 if none)."""
        return self._coefficient if self.is_nan() else 0

    def is_signed(self) -> bool:
        """Raw sign bit, defined for every value including NaN."""
        return self._sign < 0

    def as_tuple(self) -> Tuple[int, int, Union[int, str]]:
        """(sign, coefficient, exponent); specials report their tag as exponent."""
        if self._special is not None:
            return (self._sign, self._coefficient, self._special)
        return (self._sign, self._coefficient, self._exponent)

    # ------------- predicates -------------

    def is_finite(self) -> bool:
        return self._special is None

    def is_special(self) -> bool:
        return self._special is not None

    def is_infinite(self) -> bool:
        return self._special == "inf"

    def is_nan(self) -> bool:
        return self._special in ("nan", "snan")

    def is_qnan(self) -> bool:
        return self._special == "nan"

    def is_snan(self) -> bool:
        return self._special == "snan"

    def is_zero(self) -> bool:
        return self._special is None and self._coefficient == 0

    def is_integral(self) -> bool:
        if self._special is not None:
            return False
        if self._exponent >= 0 or self._coefficient == 0:
            return True
        if -self._exponent >= number_of_digits(self._coefficient):
            return False
        return self._coefficient % ten_pow(-self._exponent) == 0

    def is_subnormal(self, context=None) -> bool:
        if self._special is not None or self._coefficient == 0:
            return False
        return self.adjusted_exponent < _context(context).emin

    def is_normal(self, context=None) -> bool:
        if self._special is not None or self._coefficient == 0:
            return False
        return self.adjusted_exponent >= _context(context).emin

    # ------------- digit/exponent queries -------------

    @property
    def number_of_digits(self) -> int:
        """Digits in the coefficient (0 for specials)."""
        if self._special is not None:
            return 0
        return number_of_digits(self._coefficient)

    @property
    def adjusted_exponent(self) -> int:
        """Exponent of the most significant digit (scientific exponent)."""
        if self._special is not None:
            return 0
        return self._exponent + number_of_digits(self._coefficient) - 1

    @property
    def scientific_exponent(self) -> int:
        return self.adjusted_exponent

    @property
    def fractional_exponent(self) -> int:
        """Exponent as though the point preceded the first digit."""
        return self.adjusted_exponent + 1

    @property
    def integral_significand(self) -> int:
        return self._coefficient

    @property
    def integral_exponent(self) -> int:
        return self._exponent

    def to_int_scale(self) -> Optional[Tuple[int, int]]:
        """(signed coefficient, exponent), or None for specials."""
        if self._special is not None:
            return None
        return (self._sign * self._coefficient, self._exponent)

    # ------------- comparisons (integer domain) -------------

    def _compare_to(self, other: Any):
        """-1/0/1, None if a NaN is involved, or NotImplemented."""
        if isinstance(other, Fraction) and other.denominator != 1:
            if self.is_nan():
                return None
            if self.is_infinite():
                return self._sign
            mine = self.as_fraction()
            return (mine > other) - (mine < other)
        other = _convert_other(other)
        if other is NotImplemented:
            return NotImplemented
        if self.is_nan() or other.is_nan():
            return None
        return compare_values(self, other)

    def __eq__(self, other: object) -> bool:
        c = self._compare_to(other)
        if c is NotImplemented:
            return NotImplemented
        return c == 0

    def _ordering(self, other: Any, op: str):
        c = self._compare_to(other)
        if c is NotImplemented:
            return NotImplemented
        if c is None:
            ctx = _context(None)
            ctx._report(
                [Signal.INVALID_OPERATION],
                result=Decimal.nan(),
                operands=(self, other),
                explanation=f"ordering comparison '{op}' involving NaN",
            )
            return False
        return {"<": c < 0, "<=": c <= 0, ">": c > 0, ">=": c >= 0}[op]

    def __lt__(self, other: Any) -> bool:
        return self._ordering(other, "<")

    def __le__(self, other: Any) -> bool:
        return self._ordering(other, "<=")

    def __gt__(self, other: Any) -> bool:
        return self._ordering(other, ">")

    def __ge__(self, other: Any) -> bool:
        return self._ordering(other, ">=")

    def __hash__(self) -> int:
        if self._special == "snan":
            raise TypeError("cannot hash a signaling NaN value")
        if self._special == "nan":
            return object.__hash__(self)
        if self._special == "inf":
            return -_HASH_INF if self._sign < 0 else _HASH_INF
        if self._exponent >= 0:
            exp_hash = pow(10, self._exponent, _HASH_MODULUS)
        else:
            exp_hash = pow(_HASH_10INV, -self._exponent, _HASH_MODULUS)
        h = self._coefficient * exp_hash % _HASH_MODULUS
        h = -h if self._sign < 0 else h
        return -2 if h == -1 else h

    def __bool__(self) -> bool:
        return self._special is not None or self._coefficient != 0

    # ------------- conversions -------------

    def as_fraction(self) -> Fraction:
        """Exact rational value (finite values only)."""
        if self._special is not None:
            raise ValueError(f"cannot convert {self} to Fraction")
        if self._exponent >= 0:
            return Fraction(self._sign * self._coefficient * ten_pow(self._exponent))
        return Fraction(self._sign * self._coefficient, ten_pow(-self._exponent))

    def __int__(self) -> int:
        """Truncate toward zero."""
        if self.is_nan():
            raise ValueError("cannot convert NaN to integer")
        if self.is_infinite():
            raise OverflowError("cannot convert Infinity to integer")
        if self._exponent >= 0:
            return self._sign * self._coefficient * ten_pow(self._exponent)
        return self._sign * (self._coefficient // ten_pow(-self._exponent))

    __trunc__ = __int__

    def __float__(self) -> float:
        """Nearest binary float; no signal (sNaN maps to nan)."""
        if self.is_nan():
            return -math.nan if self._sign < 0 else math.nan
        return float(to_sci_string(self._sign, self._coefficient, self._exponent, self._special))

    def __floor__(self) -> int:
        return self.floor()

    def __ceil__(self) -> int:
        return self.ceil()

    def __round__(self, ndigits: Optional[int] = None):
        return self.round(ndigits, rounding="half_even")

    def convert_to(self, kind: type):
        from .convert import convert_to
        return convert_to(self, kind)

    # ------------- string output -------------

    def __str__(self) -> str:
        return format_decimal(self)

    def __repr__(self) -> str:
        return f"Decimal('{self}')"

    def __reduce__(self):
        return (self.__class__, (str(self),))

    def to_sci_string(self, context=None) -> str:
        return _context(context).to_sci_string(self)

    def to_eng_string(self, context=None) -> str:
        return _context(context).to_eng_string(self)

    def to_fixed_string(self) -> str:
        return format_decimal(self, "fixed")

    def to_string(self, context=None, notation: str = "sci") -> str:
        return _context(context).to_string(self, notation)

    # ------------- operations (delegate to a Context) -------------

    def add(self, other, context=None) -> "Decimal":
        return _context(context).add(self, other)

    def subtract(self, other, context=None) -> "Decimal":
        return _context(context).subtract(self, other)

    def multiply(self, other, context=None) -> "Decimal":
        return _context(context).multiply(self, other)

    def divide(self, other, context=None) -> "Decimal":
        return _context(context).divide(self, other)

    def divide_int(self, other, context=None) -> "Decimal":
        return _context(context).divide_int(self, other)

    def remainder(self, other, context=None) -> "Decimal":
        return _context(context).remainder(self, other)

    def remainder_near(self, other, context=None) -> "Decimal":
        return _context(context).remainder_near(self, other)

    def div(self, other, context=None) -> "Decimal":
        return _context(context).div(self, other)

    def modulo(self, other, context=None) -> "Decimal":
        return _context(context).modulo(self, other)

    def divmod(self, other, context=None) -> Tuple["Decimal", "Decimal"]:
        return _context(context).divmod(self, other)

    def sqrt(self, context=None) -> "Decimal":
        return _context(context).sqrt(self)

    def fma(self, other, third, context=None) -> "Decimal":
        return _context(context).fma(self, other, third)

    def power(self, other, context=None) -> "Decimal":
        return _context(context).power(self, other)

    def compare(self, other, context=None) -> "Decimal":
        return _context(context).compare(self, other)

    def abs(self, context=None) -> "Decimal":
        return _context(context).abs(self)

    def plus(self, context=None) -> "Decimal":
        return _context(context).plus(self)

    def minus(self, context=None) -> "Decimal":
        return _context(context).minus(self)

    def reduce(self, context=None) -> "Decimal":
        return _context(context).reduce(self)

    def logb(self, context=None) -> "Decimal":
        return _context(context).logb(self)

    def scaleb(self, other, context=None) -> "Decimal":
        return _context(context).scaleb(self, other)

    def quantize(self, other, context=None) -> "Decimal":
        return _context(context).quantize(self, other)

    def rescale(self, exponent: int, context=None) -> "Decimal":
        return _context(context).rescale(self, exponent)

    def same_quantum(self, other) -> bool:
        other = _convert_other(other, raiseit=True)
        if self.is_special() or other.is_special():
            return (self.is_nan() and other.is_nan()) or (self.is_infinite() and other.is_infinite())
        return self._exponent == other._exponent

    def to_integral_value(self, rounding=None, context=None) -> "Decimal":
        return _context(context).to_integral_value(self, rounding)

    def to_integral_exact(self, rounding=None, context=None) -> "Decimal":
        return _context(context).to_integral_exact(self, rounding)

    def copy_abs(self) -> "Decimal":
        return Decimal._make(+1, self._coefficient, self._exponent, self._special)

    def copy_negate(self) -> "Decimal":
        return Decimal._make(-self._sign, self._coefficient, self._exponent, self._special)

    def copy_sign(self, other) -> "Decimal":
        other = _convert_other(other, raiseit=True)
        return Decimal._make(other._sign, self._coefficient, self._exponent, self._special)

    def round(self, places: Optional[int] = None, *, precision: Optional[int] = None, rounding=None):
        """Round to `places` fractional digits or `precision` significant digits.

        With neither given the result is an int. Default rounding is half_up.
        Does not touch any context flags.
        """
        from .engine import round_value
        return round_value(self, places=places, precision=precision, rounding=rounding)

    def ceil(self, places: Optional[int] = None, *, precision: Optional[int] = None):
        return self.round(places, precision=precision, rounding="ceiling")

    def floor(self, places: Optional[int] = None, *, precision: Optional[int] = None):
        return self.round(places, precision=precision, rounding="floor")

    def truncate(self, places: Optional[int] = None, *, precision: Optional[int] = None):
        return self.round(places, precision=precision, rounding="down")

    # ------------- operator sugar (active context) -------------

    def __add__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).add(self, other)

    def __radd__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).add(other, self)

    def __sub__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).subtract(self, other)

    def __rsub__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).subtract(other, self)

    def __mul__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).multiply(self, other)

    def __rmul__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).multiply(other, self)

    def __truediv__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).divide(self, other)

    def __rtruediv__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).divide(other, self)

    def __floordiv__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).divide_int(self, other)

    def __rfloordiv__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).divide_int(other, self)

    def __mod__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).remainder(self, other)

    def __rmod__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).remainder(other, self)

    def __pow__(self, other, modulo=None):
        if modulo is not None:
            return NotImplemented
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).power(self, other)

    def __rpow__(self, other):
        other = _convert_other(other)
        if other is NotImplemented:
            return other
        return _context(None).power(other, self)

    def __neg__(self):
        return _context(None).minus(self)

    def __pos__(self):
        return _context(None).plus(self)

    def __abs__(self):
        return _context(None).abs(self)


# ----------------------------
# Module helpers
# ----------------------------

def _check_triple(sign: Any, coefficient: Any, exponent: Any) -> Tuple[int, int, int]:
    if sign not in (1, -1) or isinstance(sign, bool):
        raise ValueError(f"sign must be +1 or -1, got {sign!r}")
    if not isinstance(coefficient, int) or isinstance(coefficient, bool):
        raise TypeError("coefficient must be an int")
    if not isinstance(exponent, int) or isinstance(exponent, bool):
        raise TypeError("exponent must be an int")
    if coefficient < 0:
        raise ValueError("coefficient must be >= 0")
    return int(sign), int(coefficient), int(exponent)


def _convert_other(other: Any, raiseit: bool = False):
    """Closed coercion for operators: Decimal, int, Fraction, float.

    Returns NotImplemented for other kinds unless `raiseit` is set, in which
    case ConversionError is raised.
    """
    if isinstance(other, Decimal):
        return other
    if isinstance(other, (int, Fraction, float)):
        from .convert import to_decimal
        return to_decimal(other)
    if raiseit:
        raise ConversionError(other)
    return NotImplemented


def compare_values(x: Decimal, y: Decimal) -> int:
    """Numeric three-way comparison of two non-NaN Decimals."""
    if x._special == "inf" or y._special == "inf":
        if x._special == "inf" and y._special == "inf":
            return (x._sign > y._sign) - (x._sign < y._sign)
        if x._special == "inf":
            return x._sign
        return -y._sign
    x_zero, y_zero = x._coefficient == 0, y._coefficient == 0
    if x_zero and y_zero:
        return 0
    if x_zero:
        return -y._sign
    if y_zero:
        return x._sign
    if x._sign != y._sign:
        return x._sign
    ax, ay = x.adjusted_exponent, y.adjusted_exponent
    if ax != ay:
        mag = 1 if ax > ay else -1
    else:
        xc, yc = x._coefficient, y._coefficient
        if x._exponent >= y._exponent:
            xc *= ten_pow(x._exponent - y._exponent)
        else:
            yc *= ten_pow(y._exponent - x._exponent)
        mag = (xc > yc) - (xc < yc)
    return mag * x._sign


__all__ = ["Decimal", "compare_values"]
