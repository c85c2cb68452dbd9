"""
fpnum Core
==========

Context-free primitives for decimal arithmetic: signal kinds and flag sets,
rounding policies, integer digit helpers, the literal lexer and string output.
Everything here works on plain ints (sign, coefficient, exponent); the
Decimal type and the Context live one level up.
"""

# NOTE:
#   Modules in `core` never import from the package above them. Coefficients
#   are non-negative Python ints; rounding always goes through
#   `rounding.round_coefficient`.

# Preset parameters and limits
from .constants import (
    DEFAULT_PRECISION,
    SHORT_PRECISION,
    DEFAULT_EMIN,
    DEFAULT_EMAX,
    EXACT_PRECISION,
    DEFAULT_ROUNDING,
)

# Exceptions (signals and programmer errors)
from .exc import (
    DecimalException,
    Clamped,
    InvalidOperation,
    ConversionSyntax,
    DivisionByZero,
    DivisionImpossible,
    DivisionUndefined,
    Inexact,
    Overflow,
    Underflow,
    Rounded,
    Subnormal,
    ContextError,
    ConversionError,
)

# Signals and flag sets
from .signals import Signal, Flags, SIGNAL_PRIORITY

# Rounding policies
from .rounding import Rounding, round_coefficient

# Literal lexer and string output
from .parse import Literal, parse_literal
from .fmt import to_sci_string, to_fixed_string, format_decimal

__all__ = [
    # constants
    "DEFAULT_PRECISION",
    "SHORT_PRECISION",
    "DEFAULT_EMIN",
    "DEFAULT_EMAX",
    "EXACT_PRECISION",
    "DEFAULT_ROUNDING",
    # exceptions
    "DecimalException",
    "Clamped",
    "InvalidOperation",
    "ConversionSyntax",
    "DivisionByZero",
    "DivisionImpossible",
    "DivisionUndefined",
    "Inexact",
    "Overflow",
    "Underflow",
    "Rounded",
    "Subnormal",
    "ContextError",
    "ConversionError",
    # signals
    "Signal",
    "Flags",
    "SIGNAL_PRIORITY",
    # rounding
    "Rounding",
    "round_coefficient",
    # text
    "Literal",
    "parse_literal",
    "to_sci_string",
    "to_fixed_string",
    "format_decimal",
]
