"""
Top-level API for fpnum (General Decimal Arithmetic).

  - Decimal: immutable arbitrary-precision decimal value
  - Context: precision, rounding, exponent bounds, traps and flags
  - getcontext / setcontext / local_context: the per-thread active context

Arithmetic is exact on integers and rounded once, by the context, at the end
of each operation.
"""

from __future__ import annotations

from .core import (
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
    Signal,
    Flags,
    Rounding,
)
from .number import Decimal
from .context import (
    Context,
    DefaultContext,
    BasicContext,
    ExtendedContext,
    getcontext,
    setcontext,
    local_context,
    define_context,
)
from .convert import to_decimal, convert_to

# Rounding mode names as module constants
ROUND_HALF_EVEN = Rounding.HALF_EVEN
ROUND_HALF_UP = Rounding.HALF_UP
ROUND_HALF_DOWN = Rounding.HALF_DOWN
ROUND_UP = Rounding.UP
ROUND_DOWN = Rounding.DOWN
ROUND_CEILING = Rounding.CEILING
ROUND_FLOOR = Rounding.FLOOR
ROUND_05UP = Rounding.UP05

__version__ = "0.1.0"

__all__ = [
    # values and contexts
    "Decimal",
    "Context",
    "DefaultContext",
    "BasicContext",
    "ExtendedContext",
    "getcontext",
    "setcontext",
    "local_context",
    "define_context",
    # interop
    "to_decimal",
    "convert_to",
    # signals
    "Signal",
    "Flags",
    "Rounding",
    "ROUND_HALF_EVEN",
    "ROUND_HALF_UP",
    "ROUND_HALF_DOWN",
    "ROUND_UP",
    "ROUND_DOWN",
    "ROUND_CEILING",
    "ROUND_FLOOR",
    "ROUND_05UP",
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
]
