"""
Core exception types for fpnum.

Two families live here:

- Signal exceptions (DecimalException and subclasses): raised only when the
  corresponding signal is trapped by the active Context. Untrapped signals are
  recorded in Context.flags instead, never both.
- Programmer errors (ContextError, ConversionError): always raised, never
  mediated by flags/traps.

These are dependency-free and may be imported by all core modules.
"""

__all__ = [
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


class DecimalException(ArithmeticError):
    """Base class for trapped decimal signals.

    Attributes
    ----------
    context : Context | None
        Snapshot of the context at the point the signal was raised (flags
        include every untrapped signal of the same occurrence).
    signals : tuple
        All trapped signals of the occurrence; the raised class is the first.
    result : Decimal | None
        The partially computed result the operation would have returned.
    operands : tuple
        Operands of the failing operation, for diagnostics.
    """

    def __init__(self, explanation=None, *, context=None, signals=(), result=None, operands=()):
        super().__init__(explanation or self.__class__.__name__)
        self.explanation = explanation
        self.context = context
        self.signals = tuple(signals)
        self.result = result
        self.operands = tuple(operands)


class Clamped(DecimalException):
    """Exponent of a result was altered to fit the representable range."""
    pass


class InvalidOperation(DecimalException):
    """An operation had no meaningful result (result is NaN)."""
    pass


class ConversionSyntax(InvalidOperation):
    """A literal could not be parsed. Always raised."""
    pass


class DivisionByZero(DecimalException, ZeroDivisionError):
    """Finite nonzero dividend divided by zero (result is signed Infinity)."""
    pass


class DivisionImpossible(InvalidOperation):
    """Integer quotient does not fit in the context precision."""
    pass


class DivisionUndefined(InvalidOperation, ZeroDivisionError):
    """Zero divided by zero."""
    pass


class Inexact(DecimalException):
    """Nonzero digits were discarded while rounding."""
    pass


class Overflow(DecimalException):
    """Adjusted exponent of a result exceeded emax."""
    pass


class Underflow(DecimalException):
    """Adjusted exponent of a nonzero result fell below emin."""
    pass


class Rounded(DecimalException):
    """Digits (zero or not) were discarded while rounding."""
    pass


class Subnormal(DecimalException):
    """Result is nonzero with adjusted exponent below emin."""
    pass


class ContextError(ValueError):
    """Raised for invalid context configuration (bad rounding name, bounds, presets)."""
    pass


class ConversionError(TypeError):
    """Raised when a value of an unsupported numeric kind is converted."""

    def __init__(self, value, target="Decimal"):
        super().__init__(
            f"cannot convert {type(value).__name__} to {target}"
        )
        self.value = value
        self.target = target
