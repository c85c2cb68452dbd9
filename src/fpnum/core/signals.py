"""
Signal enumeration and the Flags bitset.

A Context owns three independent Flags instances (traps, flags, ignored_flags).
Signals may be named by Signal member, exception class or case-insensitive
name; all three are normalised through `Signal.of`.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Iterator, Optional, Union

from .exc import (
    Clamped,
    ContextError,
    ConversionSyntax,
    DecimalException,
    DivisionByZero,
    DivisionImpossible,
    DivisionUndefined,
    Inexact,
    InvalidOperation,
    Overflow,
    Rounded,
    Subnormal,
    Underflow,
)


class Signal(Enum):
    """Exceptional-condition kinds. Value = (bit, exception class)."""

    CLAMPED = (1 << 0, Clamped)
    INVALID_OPERATION = (1 << 1, InvalidOperation)
    CONVERSION_SYNTAX = (1 << 2, ConversionSyntax)
    DIVISION_BY_ZERO = (1 << 3, DivisionByZero)
    DIVISION_IMPOSSIBLE = (1 << 4, DivisionImpossible)
    DIVISION_UNDEFINED = (1 << 5, DivisionUndefined)
    INEXACT = (1 << 6, Inexact)
    OVERFLOW = (1 << 7, Overflow)
    UNDERFLOW = (1 << 8, Underflow)
    ROUNDED = (1 << 9, Rounded)
    SUBNORMAL = (1 << 10, Subnormal)

    def __init__(self, bit: int, exception: type) -> None:
        self.bit = bit
        self.exception = exception

    @property
    def parent(self) -> Optional["Signal"]:
        """InvalidOperation for its subkinds, else None."""
        if self in _SUBKINDS:
            return Signal.INVALID_OPERATION
        return None

    @classmethod
    def of(cls, value: "SignalLike") -> "Signal":
        """Normalise a Signal, exception class or name to a Signal member."""
        if isinstance(value, Signal):
            return value
        if isinstance(value, type) and issubclass(value, DecimalException):
            for member in cls:
                if member.exception is value:
                    return member
        if isinstance(value, str):
            key = value.replace("_", "").lower()
            for member in cls:
                if member.name.replace("_", "").lower() == key:
                    return member
        raise ContextError(f"unknown signal: {value!r}")


_SUBKINDS = frozenset({
    Signal.CONVERSION_SYNTAX,
    Signal.DIVISION_IMPOSSIBLE,
    Signal.DIVISION_UNDEFINED,
})

#: Order in which trapped signals of one occurrence are raised.
SIGNAL_PRIORITY = (
    Signal.CONVERSION_SYNTAX,
    Signal.DIVISION_UNDEFINED,
    Signal.DIVISION_IMPOSSIBLE,
    Signal.INVALID_OPERATION,
    Signal.DIVISION_BY_ZERO,
    Signal.OVERFLOW,
    Signal.UNDERFLOW,
    Signal.SUBNORMAL,
    Signal.INEXACT,
    Signal.ROUNDED,
    Signal.CLAMPED,
)

SignalLike = Union[Signal, type, str]

_ALL_BITS = 0
for _member in Signal:
    _ALL_BITS |= _member.bit


class Flags:
    """Mutable bitset over Signal."""

    __slots__ = ("_bits", "_frozen")

    def __init__(self, signals: Union["Flags", Iterable[SignalLike], SignalLike, None] = None) -> None:
        self._frozen = False
        self._bits = 0
        if signals is None:
            return
        if isinstance(signals, Flags):
            self._bits = signals._bits
        elif isinstance(signals, (Signal, str, type)):
            self.add(signals)
        else:
            self.add(*signals)

    # ------------- mutation -------------

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ContextError("Flags of a preset context are read-only")

    def add(self, *signals: SignalLike) -> "Flags":
        self._check_mutable()
        for s in signals:
            self._bits |= Signal.of(s).bit
        return self

    def clear(self, *signals: SignalLike) -> "Flags":
        """Remove the given signals; with no arguments remove all."""
        self._check_mutable()
        if not signals:
            self._bits = 0
            return self
        for s in signals:
            self._bits &= ~Signal.of(s).bit
        return self

    def set_all(self) -> "Flags":
        self._check_mutable()
        self._bits = _ALL_BITS
        return self

    def update(self, other: Union["Flags", Iterable[SignalLike]]) -> "Flags":
        self._check_mutable()
        self._bits |= Flags(other)._bits
        return self

    def freeze(self) -> "Flags":
        self._frozen = True
        return self

    # ------------- queries -------------

    @property
    def frozen(self) -> bool:
        return self._frozen

    def contains(self, signal: SignalLike) -> bool:
        return bool(self._bits & Signal.of(signal).bit)

    def __contains__(self, signal: object) -> bool:
        try:
            return self.contains(signal)  # type: ignore[arg-type]
        except ContextError:
            return False

    def any(self) -> bool:
        return self._bits != 0

    def union(self, other: Union["Flags", Iterable[SignalLike]]) -> "Flags":
        result = Flags(self)
        result._bits |= Flags(other)._bits
        return result

    def __or__(self, other: Union["Flags", Iterable[SignalLike]]) -> "Flags":
        return self.union(other)

    def copy(self) -> "Flags":
        """Unfrozen copy."""
        return Flags(self)

    def __iter__(self) -> Iterator[Signal]:
        for member in Signal:
            if self._bits & member.bit:
                yield member

    def __len__(self) -> int:
        return bin(self._bits).count("1")

    def __bool__(self) -> bool:
        return self._bits != 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Flags):
            return self._bits == other._bits
        try:
            return self._bits == Flags(other)._bits  # type: ignore[arg-type]
        except (ContextError, TypeError):
            return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        names = ", ".join(member.exception.__name__ for member in self)
        return f"Flags([{names}])"


__all__ = ["Signal", "Flags", "SIGNAL_PRIORITY", "SignalLike"]
