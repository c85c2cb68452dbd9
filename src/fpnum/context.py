"""
Arithmetic context: precision, rounding, exponent bounds and the signal state.

A Context is the environment every operation runs in. It owns three Flags
sets:

- traps          signals that raise their exception
- flags          signals that occurred and were not trapped (sticky until cleared)
- ignored_flags  signals that are neither raised nor recorded

Each occurrence of a signal goes to exactly one of those channels (ignored,
raised or recorded). `_report` is the single place that decides.

Active context
--------------
The active context is per thread (threading.local). `getcontext()` lazily
installs a copy of DefaultContext; `local_context(...)` activates a working
copy for the duration of a with-block and restores the previous Context
object on every exit path.

Concurrency
-----------
Operations record flags on the context they run in, so a Context must not be
shared between threads that compute concurrently. Use one Context per thread
(the default) or guard a shared one with an external lock.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any, Iterable, Optional, Tuple

from . import engine
from .core.constants import (
    BASIC_ROUNDING,
    DEFAULT_EMAX,
    DEFAULT_EMIN,
    DEFAULT_PRECISION,
    DEFAULT_ROUNDING,
    EXACT_PRECISION,
    SHORT_PRECISION,
)
from .core.exc import ContextError
from .core.fmt import format_decimal, to_sci_string
from .core.rounding import Rounding
from .core.signals import SIGNAL_PRIORITY, Flags, Signal
from .number import Decimal, _convert_other

# Debug printing control
DEBUG_CONTEXT = False

def _dbg(msg: str) -> None:
    if DEBUG_CONTEXT:
        print(msg)


_DEFAULT_TRAPS = (Signal.DIVISION_BY_ZERO, Signal.OVERFLOW, Signal.INVALID_OPERATION)

_OPTION_ORDER = (
    "precision",
    "exact",
    "rounding",
    "emin",
    "emax",
    "clamp",
    "quiet",
    "capitals",
    "signal_flags",
    "traps",
    "flags",
    "ignored_flags",
)


class Context:
    """Mutable arithmetic environment.

    Context(base=None, **options) copies `base` (or the library defaults)
    and applies keyword options: precision, exact, rounding, emin, emax,
    clamp, quiet, capitals, signal_flags, traps, flags, ignored_flags.
    """

    __slots__ = (
        "_precision",
        "_rounding",
        "_emin",
        "_emax",
        "_traps",
        "_flags",
        "_ignored",
        "_clamp",
        "_quiet",
        "_capitals",
        "_signal_flags",
        "_frozen",
    )

    def __init__(self, base: Optional["Context"] = None, **options: Any) -> None:
        object.__setattr__(self, "_frozen", False)
        if base is None:
            self._precision = DEFAULT_PRECISION
            self._rounding = Rounding.parse(DEFAULT_ROUNDING)
            self._emin = DEFAULT_EMIN
            self._emax = DEFAULT_EMAX
            self._traps = Flags(_DEFAULT_TRAPS)
            self._flags = Flags()
            self._ignored = Flags()
            self._clamp = False
            self._quiet = False
            self._capitals = True
            self._signal_flags = True
        else:
            if not isinstance(base, Context):
                raise ContextError(f"base must be a Context, got {type(base).__name__}")
            self._precision = base._precision
            self._rounding = base._rounding
            self._emin = base._emin
            self._emax = base._emax
            self._traps = base._traps.copy()
            self._flags = base._flags.copy()
            self._ignored = base._ignored.copy()
            self._clamp = base._clamp
            self._quiet = base._quiet
            self._capitals = base._capitals
            self._signal_flags = base._signal_flags
        if options:
            self.assign(**options)

    def __setattr__(self, name: str, value: Any) -> None:
        if self._frozen:
            raise ContextError(f"cannot set {name.lstrip('_')!r} on a read-only preset context")
        object.__setattr__(self, name, value)

    # ------------- fields -------------

    @property
    def precision(self) -> int:
        return self._precision

    @precision.setter
    def precision(self, value: Any) -> None:
        if value == "exact":
            value = EXACT_PRECISION
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ContextError(f"precision must be an int >= 0 or 'exact', got {value!r}")
        was = self._precision
        self._precision = value
        if value == EXACT_PRECISION:
            self._traps.add(Signal.INEXACT)
            self._ignored.clear(Signal.INEXACT)
        elif was == EXACT_PRECISION:
            self._traps.clear(Signal.INEXACT)

    @property
    def exact(self) -> bool:
        return self._precision == EXACT_PRECISION

    @exact.setter
    def exact(self, value: bool) -> None:
        if value:
            self.precision = EXACT_PRECISION
        elif self._precision == EXACT_PRECISION:
            self.precision = DEFAULT_PRECISION

    @property
    def rounding(self) -> Rounding:
        return self._rounding

    @rounding.setter
    def rounding(self, value: Any) -> None:
        self._rounding = Rounding.parse(value)

    @property
    def emin(self) -> int:
        return self._emin

    @emin.setter
    def emin(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value > 0:
            raise ContextError(f"emin must be an int <= 0, got {value!r}")
        self._emin = value

    @property
    def emax(self) -> int:
        return self._emax

    @emax.setter
    def emax(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ContextError(f"emax must be an int >= 0, got {value!r}")
        self._emax = value

    @property
    def traps(self) -> Flags:
        return self._traps

    @traps.setter
    def traps(self, value: Any) -> None:
        self._traps = Flags(value)
        if self._precision == EXACT_PRECISION:
            self._traps.add(Signal.INEXACT)

    @property
    def flags(self) -> Flags:
        return self._flags

    @flags.setter
    def flags(self, value: Any) -> None:
        self._flags = Flags(value)

    @property
    def ignored_flags(self) -> Flags:
        return self._ignored

    @ignored_flags.setter
    def ignored_flags(self, value: Any) -> None:
        self._ignored = Flags(value)
        if self._precision == EXACT_PRECISION:
            self._ignored.clear(Signal.INEXACT)

    @property
    def clamp(self) -> bool:
        return self._clamp

    @clamp.setter
    def clamp(self, value: Any) -> None:
        self._clamp = bool(value)

    @property
    def quiet(self) -> bool:
        return self._quiet

    @quiet.setter
    def quiet(self, value: Any) -> None:
        self._quiet = bool(value)

    @property
    def capitals(self) -> bool:
        return self._capitals

    @capitals.setter
    def capitals(self, value: Any) -> None:
        self._capitals = bool(value)

    @property
    def signal_flags(self) -> bool:
        """When False untrapped signals are not recorded; traps still raise."""
        return self._signal_flags

    @signal_flags.setter
    def signal_flags(self, value: Any) -> None:
        self._signal_flags = bool(value)

    @property
    def etiny(self) -> int:
        """Smallest exponent of a subnormal result."""
        return self._emin - self._precision + 1

    @property
    def etop(self) -> int:
        """Largest exponent of a full-precision result."""
        return self._emax - self._precision + 1

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------- derivation -------------

    def assign(self, **options: Any) -> "Context":
        """Apply keyword options in place and return self."""
        unknown = set(options) - set(_OPTION_ORDER)
        if unknown:
            raise ContextError(f"unknown context option(s): {', '.join(sorted(unknown))}")
        for name in _OPTION_ORDER:
            if name in options:
                setattr(self, name, options[name])
        if self._emin > self._emax:
            raise ContextError("emin must not exceed emax")
        if self.exact:
            self._traps.add(Signal.INEXACT)
            self._ignored.clear(Signal.INEXACT)
        return self

    def derive(self, **options: Any) -> "Context":
        """New mutable Context from this one with `options` applied."""
        return Context(self, **options)

    def copy(self) -> "Context":
        """Mutable deep copy (flag sets are copied, presets become writable)."""
        return Context(self)

    def freeze(self) -> "Context":
        """Make this context read-only (used for the presets)."""
        self._traps.freeze()
        self._flags.freeze()
        self._ignored.freeze()
        object.__setattr__(self, "_frozen", True)
        return self

    def _working(self) -> "Context":
        return self.copy() if self._frozen else self

    # ------------- flag helpers -------------

    def clear_flags(self) -> None:
        self._flags.clear()

    def clear_traps(self) -> None:
        self._traps.clear()

    def ignore_flags(self, *signals: Any) -> list:
        """Ignore `signals`; returns those that were not ignored before.

        Inexact is never ignored in exact mode.
        """
        added = [Signal.of(s) for s in signals if s not in self._ignored]
        if self.exact:
            added = [s for s in added if s is not Signal.INEXACT]
        self._ignored.add(*added)
        return added

    def ignore_all_flags(self) -> list:
        return self.ignore_flags(*Signal)

    def regard_flags(self, *signals: Any) -> None:
        """Stop ignoring `signals` (all of them when none are given)."""
        self._ignored.clear(*signals)

    # ------------- signalling -------------

    def _report(
        self,
        signals: Iterable[Signal],
        *,
        result: Any = None,
        operands: Tuple = (),
        explanation: Optional[str] = None,
        forced: bool = False,
        force_trap: Iterable[Signal] = (),
    ) -> None:
        """Route one occurrence's signals to ignored / raised / recorded.

        Untrapped signals are recorded before the highest-priority trapped
        signal is raised. A raised signal is not recorded in flags, and
        nothing is recorded when `signal_flags` is off.
        `forced` occurrences (signaling NaN operands) ignore `quiet`;
        `force_trap` signals raise whatever `traps` says.
        """
        if self._quiet and not forced:
            return
        seen = []
        for s in signals:
            if s not in seen:
                seen.append(s)
        force_trap = tuple(force_trap)

        trapped = []
        for s in seen:
            members = (s,) if s.parent is None else (s, s.parent)
            if any(self._ignored.contains(m) for m in members):
                continue
            if s in force_trap or any(self._traps.contains(m) for m in members):
                trapped.extend(m for m in members if m not in trapped)
            elif self._signal_flags:
                self._flags.add(*members)

        if trapped:
            trapped.sort(key=SIGNAL_PRIORITY.index)
            first = trapped[0]
            _dbg(f"Context._report: raising {first.name} (trapped {[t.name for t in trapped]})")
            raise first.exception(
                explanation,
                context=self.copy(),
                signals=trapped,
                result=result,
                operands=operands,
            )
        _dbg(f"Context._report: recorded {[s.name for s in seen]}")

    # ------------- values -------------

    def create_decimal(self, value: Any = "0") -> Decimal:
        """Convert `value` and fit it into this context (rounding and bounds)."""
        ctx = self._working()
        if isinstance(value, (str, tuple, list)):
            d = Decimal(value)
        else:
            from .convert import to_decimal
            d = to_decimal(value, ctx)
        return engine.apply(ctx, d)

    # ------------- arithmetic -------------

    def add(self, x: Any, y: Any) -> Decimal:
        return engine.add(self._working(), _operand(x), _operand(y))

    def subtract(self, x: Any, y: Any) -> Decimal:
        return engine.subtract(self._working(), _operand(x), _operand(y))

    def multiply(self, x: Any, y: Any) -> Decimal:
        return engine.multiply(self._working(), _operand(x), _operand(y))

    def divide(self, x: Any, y: Any) -> Decimal:
        return engine.divide(self._working(), _operand(x), _operand(y))

    def divide_int(self, x: Any, y: Any) -> Decimal:
        return engine.divide_int(self._working(), _operand(x), _operand(y))

    def remainder(self, x: Any, y: Any) -> Decimal:
        return engine.remainder(self._working(), _operand(x), _operand(y))

    def remainder_near(self, x: Any, y: Any) -> Decimal:
        return engine.remainder_near(self._working(), _operand(x), _operand(y))

    def div(self, x: Any, y: Any) -> Decimal:
        return engine.div(self._working(), _operand(x), _operand(y))

    def modulo(self, x: Any, y: Any) -> Decimal:
        return engine.modulo(self._working(), _operand(x), _operand(y))

    def divmod(self, x: Any, y: Any) -> Tuple[Decimal, Decimal]:
        return engine.divmod_(self._working(), _operand(x), _operand(y))

    def sqrt(self, x: Any) -> Decimal:
        return engine.sqrt(self._working(), _operand(x))

    def fma(self, x: Any, y: Any, z: Any) -> Decimal:
        return engine.fma(self._working(), _operand(x), _operand(y), _operand(z))

    def power(self, x: Any, y: Any) -> Decimal:
        return engine.power(self._working(), _operand(x), _operand(y))

    def compare(self, x: Any, y: Any) -> Decimal:
        return engine.compare(self._working(), _operand(x), _operand(y))

    def abs(self, x: Any) -> Decimal:
        return engine.abs_(self._working(), _operand(x))

    def plus(self, x: Any) -> Decimal:
        return engine.plus(self._working(), _operand(x))

    def minus(self, x: Any) -> Decimal:
        return engine.minus(self._working(), _operand(x))

    def reduce(self, x: Any) -> Decimal:
        return engine.reduce(self._working(), _operand(x))

    def logb(self, x: Any) -> Decimal:
        return engine.logb(self._working(), _operand(x))

    def scaleb(self, x: Any, y: Any) -> Decimal:
        return engine.scaleb(self._working(), _operand(x), _operand(y))

    def quantize(self, x: Any, y: Any) -> Decimal:
        return engine.quantize(self._working(), _operand(x), _operand(y))

    def rescale(self, x: Any, exponent: int) -> Decimal:
        return engine.rescale(self._working(), _operand(x), int(exponent))

    def same_quantum(self, x: Any, y: Any) -> bool:
        return _operand(x).same_quantum(_operand(y))

    def to_integral_value(self, x: Any, rounding: Any = None) -> Decimal:
        return engine.to_integral_value(self._working(), _operand(x), rounding)

    def to_integral_exact(self, x: Any, rounding: Any = None) -> Decimal:
        return engine.to_integral_exact(self._working(), _operand(x), rounding)

    def copy_abs(self, x: Any) -> Decimal:
        return _operand(x).copy_abs()

    def copy_negate(self, x: Any) -> Decimal:
        return _operand(x).copy_negate()

    def copy_sign(self, x: Any, y: Any) -> Decimal:
        return _operand(x).copy_sign(_operand(y))

    # ------------- precision-normalised views -------------

    def to_normalized_int_scale(self, x: Any) -> Optional[Tuple[int, int]]:
        """(signed significand, exponent) scaled to exactly `precision` digits."""
        return engine.to_normalized_int_scale(self._working(), _operand(x))

    def normalized_integral_significand(self, x: Any) -> int:
        pair = self.to_normalized_int_scale(x)
        if pair is None:
            raise ValueError(f"{x} has no integral significand")
        return pair[0]

    def normalized_integral_exponent(self, x: Any) -> int:
        pair = self.to_normalized_int_scale(x)
        if pair is None:
            raise ValueError(f"{x} has no integral exponent")
        return pair[1]

    # ------------- output -------------

    def to_sci_string(self, x: Any) -> str:
        x = _operand(x)
        sign = -1 if x.is_signed() else +1
        return to_sci_string(sign, x.coefficient, x.exponent, x.special, capitals=self._capitals)

    def to_eng_string(self, x: Any) -> str:
        x = _operand(x)
        sign = -1 if x.is_signed() else +1
        return to_sci_string(sign, x.coefficient, x.exponent, x.special, capitals=self._capitals, eng=True)

    def to_string(self, x: Any, notation: str = "sci") -> str:
        return format_decimal(_operand(x), notation, capitals=self._capitals)

    def __repr__(self) -> str:
        return (
            f"Context(precision={self._precision}, rounding={self._rounding.value}, "
            f"emin={self._emin}, emax={self._emax}, clamp={self._clamp}, "
            f"traps={self._traps!r}, flags={self._flags!r})"
        )


def _operand(value: Any) -> Decimal:
    return _convert_other(value, raiseit=True)


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

DefaultContext = Context(
    precision=DEFAULT_PRECISION,
    rounding=DEFAULT_ROUNDING,
    traps=_DEFAULT_TRAPS,
).freeze()

BasicContext = Context(
    precision=SHORT_PRECISION,
    rounding=BASIC_ROUNDING,
    traps=_DEFAULT_TRAPS + (Signal.CLAMPED, Signal.UNDERFLOW),
).freeze()

ExtendedContext = Context(
    precision=SHORT_PRECISION,
    rounding=DEFAULT_ROUNDING,
    traps=(),
).freeze()


# ---------------------------------------------------------------------------
# Active context (per thread)
# ---------------------------------------------------------------------------

_local = threading.local()


def getcontext() -> Context:
    """Active context of the calling thread (a DefaultContext copy on first use)."""
    try:
        return _local.context
    except AttributeError:
        ctx = DefaultContext.copy()
        _local.context = ctx
        _dbg(f"getcontext: installed default for {threading.current_thread().name}")
        return ctx


def setcontext(ctx: Context) -> None:
    """Install `ctx` as the active context (presets are installed as a copy)."""
    if not isinstance(ctx, Context):
        raise ContextError(f"setcontext expects a Context, got {type(ctx).__name__}")
    _local.context = ctx.copy() if ctx.frozen else ctx


class local_context:
    """Context manager activating a working copy of a context.

        with local_context(precision=50) as ctx:
            ...

    The copy is made from `ctx` (or the active context) on entry, with
    `options` applied and `ignore` merged into ignored_flags. The previously
    active Context object is restored on exit, including when the block
    raises. Each instance keeps one stack per thread, so it can be re-entered
    and shared between threads.
    """

    def __init__(self, ctx: Optional[Context] = None, ignore: Any = (), **options: Any) -> None:
        if ctx is not None and not isinstance(ctx, Context):
            raise ContextError(f"local_context expects a Context, got {type(ctx).__name__}")
        self._ctx = ctx
        self._ignore = Flags(ignore)
        self._options = options
        self._saved = threading.local()

    def _stack(self) -> list:
        try:
            return self._saved.stack
        except AttributeError:
            self._saved.stack = []
            return self._saved.stack

    def __enter__(self) -> Context:
        prior = getcontext()
        working = Context(self._ctx if self._ctx is not None else prior, **self._options)
        if self._ignore:
            working.ignore_flags(*self._ignore)
        saved = self._stack()
        saved.append(prior)
        _local.context = working
        _dbg(f"local_context: enter depth={len(saved)}")
        return working

    def __exit__(self, exc_type, exc, tb) -> bool:
        saved = self._stack()
        _local.context = saved.pop()
        _dbg(f"local_context: exit depth={len(saved)}")
        return False


def define_context(ctx: Any = None, **options: Any) -> Context:
    """Resolve what an operation runs in.

    - Context     -> itself (presets: a private mutable copy)
    - None        -> the active context
    - Mapping     -> the active context derived with those options
    Extra keyword options always derive a new Context.
    """
    if isinstance(ctx, Mapping):
        options = {**ctx, **options}
        ctx = None
    if ctx is None:
        base = getcontext()
    elif isinstance(ctx, Context):
        base = ctx
    else:
        raise ContextError(f"expected a Context or options mapping, got {type(ctx).__name__}")
    if options:
        return base.derive(**options)
    return base.copy() if base.frozen else base


__all__ = [
    "Context",
    "DefaultContext",
    "BasicContext",
    "ExtendedContext",
    "getcontext",
    "setcontext",
    "local_context",
    "define_context",
    "DEBUG_CONTEXT",
]
