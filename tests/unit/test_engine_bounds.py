import pytest

from fpnum import (
    Clamped,
    Context,
    Decimal,
    Inexact,
    Overflow,
    Rounded,
    Rounding,
    Subnormal,
    Underflow,
    local_context,
)


# Debug printing control
DEBUG_BOUNDS = False

def _dbg(msg: str) -> None:
    if DEBUG_BOUNDS:
        print(msg)


def _triple(d: Decimal):
    return d.sign, d.coefficient, d.exponent


# -----------------------------
# Overflow
# -----------------------------

def test_overflow_to_infinity(small_ctx):
    r = small_ctx.multiply(Decimal("1E+9"), Decimal(10))
    print(f"[overflow] 1E+9 * 10 -> {r} flags={small_ctx.flags}")
    assert str(r) == "Infinity"
    assert small_ctx.flags == {Overflow, Inexact, Rounded}


@pytest.mark.parametrize(
    "rounding,value,expected",
    [
        ("down", "1E+9", "9.99999999E+9"),
        ("floor", "1E+9", "9.99999999E+9"),
        ("floor", "-1E+9", "-Infinity"),
        ("ceiling", "-1E+9", "-9.99999999E+9"),
        ("ceiling", "1E+9", "Infinity"),
        ("half_up", "-1E+9", "-Infinity"),
        ("up05", "1E+9", "9.99999999E+9"),
    ],
)
def test_overflow_result_depends_on_rounding(small_ctx, rounding, value, expected):
    small_ctx.rounding = rounding
    got = str(small_ctx.multiply(Decimal(value), Decimal(10)))
    _dbg(f"[overflow] rounding={rounding} {value}*10 -> {got}")
    assert got == expected


def test_overflow_with_clamp_gives_largest_finite():
    ctx = Context(precision=9, emin=-9, emax=9, clamp=True, traps=[])
    assert str(ctx.multiply(Decimal("1E+9"), Decimal(10))) == "9.99999999E+9"


def test_overflow_raises_under_default_traps():
    ctx = Context(precision=9, emin=-9, emax=9)
    with pytest.raises(Overflow) as info:
        ctx.multiply(Decimal("1E+9"), Decimal(10))
    err = info.value
    print(f"[overflow] raised {type(err).__name__} signals={err.signals}")
    assert str(err.result) == "Infinity"
    assert not ctx.flags.contains(Overflow)
    # untrapped companions of the occurrence are still recorded
    assert ctx.flags == {Inexact, Rounded}


def test_rounding_carry_can_overflow(small_ctx):
    r = small_ctx.plus(Decimal("9.999999999E+9"))
    assert str(r) == "Infinity"
    assert Overflow in small_ctx.flags


# -----------------------------
# Underflow and subnormals
# -----------------------------

def test_exact_subnormal_still_signals_underflow(small_ctx):
    r = small_ctx.divide(Decimal("1E-9"), Decimal(10))
    print(f"[subnormal] 1E-9 / 10 -> {r} flags={small_ctx.flags}")
    assert str(r) == "1E-10"
    assert r.is_subnormal(small_ctx)
    assert small_ctx.flags == {Subnormal, Underflow}


def test_subnormal_rounds_at_etiny(small_ctx):
    r = small_ctx.multiply(Decimal("1.23456789E-9"), Decimal("1E-5"))
    print(f"[subnormal] -> {r} etiny={small_ctx.etiny}")
    assert small_ctx.etiny == -17
    assert _triple(r) == (+1, 1235, -17)
    assert str(r) == "1.235E-14"
    assert small_ctx.flags == {Subnormal, Underflow, Inexact, Rounded}


@pytest.mark.parametrize("sign", ["", "-"])
def test_underflow_to_zero_keeps_sign(small_ctx, sign):
    r = small_ctx.multiply(Decimal(sign + "1E-9"), Decimal("1E-9"))
    assert str(r) == sign + "0E-17"
    assert small_ctx.flags == {Subnormal, Underflow, Inexact, Rounded, Clamped}


def test_underflow_raises_when_trapped():
    ctx = Context(precision=9, emin=-9, emax=9, traps=[Underflow])
    with pytest.raises(Underflow) as info:
        ctx.multiply(Decimal("1E-9"), Decimal("1E-9"))
    assert info.value.result.is_zero()
    assert Subnormal in ctx.flags


# -----------------------------
# Zero exponents and clamp
# -----------------------------

@pytest.mark.parametrize(
    "x,y,expected",
    [("0E-9", "0E-9", "0E-17"), ("0E+9", "0E+9", "0E+9")],
)
def test_zero_exponent_is_clamped(small_ctx, x, y, expected):
    r = small_ctx.multiply(Decimal(x), Decimal(y))
    assert str(r) == expected
    assert small_ctx.flags == [Clamped]


def test_clamp_folds_large_exponent_down():
    ctx = Context(precision=9, emin=-9, emax=9, clamp=True, traps=[])
    r = ctx.plus(Decimal("1E+9"))
    print(f"[clamp] plus(1E+9) -> {_triple(r)}")
    assert _triple(r) == (+1, 100000000, 1)
    assert str(r) == "1.00000000E+9"
    assert ctx.flags == [Clamped]


def test_clamp_limits_zero_exponent_to_etop():
    ctx = Context(precision=9, emin=-9, emax=9, clamp=True, traps=[])
    r = ctx.plus(Decimal("0E+5"))
    assert r.exponent == ctx.etop == 1
    assert ctx.flags == [Clamped]


# -----------------------------
# Rounding properties
# -----------------------------

@pytest.mark.parametrize(
    "value,expected",
    [("2.5", "2"), ("3.5", "4"), ("-2.5", "-2"), ("0.55", "0.6"), ("25", "2E+1")],
)
def test_half_even_ties(value, expected):
    ctx = Context(precision=1, traps=[])
    assert str(ctx.plus(Decimal(value))) == expected


@pytest.mark.parametrize("rounding", list(Rounding))
def test_rounding_preserves_sign(small_ctx, rounding):
    small_ctx.rounding = rounding
    neg = small_ctx.plus(Decimal("-1.23456789012"))
    tiny = small_ctx.multiply(Decimal("-1E-9"), Decimal("1E-9"))
    _dbg(f"[sign] {rounding}: {neg} {tiny}")
    assert neg.is_signed()
    assert tiny.is_signed()


@pytest.mark.parametrize("value", ["1.23456789012", "-98765.4321098", "1E-12", "9.99999999999E+8"])
def test_fix_is_idempotent(small_ctx, value):
    once = small_ctx.plus(Decimal(value))
    small_ctx.clear_flags()
    twice = small_ctx.plus(once)
    assert _triple(once) == _triple(twice)
    assert not small_ctx.flags.contains(Inexact)


@pytest.mark.parametrize("value", ["0.333333333", "1.2E+7", "-0.00", "1E-10", "Infinity", "-NaN12"])
def test_results_survive_a_string_round_trip(small_ctx, value):
    r = small_ctx.plus(Decimal(value))
    back = Decimal(str(r))
    assert str(back) == str(r)
    if r.is_finite():
        assert _triple(back) == _triple(r)


# -----------------------------
# Exact mode
# -----------------------------

def test_exact_mode_traps_inexact(exact_ctx):
    assert exact_ctx.exact
    with pytest.raises(Inexact):
        exact_ctx.divide(Decimal(1), Decimal(3))
    with pytest.raises(Inexact):
        exact_ctx.sqrt(Decimal(2))


def test_exact_mode_keeps_every_digit(exact_ctx):
    assert str(exact_ctx.divide(Decimal(1), Decimal(4))) == "0.25"
    assert str(exact_ctx.divide(Decimal(7), Decimal(80))) == "0.0875"
    assert str(exact_ctx.sqrt(Decimal("0.25"))) == "0.5"
    product = exact_ctx.multiply(Decimal("1.23456789012345678901234567890"), Decimal(3))
    assert str(product) == "3.70370367037037036703703703670"
    total = exact_ctx.add(Decimal("1E+100"), Decimal("1E-100"))
    assert total.number_of_digits == 201
    assert not exact_ctx.flags


def test_exact_mode_approximation_when_quiet(exact_ctx):
    with local_context(exact_ctx, quiet=True) as ctx:
        r = ctx.divide(Decimal(1), Decimal(3))
        print(f"[exact] quiet 1/3 -> {r} flags={ctx.flags}")
        assert str(r) == "0.33333"
        assert not ctx.flags


def test_exact_mode_refuses_to_ignore_inexact(exact_ctx):
    with local_context(exact_ctx, ignore=[Inexact, Rounded]) as ctx:
        assert Inexact not in ctx.ignored_flags
        assert Rounded in ctx.ignored_flags
        with pytest.raises(Inexact):
            ctx.divide(Decimal(1), Decimal(3))


def test_exact_mode_has_no_subnormals():
    ctx = Context(precision="exact", emin=-9, emax=9)
    assert ctx.etiny == -8
    with pytest.raises(Inexact) as info:
        ctx.multiply(Decimal("1E-9"), Decimal("1E-1"))
    r = info.value.result
    assert r.is_zero()
    assert str(r) == "0E-8"
    assert {Underflow, Subnormal, Clamped} <= set(s.exception for s in ctx.flags)
