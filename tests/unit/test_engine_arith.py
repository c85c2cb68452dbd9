import pytest

from fpnum import (
    Clamped,
    Context,
    Decimal,
    DivisionByZero,
    DivisionImpossible,
    DivisionUndefined,
    ExtendedContext,
    Inexact,
    InvalidOperation,
    Rounded,
    Rounding,
)


def _ext(**options) -> Context:
    ctx = ExtendedContext.copy()
    if options:
        ctx.assign(**options)
    return ctx


def _run(op: str, *args, **options) -> str:
    ctx = _ext(**options)
    return str(getattr(ctx, op)(*(Decimal(a) for a in args)))


# -----------------------------
# add / subtract
# -----------------------------

@pytest.mark.parametrize(
    "x,y,expected",
    [
        ("1", "1", "2"),
        ("1", "0.01", "1.01"),
        ("0.00", "0.0", "0.00"),
        ("-0", "0", "0"),
        ("-0", "-0", "-0"),
        ("0E+5", "1.23", "1.23"),
        ("12", "7.00", "19.00"),
        ("1E+2", "1E+4", "1.01E+4"),
    ],
)
def test_add(x, y, expected):
    got = _run("add", x, y)
    print(f"[add] {x} + {y} -> {got}")
    assert got == expected


def test_add_carry_rounds_without_inexact():
    ctx = _ext()
    r = ctx.add(Decimal("999999999"), Decimal(1))
    print(f"[add] 999999999 + 1 -> {r} flags={ctx.flags}")
    assert str(r) == "1.00000000E+9"
    assert ctx.flags == [Rounded]


def test_add_far_operand_folds_into_sticky_digit():
    ctx = _ext()
    r = ctx.add(Decimal("1E+20"), Decimal(1))
    assert str(r) == "1.00000000E+20"
    assert ctx.flags == {Inexact, Rounded}
    # the folded operand still decides directed rounding
    up = _ext(rounding="up").add(Decimal("1E+20"), Decimal("1E-50"))
    assert str(up) == "1.00000001E+20"


def test_add_zero_operand_is_padded_to_precision_only():
    r = _ext().add(Decimal("0E-20"), Decimal("1.23"))
    print(f"[add] 0E-20 + 1.23 -> {r}")
    assert str(r) == "1.23000000"


@pytest.mark.parametrize(
    "rounding,expected",
    [("half_even", "0.0"), ("floor", "-0.0"), ("ceiling", "0.0")],
)
def test_exact_cancellation_sign(rounding, expected):
    got = _run("subtract", "1.3", "1.3", rounding=rounding)
    assert got == expected


def test_zero_sum_signs_under_floor():
    assert _run("add", "0", "-0", rounding="floor") == "-0"
    assert _run("add", "0", "-0", rounding="ceiling") == "0"


def test_infinity_sums():
    assert _run("add", "Infinity", "1") == "Infinity"
    assert _run("subtract", "1", "Infinity") == "-Infinity"
    ctx = _ext()
    r = ctx.add(Decimal("Infinity"), Decimal("-Infinity"))
    assert r.is_qnan()
    assert InvalidOperation in ctx.flags


# -----------------------------
# multiply / fma
# -----------------------------

@pytest.mark.parametrize(
    "x,y,expected",
    [
        ("1.20", "3", "3.60"),
        ("-0", "5", "-0"),
        ("0.5", "-0E+3", "-0E+2"),
        ("123456789", "987654321", "1.21932631E+17"),
        ("-2", "-Infinity", "Infinity"),
    ],
)
def test_multiply(x, y, expected):
    got = _run("multiply", x, y)
    print(f"[multiply] {x} * {y} -> {got}")
    assert got == expected


def test_multiply_zero_by_infinity_is_invalid():
    ctx = _ext()
    assert ctx.multiply(Decimal(0), Decimal("Infinity")).is_nan()
    assert ctx.flags == [InvalidOperation]


def test_fma_rounds_once():
    ctx = Context(precision=3, traps=[])
    x, y, z = Decimal("1.01"), Decimal("1.01"), Decimal("-1.02")
    fused = ctx.fma(x, y, z)
    separate = ctx.add(ctx.multiply(x, y), z)
    print(f"[fma] fused={fused} separate={separate}")
    assert str(fused) == "0.0001"
    assert str(separate) == "0.00"


def test_fma_invalid_forms():
    ctx = _ext()
    assert ctx.fma(Decimal("Infinity"), Decimal(0), Decimal(1)).is_nan()
    assert ctx.fma(Decimal("Infinity"), Decimal(2), Decimal("-Infinity")).is_nan()
    assert str(ctx.fma(Decimal(2), Decimal(3), Decimal("-Infinity"))) == "-Infinity"


# -----------------------------
# divide
# -----------------------------

@pytest.mark.parametrize(
    "x,y,expected",
    [
        ("1", "4", "0.25"),
        ("1", "3", "0.333333333"),
        ("2", "3", "0.666666667"),
        ("1000", "10", "100"),
        ("2.40", "2", "1.20"),
        ("0.00", "3", "0.00"),
        ("-6", "2", "-3"),
    ],
)
def test_divide(x, y, expected):
    got = _run("divide", x, y)
    print(f"[divide] {x} / {y} -> {got}")
    assert got == expected


def test_divide_by_zero_and_undefined():
    ctx = _ext()
    assert str(ctx.divide(Decimal(1), Decimal(0))) == "Infinity"
    assert str(ctx.divide(Decimal(-1), Decimal(0))) == "-Infinity"
    assert ctx.flags == [DivisionByZero]
    ctx.clear_flags()
    assert ctx.divide(Decimal(0), Decimal(0)).is_qnan()
    assert ctx.flags == {DivisionUndefined, InvalidOperation}


def test_divide_by_infinity_is_a_clamped_tiny_zero():
    ctx = _ext()
    r = ctx.divide(Decimal(5), Decimal("-Infinity"))
    print(f"[divide] 5 / -Infinity -> {r}")
    assert str(r) == "-0E-1000000007"
    assert ctx.flags == [Clamped]


def test_divide_by_zero_raises_under_default_traps():
    with pytest.raises(DivisionByZero):
        Context().divide(1, 0)


# -----------------------------
# divide_int / remainder / remainder_near
# -----------------------------

@pytest.mark.parametrize(
    "x,y,expected",
    [("2", "3", "0"), ("10", "3", "3"), ("1", "0.3", "3"), ("-10", "3", "-3")],
)
def test_divide_int(x, y, expected):
    assert _run("divide_int", x, y) == expected


@pytest.mark.parametrize(
    "x,y,expected",
    [
        ("2.1", "3", "2.1"),
        ("10", "3", "1"),
        ("-10", "3", "-1"),
        ("10.2", "1", "0.2"),
        ("10", "0.3", "0.1"),
        ("3.6", "1.3", "1.0"),
    ],
)
def test_remainder(x, y, expected):
    got = _run("remainder", x, y)
    print(f"[remainder] {x} % {y} -> {got}")
    assert got == expected


@pytest.mark.parametrize(
    "x,y,expected",
    [
        ("2.1", "3", "-0.9"),
        ("10", "6", "-2"),
        ("10", "3", "1"),
        ("-10", "3", "-1"),
        ("10.2", "1", "0.2"),
        ("10", "0.3", "0.1"),
        ("3.6", "1.3", "-0.3"),
        ("5", "2", "1"),
        ("7", "2", "-1"),
    ],
)
def test_remainder_near(x, y, expected):
    got = _run("remainder_near", x, y)
    print(f"[remainder_near] {x}, {y} -> {got}")
    assert got == expected


def test_quotient_too_large_is_division_impossible():
    ctx = _ext()
    assert ctx.divide_int(Decimal("1E+10"), Decimal(1)).is_nan()
    assert ctx.flags == {DivisionImpossible, InvalidOperation}
    ctx.clear_flags()
    assert ctx.remainder(Decimal("1E+10"), Decimal(3)).is_nan()
    assert DivisionImpossible in ctx.flags


def test_remainder_invalid_forms():
    ctx = _ext()
    assert ctx.remainder(Decimal(1), Decimal(0)).is_nan()
    assert ctx.remainder(Decimal("Infinity"), Decimal(1)).is_nan()
    assert ctx.flags == [InvalidOperation]
    assert str(ctx.remainder(Decimal("2.5"), Decimal("Infinity"))) == "2.5"


# -----------------------------
# Floor-based div / modulo / divmod
# -----------------------------

@pytest.mark.parametrize(
    "x,y,q,r",
    [
        ("7", "2", "3", "1"),
        ("-7", "2", "-4", "1"),
        ("7", "-2", "-4", "-1"),
        ("-7", "-2", "3", "-1"),
        ("5.5", "2", "2", "1.5"),
    ],
)
def test_floor_division(x, y, q, r):
    ctx = _ext()
    got_q, got_r = ctx.divmod(Decimal(x), Decimal(y))
    print(f"[divmod] {x}, {y} -> ({got_q}, {got_r})")
    assert (str(got_q), str(got_r)) == (q, r)
    assert str(ctx.div(Decimal(x), Decimal(y))) == q
    assert str(ctx.modulo(Decimal(x), Decimal(y))) == r


def test_floor_division_by_zero():
    ctx = _ext()
    assert str(ctx.div(Decimal(1), Decimal(0))) == "Infinity"
    assert ctx.flags == [DivisionByZero]
    ctx.clear_flags()
    assert ctx.modulo(Decimal(1), Decimal(0)).is_nan()
    assert ctx.flags == [InvalidOperation]
    ctx.clear_flags()
    q, r = ctx.divmod(Decimal(-1), Decimal(0))
    assert str(q) == "-Infinity" and r.is_nan()
    assert ctx.flags == {DivisionByZero, InvalidOperation}


# -----------------------------
# sqrt
# -----------------------------

@pytest.mark.parametrize(
    "x,expected",
    [
        ("4", "2"),
        ("100", "10"),
        ("1", "1"),
        ("1.0", "1.0"),
        ("1.00", "1.0"),
        ("0.39", "0.624499800"),
        ("7", "2.64575131"),
        ("10", "3.16227766"),
        ("-0", "-0"),
        ("Infinity", "Infinity"),
    ],
)
def test_sqrt(x, expected):
    got = _run("sqrt", x)
    print(f"[sqrt] {x} -> {got}")
    assert got == expected


def test_sqrt_of_negative_is_invalid():
    ctx = _ext()
    assert ctx.sqrt(Decimal(-1)).is_nan()
    assert ctx.sqrt(Decimal("-Infinity")).is_nan()
    assert ctx.flags == [InvalidOperation]


def test_sqrt_follows_context_rounding():
    # sqrt(7) = 2.6457513110...
    assert _run("sqrt", "7", rounding="up") == "2.64575132"
    assert _run("sqrt", "7", rounding="down") == "2.64575131"


# -----------------------------
# compare and sign operations
# -----------------------------

@pytest.mark.parametrize(
    "x,y,expected",
    [("2.1", "3", "-1"), ("2.1", "2.10", "0"), ("3", "2.1", "1"), ("-0", "0", "0"), ("NaN", "1", "NaN")],
)
def test_compare(x, y, expected):
    assert _run("compare", x, y) == expected


def test_compare_signaling_nan_is_invalid():
    ctx = _ext()
    assert ctx.compare(Decimal("sNaN"), Decimal(1)).is_qnan()
    assert InvalidOperation in ctx.flags


@pytest.mark.parametrize(
    "op,x,expected,rounding",
    [
        ("plus", "-0", "0", "half_even"),
        ("minus", "0", "0", "half_even"),
        ("minus", "-0", "0", "half_even"),
        ("abs", "-0", "0", "half_even"),
        ("plus", "-0", "-0", "floor"),
        ("minus", "0", "-0", "floor"),
        ("minus", "1.30", "-1.30", "half_even"),
        ("abs", "-2.5", "2.5", "half_even"),
        ("plus", "1.234567891", "1.23456789", "half_even"),
    ],
)
def test_sign_operations(op, x, expected, rounding):
    assert _run(op, x, rounding=rounding) == expected


# -----------------------------
# reduce / logb / scaleb
# -----------------------------

@pytest.mark.parametrize(
    "x,expected",
    [
        ("2.1", "2.1"),
        ("-2.0", "-2"),
        ("1.200", "1.2"),
        ("120", "1.2E+2"),
        ("0.00", "0"),
        ("-0.00", "-0"),
        ("Infinity", "Infinity"),
    ],
)
def test_reduce(x, expected):
    assert _run("reduce", x) == expected


@pytest.mark.parametrize(
    "x,expected",
    [("250", "2"), ("2.50", "0"), ("0.03", "-2"), ("Infinity", "Infinity")],
)
def test_logb(x, expected):
    assert _run("logb", x) == expected


def test_logb_of_zero_divides_by_zero():
    ctx = _ext()
    assert str(ctx.logb(Decimal(0))) == "-Infinity"
    assert ctx.flags == [DivisionByZero]


@pytest.mark.parametrize(
    "x,n,expected",
    [("7.50", "-2", "0.0750"), ("7.50", "3", "7.50E+3"), ("Infinity", "4", "Infinity")],
)
def test_scaleb(x, n, expected):
    assert _run("scaleb", x, n) == expected


def test_scaleb_rejects_fractional_or_huge_scale():
    ctx = _ext()
    assert ctx.scaleb(Decimal("7.50"), Decimal("1.5")).is_nan()
    assert ctx.scaleb(Decimal(1), Decimal("1E+12")).is_nan()
    assert ctx.flags == [InvalidOperation]


# -----------------------------
# quantize / rescale / to_integral
# -----------------------------

@pytest.mark.parametrize(
    "x,y,expected",
    [
        ("2.17", "0.001", "2.170"),
        ("2.17", "0.01", "2.17"),
        ("2.17", "0.1", "2.2"),
        ("2.17", "1E+1", "0E+1"),
        ("-0.1", "1", "-0"),
        ("217", "1E-1", "217.0"),
        ("217", "1E+2", "2E+2"),
        ("Infinity", "-Infinity", "Infinity"),
    ],
)
def test_quantize(x, y, expected):
    got = _run("quantize", x, y)
    print(f"[quantize] {x} to {y} -> {got}")
    assert got == expected


def test_quantize_invalid_cases():
    ctx = _ext()
    assert ctx.quantize(Decimal(1), Decimal("1E-9")).is_nan()  # ten digits
    assert ctx.quantize(Decimal("Infinity"), Decimal(1)).is_nan()
    assert ctx.flags == [InvalidOperation]


def test_quantize_flags_rounding():
    ctx = _ext()
    ctx.quantize(Decimal("2.17"), Decimal("0.1"))
    assert ctx.flags == {Inexact, Rounded}


def test_rescale():
    ctx = _ext()
    assert str(ctx.rescale(Decimal("2.17"), -3)) == "2.170"
    assert str(ctx.rescale(Decimal("2.17"), 0)) == "2"


@pytest.mark.parametrize(
    "x,rounding,expected",
    [
        ("2.1", None, "2"),
        ("100", None, "100"),
        ("-7.5", None, "-8"),
        ("7.5", "down", "7"),
        ("7.1", Rounding.CEILING, "8"),
        ("1E+3", None, "1E+3"),
        ("-Infinity", None, "-Infinity"),
    ],
)
def test_to_integral_value(x, rounding, expected):
    ctx = _ext()
    assert str(ctx.to_integral_value(Decimal(x), rounding)) == expected


def test_to_integral_value_records_but_exact_raises():
    ctx = _ext()
    ctx.to_integral_value(Decimal("2.5"))
    assert ctx.flags == {Inexact, Rounded}
    with pytest.raises(Inexact):
        _ext().to_integral_exact(Decimal("2.5"))


def test_to_integral_exact_when_ignored_or_exact():
    ctx = _ext()
    ctx.ignore_flags(Inexact)
    assert str(ctx.to_integral_exact(Decimal("2.5"))) == "2"
    ctx = _ext()
    assert str(ctx.to_integral_exact(Decimal("2.0"))) == "2"
    assert ctx.flags == [Rounded]


# -----------------------------
# Precision-normalised views
# -----------------------------

def test_to_normalized_int_scale():
    ctx = Context(precision=5)
    assert ctx.to_normalized_int_scale(Decimal("1.2")) == (12000, -4)
    assert ctx.to_normalized_int_scale(Decimal("-123456")) == (-12346, 1)
    assert ctx.to_normalized_int_scale(Decimal("Infinity")) is None
    assert ctx.normalized_integral_significand(Decimal("1.2")) == 12000
    assert ctx.normalized_integral_exponent(Decimal("1.2")) == -4
    with pytest.raises(ValueError):
        ctx.normalized_integral_significand(Decimal("NaN"))
