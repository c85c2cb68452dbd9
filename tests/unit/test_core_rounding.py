import pytest

from fpnum.core.exc import ContextError
from fpnum.core.rounding import Rounding, round_coefficient, toward_zero_on_overflow


# -----------------------------
# Rounding.parse
# -----------------------------

@pytest.mark.parametrize(
    "name,expected",
    [
        ("half_even", Rounding.HALF_EVEN),
        ("ROUND_HALF_UP", Rounding.HALF_UP),
        ("Half_Down", Rounding.HALF_DOWN),
        ("round_05up", Rounding.UP05),
        ("up05", Rounding.UP05),
        (Rounding.FLOOR, Rounding.FLOOR),
    ],
)
def test_parse_accepts_names(name, expected):
    print(f"[rounding-parse] {name!r} -> {expected}")
    assert Rounding.parse(name) is expected


def test_parse_unknown_raises():
    print("[rounding-parse] 'sideways' -> ContextError")
    with pytest.raises(ContextError):
        Rounding.parse("sideways")
    with pytest.raises(ContextError):
        Rounding.parse(3)


# -----------------------------
# round_coefficient (drop one digit unless noted)
# -----------------------------

@pytest.mark.parametrize(
    "mode,coefficient,expected",
    [
        # ties
        (Rounding.HALF_EVEN, 25, 2),
        (Rounding.HALF_EVEN, 35, 4),
        (Rounding.HALF_UP, 25, 3),
        (Rounding.HALF_DOWN, 25, 2),
        (Rounding.HALF_DOWN, 26, 3),
        # directed
        (Rounding.UP, 21, 3),
        (Rounding.DOWN, 29, 2),
        (Rounding.CEILING, 21, 3),
        (Rounding.FLOOR, 29, 2),
        # up05: only exact halves over a last digit of 0 or 5 move away from zero
        (Rounding.UP05, 5, 1),
        (Rounding.UP05, 55, 6),
        (Rounding.UP05, 25, 2),
        (Rounding.UP05, 51, 5),
        (Rounding.UP05, 59, 5),
    ],
)
def test_round_positive(mode, coefficient, expected):
    print(f"[round-coeff] {mode}: {coefficient} drop 1 -> {expected}")
    got, inexact = round_coefficient(+1, coefficient, 1, mode)
    assert got == expected
    assert inexact is (coefficient % 10 != 0)


@pytest.mark.parametrize(
    "mode,expected",
    [
        (Rounding.CEILING, 2),
        (Rounding.FLOOR, 3),
        (Rounding.UP, 3),
        (Rounding.DOWN, 2),
    ],
)
def test_round_negative_directed(mode, expected):
    print(f"[round-coeff-neg] {mode}: -21 drop 1 -> magnitude {expected}")
    got, _ = round_coefficient(-1, 21, 1, mode)
    assert got == expected


def test_exact_drop_is_not_inexact():
    got, inexact = round_coefficient(+1, 1200, 2, Rounding.HALF_EVEN)
    assert (got, inexact) == (12, False)


def test_carry_adds_a_digit():
    print("[round-coeff] 999 drop 1 half_up -> 100")
    assert round_coefficient(+1, 999, 1, Rounding.HALF_UP) == (100, True)


def test_drop_beyond_all_digits():
    print("[round-coeff] dropping more digits than present leaves less than half")
    assert round_coefficient(+1, 9, 3, Rounding.HALF_UP) == (0, True)
    assert round_coefficient(+1, 9, 3, Rounding.UP) == (1, True)
    assert round_coefficient(+1, 9, 2, Rounding.HALF_UP) == (0, True)
    assert round_coefficient(+1, 50, 2, Rounding.HALF_UP) == (1, True)


def test_rounding_is_idempotent():
    print("[round-coeff] rounding an already-rounded coefficient changes nothing")
    for mode in Rounding:
        once, _ = round_coefficient(+1, 123456789, 4, mode)
        again, inexact = round_coefficient(+1, once * 10000, 4, mode)
        assert again == once
        assert not inexact


@pytest.mark.parametrize(
    "mode,sign,expected",
    [
        (Rounding.DOWN, +1, True),
        (Rounding.HALF_EVEN, +1, False),
        (Rounding.CEILING, -1, True),
        (Rounding.CEILING, +1, False),
        (Rounding.FLOOR, +1, True),
        (Rounding.FLOOR, -1, False),
        (Rounding.UP, -1, False),
    ],
)
def test_toward_zero_on_overflow(mode, sign, expected):
    assert toward_zero_on_overflow(mode, sign) is expected
