"""
fpnum Core Constants
====================

Preset parameters and limits shared by the context layer and the engine.
Only plain integers and names live here; the Rounding enum itself is in
`rounding.py`.
"""

# NOTE: DEFAULT_* values seed `Context()` when no base context is given and are
# the parameters of the DefaultContext preset.

# ---------------------------------------------------------------------------
# Precision and exponent bounds
# ---------------------------------------------------------------------------

#: Significant digits of DefaultContext.
DEFAULT_PRECISION: int = 28

#: Significant digits of BasicContext and ExtendedContext.
SHORT_PRECISION: int = 9

#: Exponent bounds (adjusted exponent) shared by all presets.
DEFAULT_EMIN: int = -999_999_999
DEFAULT_EMAX: int = 999_999_999

#: Precision value meaning "exact / unbounded".
EXACT_PRECISION: int = 0


# ---------------------------------------------------------------------------
# Rounding defaults
# ---------------------------------------------------------------------------

DEFAULT_ROUNDING: str = "half_even"
BASIC_ROUNDING: str = "half_up"

#: Rounding used by Decimal.round() when none is given.
ROUND_METHOD_DEFAULT: str = "half_up"


# ---------------------------------------------------------------------------
# Working-precision policy
# ---------------------------------------------------------------------------

#: Guard digits for the fixed-point ln/exp used by non-integral powers.
POWER_GUARD_DIGITS: int = 10

#: Largest rational denominator tried when checking a non-integral power for
#: an exact result.
POWER_EXACT_MAX_DENOMINATOR: int = 64

#: Largest coefficient (in digits) built while computing an exact rational
#: power; beyond it the approximate path is used.
POWER_EXACT_MAX_DIGITS: int = 100_000

#: Chunk size (digits) for int<->str conversions of very long coefficients.
DIGIT_CHUNK: int = 4000


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

__all__ = [
    "DEFAULT_PRECISION",
    "SHORT_PRECISION",
    "DEFAULT_EMIN",
    "DEFAULT_EMAX",
    "EXACT_PRECISION",
    "DEFAULT_ROUNDING",
    "BASIC_ROUNDING",
    "ROUND_METHOD_DEFAULT",
    "POWER_GUARD_DIGITS",
    "POWER_EXACT_MAX_DENOMINATOR",
    "POWER_EXACT_MAX_DIGITS",
    "DIGIT_CHUNK",
]
