"""
Literal lexer for decimal numbers.

Grammar (case-insensitive, surrounding whitespace ignored):

    [+-] ( digits [ '.' [digits] ] | '.' digits ) [ ('e'|'E') [+-] digits ]
    [+-] ( 'Inf' | 'Infinity' )
    [+-] ( 'NaN' | 'sNaN' ) [digits]

Malformed input raises ConversionSyntax unconditionally: a caller cannot
continue with an unparsable literal, so this never goes through flags/traps.
"""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

from .digits import digits_to_int
from .exc import ConversionSyntax

# Debug printing control
DEBUG_PARSE = False

def _dbg(msg: str) -> None:
    if DEBUG_PARSE:
        print(msg)


_NUMBER_RE = re.compile(
    r"""
    (?P<sign>[-+])?
    (?:
        (?P<int>\d+)(?:\.(?P<frac>\d*))?
      | \.(?P<onlyfrac>\d+)
    )
    (?:[eE](?P<exp>[-+]?\d+))?
    \Z
    """,
    re.VERBOSE,
)

_SPECIAL_RE = re.compile(
    r"""
    (?P<sign>[-+])?
    (?:
        (?P<inf>inf(?:inity)?)
      | (?P<signal>s)?nan(?P<payload>\d*)
    )
    \Z
    """,
    re.VERBOSE | re.IGNORECASE,
)


class Literal(NamedTuple):
    """Parsed literal: value = sign * coefficient * 10**exponent, or a special."""

    sign: int
    coefficient: int
    exponent: int
    special: Optional[str] = None


def parse_literal(text: str) -> Literal:
    """Lex `text` into a Literal or raise ConversionSyntax."""
    if not isinstance(text, str):
        raise ConversionSyntax(f"literal must be str, got {type(text).__name__}")
    s = text.strip()
    _dbg(f"parse_literal: {s!r}")

    m = _NUMBER_RE.match(s)
    if m is not None:
        sign = -1 if m.group("sign") == "-" else +1
        if m.group("onlyfrac") is not None:
            int_part, frac_part = "", m.group("onlyfrac")
        else:
            int_part, frac_part = m.group("int"), m.group("frac") or ""
        exponent = int(m.group("exp") or "0") - len(frac_part)
        coefficient = digits_to_int((int_part + frac_part).lstrip("0") or "0")
        return Literal(sign, coefficient, exponent)

    m = _SPECIAL_RE.match(s)
    if m is not None:
        sign = -1 if m.group("sign") == "-" else +1
        if m.group("inf") is not None:
            return Literal(sign, 0, 0, "inf")
        payload = m.group("payload").lstrip("0")
        special = "snan" if m.group("signal") else "nan"
        return Literal(sign, digits_to_int(payload) if payload else 0, 0, special)

    raise ConversionSyntax(f"invalid decimal literal: {text!r}")


__all__ = ["Literal", "parse_literal", "DEBUG_PARSE"]
