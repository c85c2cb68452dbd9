from __future__ import annotations

from typing import Iterator

import pytest

# Import project primitives
from fpnum import Context, getcontext, setcontext
from fpnum.context import DefaultContext, ExtendedContext


# -----------------------------
# Pytest fixtures
# -----------------------------

@pytest.fixture(autouse=True)
def fresh_active_context() -> Iterator[Context]:
    """Each test starts with a fresh DefaultContext copy as the active context."""
    prior = getcontext()
    ctx = DefaultContext.copy()
    setcontext(ctx)
    yield ctx
    setcontext(prior)


@pytest.fixture()
def ext_ctx() -> Context:
    """Nothing trapped, 9 digits, half_even."""
    return ExtendedContext.copy()


@pytest.fixture()
def exact_ctx() -> Context:
    return Context(precision="exact")


@pytest.fixture()
def small_ctx() -> Context:
    """Tight bounds for overflow/underflow tests (nothing trapped)."""
    return Context(precision=9, emin=-9, emax=9, traps=[])
