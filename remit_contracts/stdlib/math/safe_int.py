# -*- coding: utf-8 -*-
"""
remit_contracts.stdlib.math.safe_int
====================================

Checked signed 128-bit arithmetic for ledger amounts.

Goals
-----
- Amounts are Python ints constrained to the i128 range, never floats.
- **Checked** only: a result outside the range reverts with
  ``ContractError(MathError.OVERFLOW | MathError.UNDERFLOW)`` instead of
  wrapping or growing without bound.
- Division floors toward negative infinity (Python `//`) and rejects a zero
  divisor with ``MathError.DIVISION_BY_ZERO``.

Documented limit: the largest amount that can safely be added to itself once
is ``I128_MAX // 2``.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final

from remit_vm.errors import ContractError

__all__ = [
    "MathError",
    "I128_MIN",
    "I128_MAX",
    "require_i128",
    "add",
    "sub",
    "mul_div_floor",
]

I128_MIN: Final[int] = -(1 << 127)
I128_MAX: Final[int] = (1 << 127) - 1


class MathError(IntEnum):
    OVERFLOW = 1
    UNDERFLOW = 2
    DIVISION_BY_ZERO = 3
    NOT_AN_INTEGER = 4


# ---------------------------------------------------------------------------
# Internal guards
# ---------------------------------------------------------------------------

def _check(x: int) -> int:
    if x > I128_MAX:
        raise ContractError(MathError.OVERFLOW)
    if x < I128_MIN:
        raise ContractError(MathError.UNDERFLOW)
    return x


def require_i128(x: int) -> int:
    """Validate that `x` is a (non-bool) int inside the i128 range."""
    if isinstance(x, bool) or not isinstance(x, int):
        raise ContractError(MathError.NOT_AN_INTEGER, f"expected int, got {type(x).__name__}")
    return _check(x)


# ---------------------------------------------------------------------------
# Checked operations
# ---------------------------------------------------------------------------

def add(a: int, b: int) -> int:
    return _check(require_i128(a) + require_i128(b))


def sub(a: int, b: int) -> int:
    return _check(require_i128(a) - require_i128(b))


def mul_div_floor(a: int, b: int, d: int) -> int:
    """floor(a * b / d) with the intermediate product kept exact."""
    require_i128(a)
    require_i128(b)
    if require_i128(d) == 0:
        raise ContractError(MathError.DIVISION_BY_ZERO)
    return _check((a * b) // d)
