# -*- coding: utf-8 -*-
"""
Remittance Split
================

Divides an incoming remittance into spending / savings / bills / insurance
buckets by percentage. One owner configures the split; anyone may compute it.

Arithmetic
----------
For a total T and percentages (s, v, b, i) summing to 100:

    spending  = floor(T * s / 100)
    savings   = floor(T * v / 100)
    bills     = floor(T * b / 100)
    insurance = T - spending - savings - bills

so the four parts always sum to T exactly; rounding dust lands in insurance.
Before configuration the split defaults to [50, 30, 15, 5].

Replay protection
-----------------
``initialize_split`` and ``update_split`` take a per-owner nonce that must
equal the stored value (starting at 0) and is incremented on success.

Storage Layout
--------------
- b"split:config"                 -> CBOR(SplitConfig)
- b"split:nonce:" + owner         -> next expected nonce (i128)
- b"guard:link"                   -> linked killswitch address (optional)

Events
------
- (b"split", b"init")     {"owner", "percentages"}
- (b"split", b"updated")  {"owner", "percentages"}
- (b"split", b"calc")     {"total", "amounts"}

Errors: ``SplitError`` ALREADY_INITIALIZED=1, PERCENTAGES_DO_NOT_SUM_TO_100=2,
INVALID_AMOUNT=3, INVALID_NONCE=4, NOT_INITIALIZED=5, UNAUTHORIZED=6.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Final, List, Optional

from remit_vm.errors import ContractError

from remit_contracts.stdlib.access.ownable import require_owner
from remit_contracts.stdlib.control.guarded import guarded, link_killswitch
from remit_contracts.stdlib.math import safe_int

CONTRACT_NAME = "remittance_split"

DEFAULT_SPLIT: Final[List[int]] = [50, 30, 15, 5]
EVENT_NAMESPACE = b"split"

_CONFIG_KEY: Final[bytes] = b"split:config"
_NONCE_PREFIX: Final[bytes] = b"split:nonce:"


class SplitError(IntEnum):
    ALREADY_INITIALIZED = 1
    PERCENTAGES_DO_NOT_SUM_TO_100 = 2
    INVALID_AMOUNT = 3
    INVALID_NONCE = 4
    NOT_INITIALIZED = 5
    UNAUTHORIZED = 6


@dataclass(frozen=True)
class SplitConfig:
    owner: bytes
    spending_percent: int
    savings_percent: int
    bills_percent: int
    insurance_percent: int
    initialized: bool = True

    def percentages(self) -> List[int]:
        return [self.spending_percent, self.savings_percent, self.bills_percent, self.insurance_percent]


# ---- helpers -----------------------------------------------------------------


def _load_config(ctx) -> Optional[SplitConfig]:
    raw = ctx.storage.get_record(_CONFIG_KEY)
    return SplitConfig(**raw) if raw is not None else None


def _consume_nonce(ctx, owner: bytes, nonce: int) -> None:
    key = _NONCE_PREFIX + bytes(owner)
    expected = ctx.storage.get_int(key) or 0
    if nonce != expected:
        raise ContractError(SplitError.INVALID_NONCE, context={"expected": expected, "got": nonce})
    ctx.storage.set_int(key, expected + 1)


def _checked_percentages(*pcts: int) -> List[int]:
    for p in pcts:
        if isinstance(p, bool) or not isinstance(p, int) or p < 0 or p > 100:
            raise ContractError(SplitError.PERCENTAGES_DO_NOT_SUM_TO_100, "percentages must be ints in 0..100")
    if sum(pcts) != 100:
        raise ContractError(SplitError.PERCENTAGES_DO_NOT_SUM_TO_100, context={"sum": sum(pcts)})
    return list(pcts)


def _config_owner(ctx, caller: bytes, *_: object) -> None:
    config = _load_config(ctx)
    if config is None:
        raise ContractError(SplitError.NOT_INITIALIZED)
    require_owner(config.owner, caller, SplitError.UNAUTHORIZED)


def _store(ctx, owner: bytes, pcts: List[int]) -> SplitConfig:
    config = SplitConfig(bytes(owner), *pcts)
    ctx.storage.set_record(_CONFIG_KEY, config)
    return config


# ---- entry points ------------------------------------------------------------


def init(ctx, killswitch: Optional[bytes] = None) -> None:
    link_killswitch(ctx, killswitch)


@guarded()
def initialize_split(
    ctx, owner: bytes, nonce: int, spending: int, savings: int, bills: int, insurance: int
) -> bool:
    _consume_nonce(ctx, owner, nonce)
    if _load_config(ctx) is not None:
        raise ContractError(SplitError.ALREADY_INITIALIZED)
    config = _store(ctx, owner, _checked_percentages(spending, savings, bills, insurance))
    ctx.emit((EVENT_NAMESPACE, b"init"), {"owner": config.owner, "percentages": config.percentages()})
    return True


@guarded(authorize=_config_owner)
def update_split(
    ctx, caller: bytes, nonce: int, spending: int, savings: int, bills: int, insurance: int
) -> bool:
    _consume_nonce(ctx, caller, nonce)
    config = _store(ctx, caller, _checked_percentages(spending, savings, bills, insurance))
    ctx.emit((EVENT_NAMESPACE, b"updated"), {"owner": config.owner, "percentages": config.percentages()})
    return True


def get_config(ctx) -> Optional[SplitConfig]:
    return _load_config(ctx)


def get_split(ctx) -> List[int]:
    config = _load_config(ctx)
    return config.percentages() if config is not None else list(DEFAULT_SPLIT)


def get_nonce(ctx, owner: bytes) -> int:
    return ctx.storage.get_int(_NONCE_PREFIX + bytes(owner)) or 0


def calculate_split(ctx, total_amount: int) -> List[int]:
    if safe_int.require_i128(total_amount) <= 0:
        raise ContractError(SplitError.INVALID_AMOUNT)
    s, v, b, _ = get_split(ctx)
    spending = safe_int.mul_div_floor(total_amount, s, 100)
    savings = safe_int.mul_div_floor(total_amount, v, 100)
    bills = safe_int.mul_div_floor(total_amount, b, 100)
    insurance = safe_int.sub(safe_int.sub(safe_int.sub(total_amount, spending), savings), bills)
    amounts = [spending, savings, bills, insurance]
    ctx.emit((EVENT_NAMESPACE, b"calc"), {"total": total_amount, "amounts": amounts})
    return amounts
