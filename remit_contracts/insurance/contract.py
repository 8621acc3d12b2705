# -*- coding: utf-8 -*-
"""
Insurance
=========

Micro-insurance policies with a monthly premium. A premium is due every
PREMIUM_PERIOD_DAYS (30) days; paying moves the next payment date to 30 days
after the current ledger time.

Storage Layout
--------------
- b"policy:next"             -> last issued policy id
- b"policy:" + id (8 bytes)  -> CBOR(InsurancePolicy)
- b"guard:link"              -> linked killswitch address (optional)

Events
------
- (b"insure", b"created")      {"policy_id", "owner", "monthly_premium", "coverage_amount"}
- (b"insure", b"paid")         {"policy_id", "amount", "next_payment_date"}
- (b"insure", b"deactivated")  {"policy_id"}

Errors: ``InsuranceError`` POLICY_NOT_FOUND=1, POLICY_INACTIVE=2,
INVALID_PREMIUM=3, INVALID_COVERAGE=4, UNAUTHORIZED=5.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional

from remit_vm.errors import ContractError

from remit_contracts.stdlib.access.ownable import require_owner
from remit_contracts.stdlib.control.guarded import guarded, link_killswitch
from remit_contracts.stdlib.math import safe_int
from remit_contracts.stdlib.records import Page, Table

CONTRACT_NAME = "insurance"

SECONDS_PER_DAY = 86_400
PREMIUM_PERIOD_DAYS = 30
EVENT_NAMESPACE = b"insure"


class InsuranceError(IntEnum):
    POLICY_NOT_FOUND = 1
    POLICY_INACTIVE = 2
    INVALID_PREMIUM = 3
    INVALID_COVERAGE = 4
    UNAUTHORIZED = 5


@dataclass(frozen=True)
class InsurancePolicy:
    id: int
    owner: bytes
    name: str
    coverage_type: str
    monthly_premium: int
    coverage_amount: int
    active: bool
    next_payment_date: int


_policies: Table[InsurancePolicy] = Table(b"policy", InsurancePolicy)


def _next_due(ctx) -> int:
    return ctx.now() + PREMIUM_PERIOD_DAYS * SECONDS_PER_DAY


def _load(ctx, policy_id: int) -> InsurancePolicy:
    policy = _policies.get(ctx, policy_id)
    if policy is None:
        raise ContractError(InsuranceError.POLICY_NOT_FOUND, context={"policy_id": policy_id})
    return policy


def _policy_owner(ctx, caller: bytes, policy_id: int) -> None:
    require_owner(_load(ctx, policy_id).owner, caller, InsuranceError.UNAUTHORIZED)


def init(ctx, killswitch: Optional[bytes] = None) -> None:
    link_killswitch(ctx, killswitch)


@guarded()
def create_policy(
    ctx,
    owner: bytes,
    name: str,
    coverage_type: str,
    monthly_premium: int,
    coverage_amount: int,
) -> int:
    if safe_int.require_i128(monthly_premium) <= 0:
        raise ContractError(InsuranceError.INVALID_PREMIUM)
    if safe_int.require_i128(coverage_amount) <= 0:
        raise ContractError(InsuranceError.INVALID_COVERAGE)
    policy_id = _policies.next_id(ctx)
    policy = InsurancePolicy(
        id=policy_id,
        owner=bytes(owner),
        name=str(name),
        coverage_type=str(coverage_type),
        monthly_premium=monthly_premium,
        coverage_amount=coverage_amount,
        active=True,
        next_payment_date=_next_due(ctx),
    )
    _policies.put(ctx, policy_id, policy)
    ctx.emit(
        (EVENT_NAMESPACE, b"created"),
        {
            "policy_id": policy_id,
            "owner": policy.owner,
            "monthly_premium": monthly_premium,
            "coverage_amount": coverage_amount,
        },
    )
    return policy_id


@guarded(authorize=_policy_owner)
def pay_premium(ctx, caller: bytes, policy_id: int) -> int:
    """Record a premium payment; returns the new next payment date."""
    policy = _load(ctx, policy_id)
    if not policy.active:
        raise ContractError(InsuranceError.POLICY_INACTIVE, context={"policy_id": policy_id})
    due = _next_due(ctx)
    _policies.put(ctx, policy_id, replace(policy, next_payment_date=due))
    ctx.emit(
        (EVENT_NAMESPACE, b"paid"),
        {"policy_id": policy_id, "amount": policy.monthly_premium, "next_payment_date": due},
    )
    return due


@guarded(authorize=_policy_owner)
def deactivate_policy(ctx, caller: bytes, policy_id: int) -> None:
    policy = _load(ctx, policy_id)
    _policies.put(ctx, policy_id, replace(policy, active=False))
    ctx.emit((EVENT_NAMESPACE, b"deactivated"), {"policy_id": policy_id})


def get_policy(ctx, policy_id: int) -> Optional[InsurancePolicy]:
    return _policies.get(ctx, policy_id)


def get_active_policies(ctx, owner: bytes, cursor: int = 0, limit: int = 0) -> Page[InsurancePolicy]:
    owner = bytes(owner)
    return _policies.page(ctx, cursor, limit, lambda p: p.owner == owner and p.active)


def get_total_monthly_premium(ctx, owner: bytes) -> int:
    owner = bytes(owner)
    total = 0
    for p in _policies.scan(ctx, lambda p: p.owner == owner and p.active):
        total = safe_int.add(total, p.monthly_premium)
    return total
