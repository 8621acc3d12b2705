# -*- coding: utf-8 -*-
"""
Savings Goals
=============

Named savings targets. Goals are created **locked**: deposits are always
accepted, withdrawals only after the owner unlocks the goal.

Amounts use checked i128 arithmetic: a deposit that would overflow reverts
with ``MathError.OVERFLOW`` rather than wrapping. The largest target that can
safely absorb a deposit of the same size is ``I128_MAX // 2``.

Storage Layout
--------------
- b"goal:next"             -> last issued goal id
- b"goal:" + id (8 bytes)  -> CBOR(SavingsGoal)
- b"guard:link"            -> linked killswitch address (optional)

Events
------
- (b"savings", b"created")    {"goal_id", "owner", "target_amount", "target_date"}
- (b"savings", b"added")      {"goal_id", "amount", "new_total"}
- (b"savings", b"completed")  {"goal_id", "final_amount"}   when a deposit crosses the target
- (b"savings", b"withdrawn")  {"goal_id", "amount", "remaining"}
- (b"savings", b"locked") / (b"savings", b"unlocked")  {"goal_id"}

Errors: ``SavingsError`` GOAL_NOT_FOUND=1, INVALID_AMOUNT=2, GOAL_LOCKED=3,
INSUFFICIENT_BALANCE=4, UNAUTHORIZED=5.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import List, Optional, Sequence

from remit_vm.errors import ContractError

from remit_contracts.stdlib.access.ownable import require_owner
from remit_contracts.stdlib.control.guarded import guarded, link_killswitch
from remit_contracts.stdlib.math import safe_int
from remit_contracts.stdlib.records import Table

CONTRACT_NAME = "savings_goals"

EVENT_NAMESPACE = b"savings"


class SavingsError(IntEnum):
    GOAL_NOT_FOUND = 1
    INVALID_AMOUNT = 2
    GOAL_LOCKED = 3
    INSUFFICIENT_BALANCE = 4
    UNAUTHORIZED = 5


@dataclass(frozen=True)
class SavingsGoal:
    id: int
    owner: bytes
    name: str
    target_amount: int
    current_amount: int
    target_date: int
    locked: bool


_goals: Table[SavingsGoal] = Table(b"goal", SavingsGoal)


def _load(ctx, goal_id: int) -> SavingsGoal:
    goal = _goals.get(ctx, goal_id)
    if goal is None:
        raise ContractError(SavingsError.GOAL_NOT_FOUND, context={"goal_id": goal_id})
    return goal


def _goal_owner(ctx, caller: bytes, goal_id: int, *_: object) -> None:
    require_owner(_load(ctx, goal_id).owner, caller, SavingsError.UNAUTHORIZED)


def _owns_every_goal(ctx, caller: bytes, contributions: Sequence[Sequence[int]]) -> None:
    for item in contributions:
        _goal_owner(ctx, caller, _unpack(item)[0])


def _unpack(item: Sequence[int]):
    if len(item) != 2:
        raise ContractError(SavingsError.INVALID_AMOUNT, "contribution must be (goal_id, amount)")
    return item[0], item[1]


def _positive(amount: int) -> int:
    if safe_int.require_i128(amount) <= 0:
        raise ContractError(SavingsError.INVALID_AMOUNT)
    return amount


def _deposit(ctx, goal_id: int, amount: int) -> int:
    goal = _load(ctx, goal_id)
    _positive(amount)
    new_total = safe_int.add(goal.current_amount, amount)
    _goals.put(ctx, goal_id, replace(goal, current_amount=new_total))
    ctx.emit((EVENT_NAMESPACE, b"added"), {"goal_id": goal_id, "amount": amount, "new_total": new_total})
    if goal.current_amount < goal.target_amount <= new_total:
        ctx.emit((EVENT_NAMESPACE, b"completed"), {"goal_id": goal_id, "final_amount": new_total})
    return new_total


def init(ctx, killswitch: Optional[bytes] = None) -> None:
    link_killswitch(ctx, killswitch)


@guarded()
def create_goal(ctx, owner: bytes, name: str, target_amount: int, target_date: int) -> int:
    _positive(target_amount)
    goal_id = _goals.next_id(ctx)
    goal = SavingsGoal(
        id=goal_id,
        owner=bytes(owner),
        name=str(name),
        target_amount=target_amount,
        current_amount=0,
        target_date=int(target_date),
        locked=True,
    )
    _goals.put(ctx, goal_id, goal)
    ctx.emit(
        (EVENT_NAMESPACE, b"created"),
        {"goal_id": goal_id, "owner": goal.owner, "target_amount": target_amount, "target_date": goal.target_date},
    )
    return goal_id


@guarded(authorize=_goal_owner)
def add_to_goal(ctx, caller: bytes, goal_id: int, amount: int) -> int:
    return _deposit(ctx, goal_id, amount)


@guarded(authorize=_owns_every_goal)
def batch_add_to_goals(ctx, caller: bytes, contributions: Sequence[Sequence[int]]) -> List[int]:
    """Apply (goal_id, amount) pairs in order; any failure reverts the whole batch."""
    return [_deposit(ctx, *_unpack(item)) for item in contributions]


@guarded(authorize=_goal_owner)
def withdraw_from_goal(ctx, caller: bytes, goal_id: int, amount: int) -> int:
    goal = _load(ctx, goal_id)
    if goal.locked:
        raise ContractError(SavingsError.GOAL_LOCKED, context={"goal_id": goal_id})
    _positive(amount)
    if amount > goal.current_amount:
        raise ContractError(SavingsError.INSUFFICIENT_BALANCE, context={"goal_id": goal_id})
    remaining = safe_int.sub(goal.current_amount, amount)
    _goals.put(ctx, goal_id, replace(goal, current_amount=remaining))
    ctx.emit((EVENT_NAMESPACE, b"withdrawn"), {"goal_id": goal_id, "amount": amount, "remaining": remaining})
    return remaining


@guarded(authorize=_goal_owner)
def lock_goal(ctx, caller: bytes, goal_id: int) -> None:
    _goals.put(ctx, goal_id, replace(_load(ctx, goal_id), locked=True))
    ctx.emit((EVENT_NAMESPACE, b"locked"), {"goal_id": goal_id})


@guarded(authorize=_goal_owner)
def unlock_goal(ctx, caller: bytes, goal_id: int) -> None:
    _goals.put(ctx, goal_id, replace(_load(ctx, goal_id), locked=False))
    ctx.emit((EVENT_NAMESPACE, b"unlocked"), {"goal_id": goal_id})


def get_goal(ctx, goal_id: int) -> Optional[SavingsGoal]:
    return _goals.get(ctx, goal_id)


def get_all_goals(ctx, owner: bytes) -> List[SavingsGoal]:
    owner = bytes(owner)
    return list(_goals.scan(ctx, lambda g: g.owner == owner))


def is_goal_completed(ctx, goal_id: int) -> bool:
    goal = _goals.get(ctx, goal_id)
    return goal is not None and goal.current_amount >= goal.target_amount
