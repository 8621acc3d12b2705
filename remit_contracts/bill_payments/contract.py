# -*- coding: utf-8 -*-
"""
Bill Payments
=============

Per-owner bills with optional recurrence. Paying a recurring bill schedules
the next one ``frequency_days`` after the paid bill's due date.

Every mutating entry point is a guarded operation: the caller is
authenticated, must own the record it touches, and the linked killswitch (if
any) must not be paused.

Storage Layout
--------------
- b"bill:next"             -> last issued bill id
- b"bill:" + id (8 bytes)  -> CBOR(Bill)
- b"guard:link"            -> linked killswitch address (optional)

Events
------
- (b"bill", b"created")    {"bill_id", "owner", "amount", "due_date"}
- (b"bill", b"paid")       {"bill_id", "owner", "amount"}
- (b"bill", b"recurring")  {"bill_id", "parent_id", "due_date"}

Errors: ``BillError`` BILL_NOT_FOUND=1, BILL_ALREADY_PAID=2,
INVALID_AMOUNT=3, INVALID_FREQUENCY=4, UNAUTHORIZED=5.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import List, Optional

from remit_vm.errors import ContractError

from remit_contracts.stdlib.access.ownable import require_owner
from remit_contracts.stdlib.control.guarded import guarded, link_killswitch
from remit_contracts.stdlib.math import safe_int
from remit_contracts.stdlib.records import Page, Table

CONTRACT_NAME = "bill_payments"

SECONDS_PER_DAY = 86_400
DEFAULT_CURRENCY = "XLM"
EVENT_NAMESPACE = b"bill"


class BillError(IntEnum):
    BILL_NOT_FOUND = 1
    BILL_ALREADY_PAID = 2
    INVALID_AMOUNT = 3
    INVALID_FREQUENCY = 4
    UNAUTHORIZED = 5


@dataclass(frozen=True)
class Bill:
    id: int
    owner: bytes
    name: str
    amount: int
    due_date: int
    recurring: bool
    frequency_days: int
    paid: bool
    created_at: int
    paid_at: Optional[int] = None
    currency: str = DEFAULT_CURRENCY


_bills: Table[Bill] = Table(b"bill", Bill)


def _load(ctx, bill_id: int) -> Bill:
    bill = _bills.get(ctx, bill_id)
    if bill is None:
        raise ContractError(BillError.BILL_NOT_FOUND, context={"bill_id": bill_id})
    return bill


def _bill_owner(ctx, caller: bytes, bill_id: int) -> None:
    require_owner(_load(ctx, bill_id).owner, caller, BillError.UNAUTHORIZED)


def init(ctx, killswitch: Optional[bytes] = None) -> None:
    link_killswitch(ctx, killswitch)


@guarded()
def create_bill(
    ctx,
    owner: bytes,
    name: str,
    amount: int,
    due_date: int,
    recurring: bool,
    frequency_days: int,
    currency: str = DEFAULT_CURRENCY,
) -> int:
    if safe_int.require_i128(amount) <= 0:
        raise ContractError(BillError.INVALID_AMOUNT)
    if recurring and frequency_days <= 0:
        raise ContractError(BillError.INVALID_FREQUENCY)
    bill_id = _bills.next_id(ctx)
    bill = Bill(
        id=bill_id,
        owner=bytes(owner),
        name=str(name),
        amount=amount,
        due_date=int(due_date),
        recurring=bool(recurring),
        frequency_days=int(frequency_days),
        paid=False,
        created_at=ctx.now(),
        currency=currency or DEFAULT_CURRENCY,
    )
    _bills.put(ctx, bill_id, bill)
    ctx.emit(
        (EVENT_NAMESPACE, b"created"),
        {"bill_id": bill_id, "owner": bill.owner, "amount": amount, "due_date": bill.due_date},
    )
    return bill_id


@guarded(authorize=_bill_owner)
def pay_bill(ctx, caller: bytes, bill_id: int) -> Optional[int]:
    """Mark a bill paid; returns the id of the next bill when it recurs."""
    bill = _load(ctx, bill_id)
    if bill.paid:
        raise ContractError(BillError.BILL_ALREADY_PAID, context={"bill_id": bill_id})
    now = ctx.now()
    _bills.put(ctx, bill_id, replace(bill, paid=True, paid_at=now))
    ctx.emit(
        (EVENT_NAMESPACE, b"paid"),
        {"bill_id": bill_id, "owner": bill.owner, "amount": bill.amount},
    )
    if not bill.recurring:
        return None

    next_id = _bills.next_id(ctx)
    next_due = bill.due_date + bill.frequency_days * SECONDS_PER_DAY
    _bills.put(
        ctx,
        next_id,
        replace(bill, id=next_id, due_date=next_due, paid=False, paid_at=None, created_at=now),
    )
    ctx.emit(
        (EVENT_NAMESPACE, b"recurring"),
        {"bill_id": next_id, "parent_id": bill_id, "due_date": next_due},
    )
    return next_id


def get_bill(ctx, bill_id: int) -> Optional[Bill]:
    return _bills.get(ctx, bill_id)


def get_unpaid_bills(ctx, owner: bytes, cursor: int = 0, limit: int = 0) -> Page[Bill]:
    owner = bytes(owner)
    return _bills.page(ctx, cursor, limit, lambda b: b.owner == owner and not b.paid)


def get_total_unpaid(ctx, owner: bytes) -> int:
    owner = bytes(owner)
    total = 0
    for b in _bills.scan(ctx, lambda b: b.owner == owner and not b.paid):
        total = safe_int.add(total, b.amount)
    return total


def get_all_bills(ctx, owner: bytes) -> List[Bill]:
    owner = bytes(owner)
    return list(_bills.scan(ctx, lambda b: b.owner == owner))
