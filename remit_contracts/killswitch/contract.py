# -*- coding: utf-8 -*-
"""
Emergency Killswitch
====================

An administrative circuit breaker that other contracts consult before they
mutate anything. One Authority may pause and unpause, schedule a post-incident
cooldown before which unpause is rejected, and hand authority to another
address.

Entry points
------------
Mutating (caller must be authenticated by the host):
- initialize(admin)                        first caller picks the Authority
- pause(caller)
- unpause(caller)                          rejected while the cooldown is in the future
- schedule_unpause(caller, at_timestamp)   alias: schedule_cooldown
- transfer_admin(caller, new_admin)        alias: transfer_authority
- do_transfer(caller, amount)              representative guarded operation
- do_mint(caller, amount)                  representative guarded operation

Guard check (consulted by linked contracts, needs no caller):
- assert_not_paused()                      fails CONTRACT_PAUSED / NOT_INITIALIZED

Read-only (never fail, available while paused):
- is_paused() -> bool
- get_admin() -> Optional[bytes]           alias: get_authority
- get_scheduled_unpause() -> Optional[int] alias: get_scheduled_cooldown

Events
------
- (b"killswitch", b"paused")
- (b"killswitch", b"unpaused")
- (b"killswitch", b"authority_transferred")

Errors: ``KillswitchError`` NOT_INITIALIZED=1, ALREADY_INITIALIZED=2,
UNAUTHORIZED=3, CONTRACT_PAUSED=4, INVALID_SCHEDULE=5.
"""
from __future__ import annotations

from typing import Optional

from remit_contracts.stdlib.control import killswitch as ks
from remit_contracts.stdlib.control.guarded import guarded
from remit_contracts.stdlib.math.safe_int import require_i128

CONTRACT_NAME = "killswitch"


def initialize(ctx, admin: bytes) -> None:
    ks.initialize(ctx, admin)


def pause(ctx, caller: bytes) -> None:
    ks.pause(ctx, caller)


def unpause(ctx, caller: bytes) -> None:
    ks.unpause(ctx, caller)


def schedule_unpause(ctx, caller: bytes, at_timestamp: int) -> None:
    ks.schedule_cooldown(ctx, caller, at_timestamp)


def transfer_admin(ctx, caller: bytes, new_admin: bytes) -> None:
    ks.transfer_authority(ctx, caller, new_admin)


def assert_not_paused(ctx) -> None:
    ks.require_not_paused(ctx)


def is_paused(ctx) -> bool:
    return ks.is_paused(ctx)


def get_admin(ctx) -> Optional[bytes]:
    return ks.get_authority(ctx)


def get_scheduled_unpause(ctx) -> Optional[int]:
    return ks.get_scheduled_cooldown(ctx)


schedule_cooldown = schedule_unpause
transfer_authority = transfer_admin
get_authority = get_admin
get_scheduled_cooldown = get_scheduled_unpause


# ---- Representative guarded operations ---------------------------------------
# Value movement is out of scope; these only run the guard sequence.


@guarded(pause_check=ks.require_not_paused)
def do_transfer(ctx, caller: bytes, amount: int) -> None:
    require_i128(amount)


@guarded(pause_check=ks.require_not_paused)
def do_mint(ctx, caller: bytes, amount: int) -> None:
    require_i128(amount)
