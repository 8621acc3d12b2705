# -*- coding: utf-8 -*-
"""
remit_contracts.stdlib.control.killswitch
=========================================

Storage-level primitives of the Emergency Killswitch (the Guard).

The Guard holds exactly three instance-scoped slots and moves through

    Uninitialized -> Active-Unpaused <-> Active-Paused

Every function takes the contract's ``InvocationContext`` explicitly; there is
no ambient state.

Storage Layout
--------------
- Authority address:
    key = b"ks:admin"     -> address bytes
- Paused flag:
    key = b"ks:paused"    -> b"\\x01" | b"\\x00"
- Cooldown (scheduled unpause):
    key = b"ks:unp_at"    -> signed 128-bit big-endian timestamp, absent when unset

Events
------
Topics only, no payload:
- (b"killswitch", b"paused")
- (b"killswitch", b"unpaused")
- (b"killswitch", b"authority_transferred")

Revert conditions (``KillswitchError``)
---------------------------------------
- NOT_INITIALIZED     : any mutating primitive before `initialize`
- ALREADY_INITIALIZED : second `initialize`
- UNAUTHORIZED        : authenticated caller is not the Authority
- CONTRACT_PAUSED     : `require_not_paused` while paused, and `unpause` while
                        the cooldown is still in the future
- INVALID_SCHEDULE    : cooldown timestamp not strictly after ledger time

Notes
-----
- `pause`/`unpause` succeed and emit even when the state already matches.
- The cooldown is validated once when set and cleared only by a successful
  `unpause`; it never expires on its own.
- `initialize` performs no authorization: the first caller picks the Authority.
"""
from __future__ import annotations

from enum import IntEnum
from typing import Final, Optional

from remit_vm.errors import ContractError

__all__ = [
    "KillswitchError",
    "ADMIN_KEY",
    "PAUSED_KEY",
    "UNPAUSE_AT_KEY",
    "EVENT_NAMESPACE",
    "initialize",
    "is_initialized",
    "get_authority",
    "is_paused",
    "get_scheduled_cooldown",
    "require_authority",
    "require_not_paused",
    "pause",
    "unpause",
    "schedule_cooldown",
    "transfer_authority",
]


class KillswitchError(IntEnum):
    NOT_INITIALIZED = 1
    ALREADY_INITIALIZED = 2
    UNAUTHORIZED = 3
    CONTRACT_PAUSED = 4
    INVALID_SCHEDULE = 5


# ---- Canonical storage keys / topics -----------------------------------------

ADMIN_KEY: Final[bytes] = b"ks:admin"
PAUSED_KEY: Final[bytes] = b"ks:paused"
UNPAUSE_AT_KEY: Final[bytes] = b"ks:unp_at"

EVENT_NAMESPACE: Final[bytes] = b"killswitch"


def _emit(ctx, action: bytes) -> None:
    ctx.emit((EVENT_NAMESPACE, action))


# ---- Read-only views (never fail) --------------------------------------------


def get_authority(ctx) -> Optional[bytes]:
    """Current Authority, or None before initialization."""
    v = ctx.storage.get(ADMIN_KEY)
    return v if v else None


def is_initialized(ctx) -> bool:
    return get_authority(ctx) is not None


def is_paused(ctx) -> bool:
    """Paused flag; False before initialization (absent means uninitialized)."""
    return bool(ctx.storage.get_bool(PAUSED_KEY))


def get_scheduled_cooldown(ctx) -> Optional[int]:
    return ctx.storage.get_int(UNPAUSE_AT_KEY)


# ---- Guards ------------------------------------------------------------------


def _authority_or_fail(ctx) -> bytes:
    admin = get_authority(ctx)
    if admin is None:
        raise ContractError(KillswitchError.NOT_INITIALIZED)
    return admin


def require_authority(ctx, caller: bytes) -> None:
    """
    Authenticate `caller`, then require it to be the Authority.

    Unauthenticated callers fail in the host's auth layer; authenticated
    non-authorities fail UNAUTHORIZED.
    """
    ctx.auth.require(caller)
    admin = _authority_or_fail(ctx)
    if bytes(caller) != admin:
        raise ContractError(KillswitchError.UNAUTHORIZED)


def require_not_paused(ctx) -> None:
    """Revert CONTRACT_PAUSED if paused; NOT_INITIALIZED before initialize."""
    _authority_or_fail(ctx)
    if is_paused(ctx):
        raise ContractError(KillswitchError.CONTRACT_PAUSED)


# ---- Transitions -------------------------------------------------------------


def initialize(ctx, admin: bytes) -> None:
    if is_initialized(ctx):
        raise ContractError(KillswitchError.ALREADY_INITIALIZED)
    if not isinstance(admin, (bytes, bytearray)) or len(admin) == 0:
        raise ContractError(KillswitchError.UNAUTHORIZED, "authority must be a non-empty address")
    ctx.storage.set(ADMIN_KEY, bytes(admin))
    ctx.storage.set_bool(PAUSED_KEY, False)


def pause(ctx, caller: bytes) -> None:
    require_authority(ctx, caller)
    ctx.storage.set_bool(PAUSED_KEY, True)
    _emit(ctx, b"paused")


def unpause(ctx, caller: bytes) -> None:
    require_authority(ctx, caller)
    at = get_scheduled_cooldown(ctx)
    if at is not None and ctx.now() < at:
        raise ContractError(KillswitchError.CONTRACT_PAUSED, "cooldown has not elapsed")
    ctx.storage.remove(UNPAUSE_AT_KEY)
    ctx.storage.set_bool(PAUSED_KEY, False)
    _emit(ctx, b"unpaused")


def schedule_cooldown(ctx, caller: bytes, at_timestamp: int) -> None:
    require_authority(ctx, caller)
    if isinstance(at_timestamp, bool) or not isinstance(at_timestamp, int) or at_timestamp <= ctx.now():
        raise ContractError(KillswitchError.INVALID_SCHEDULE)
    ctx.storage.set_int(UNPAUSE_AT_KEY, at_timestamp)


def transfer_authority(ctx, caller: bytes, new_authority: bytes) -> None:
    require_authority(ctx, caller)
    if not isinstance(new_authority, (bytes, bytearray)) or len(new_authority) == 0:
        raise ContractError(KillswitchError.UNAUTHORIZED, "new authority must be a non-empty address")
    ctx.storage.set(ADMIN_KEY, bytes(new_authority))
    _emit(ctx, b"authority_transferred")
