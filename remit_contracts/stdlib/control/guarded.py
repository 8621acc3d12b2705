# -*- coding: utf-8 -*-
"""
remit_contracts.stdlib.control.guarded
======================================

The Guarded-Operation pattern as a reusable decorator.

A consuming contract holds a reference to one deployed Killswitch (set in its
constructor with `link_killswitch`) and wraps each mutating entry point:

    @guarded(authorize=_only_owner)
    def pay_bill(ctx, caller: bytes, bill_id: int) -> None:
        ...

Fixed order of checks
---------------------
1. ``ctx.auth.require(caller)``: the caller must be cryptographically
   authenticated; the address argument alone proves nothing.
2. ``authorize(ctx, caller, *args)``: operation-specific rule, e.g. "caller is
   the record owner".
3. pause check: by default a cross-contract call to the linked Killswitch's
   ``assert_not_paused``. No link means no pause check.
4. the wrapped body performs its effect
5. the wrapped body emits its event

A failure in steps 1-3 raises before the body runs. The host rolls back the
whole invocation on any exception, so nothing is written and nothing emitted.

Storage Layout
--------------
- Linked killswitch address:
    key = b"guard:link"   -> contract address bytes
"""
from __future__ import annotations

import functools
from typing import Any, Callable, Final, Optional

__all__ = [
    "LINK_KEY",
    "guarded",
    "link_killswitch",
    "linked_killswitch",
    "require_linked_guard_not_paused",
]

LINK_KEY: Final[bytes] = b"guard:link"


def link_killswitch(ctx, address: Optional[bytes]) -> None:
    """Store the guard reference; None leaves the contract unguarded."""
    if address is None:
        return
    ctx.storage.set(LINK_KEY, bytes(address))


def linked_killswitch(ctx) -> Optional[bytes]:
    v = ctx.storage.get(LINK_KEY)
    return v if v else None


def require_linked_guard_not_paused(ctx) -> None:
    ks = linked_killswitch(ctx)
    if ks is None:
        return
    ctx.call(ks, "assert_not_paused")


def guarded(
    authorize: Optional[Callable[..., None]] = None,
    pause_check: Optional[Callable[[Any], None]] = require_linked_guard_not_paused,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate an entry point whose second parameter is the acting caller."""

    def deco(fn: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(fn)
        def wrapper(ctx, caller: bytes, *args: Any, **kwargs: Any) -> Any:
            ctx.auth.require(caller)
            if authorize is not None:
                authorize(ctx, caller, *args, **kwargs)
            if pause_check is not None:
                pause_check(ctx)
            return fn(ctx, caller, *args, **kwargs)

        wrapper.__guarded__ = True  # type: ignore[attr-defined]
        return wrapper

    return deco
