# -*- coding: utf-8 -*-
"""
remit_contracts.stdlib.control
==============================

Control primitives for Remitwise contracts.

1) **Killswitch** (`killswitch`): the Guard state machine's storage-level
   primitives (authority, paused flag, cooldown) used by the deployed
   Emergency Killswitch contract.

2) **Guarded operations** (`guarded`): the decorator and link helpers every
   other contract composes to consult one deployed Killswitch before mutating.

Usage
-----
    from remit_contracts.stdlib.control import guarded, link_killswitch

    def init(ctx, killswitch=None):
        link_killswitch(ctx, killswitch)

    @guarded()
    def do_something(ctx, caller: bytes) -> None:
        ...
"""
from __future__ import annotations

from . import killswitch
from .guarded import (LINK_KEY, guarded, link_killswitch, linked_killswitch,
                      require_linked_guard_not_paused)
from .killswitch import KillswitchError

__all__ = [
    "killswitch",
    "KillswitchError",
    "LINK_KEY",
    "guarded",
    "link_killswitch",
    "linked_killswitch",
    "require_linked_guard_not_paused",
]
