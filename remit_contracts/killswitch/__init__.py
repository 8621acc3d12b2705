# -*- coding: utf-8 -*-
"""Emergency Killswitch contract package."""
from __future__ import annotations

from remit_contracts.stdlib.control.killswitch import KillswitchError

__all__ = ["KillswitchError"]
