# -*- coding: utf-8 -*-
"""Bill payments contract package."""
from __future__ import annotations

from .contract import Bill, BillError

__all__ = ["Bill", "BillError"]
