# -*- coding: utf-8 -*-
"""Remittance split contract package."""
from __future__ import annotations

from .contract import SplitConfig, SplitError

__all__ = ["SplitConfig", "SplitError"]
