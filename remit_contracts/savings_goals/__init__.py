# -*- coding: utf-8 -*-
"""Savings goals contract package."""
from __future__ import annotations

from .contract import SavingsError, SavingsGoal

__all__ = ["SavingsError", "SavingsGoal"]
