# -*- coding: utf-8 -*-
"""Insurance contract package."""
from __future__ import annotations

from .contract import InsuranceError, InsurancePolicy

__all__ = ["InsuranceError", "InsurancePolicy"]
