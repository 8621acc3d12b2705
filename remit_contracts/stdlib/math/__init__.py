# -*- coding: utf-8 -*-
"""remit_contracts.stdlib.math — integer-only arithmetic helpers."""
from __future__ import annotations

from . import safe_int
from .safe_int import I128_MAX, I128_MIN, MathError

__all__ = ["safe_int", "MathError", "I128_MIN", "I128_MAX"]
