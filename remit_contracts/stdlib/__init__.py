# -*- coding: utf-8 -*-
"""
remit_contracts.stdlib
======================

Reusable building blocks shared by the Remitwise contracts:

- ``control``  : Killswitch primitives and the Guarded-Operation decorator
- ``access``   : record-owner authorization
- ``math``     : checked i128 arithmetic
- ``records``  : id-keyed tables and cursor pagination
"""
from __future__ import annotations

from . import access, control, math, records

__all__ = ["access", "control", "math", "records"]
