# -*- coding: utf-8 -*-
"""remit_contracts.stdlib.access — owner checks for record contracts."""
from __future__ import annotations

from .ownable import is_owner, require_owner

__all__ = ["is_owner", "require_owner"]
