# -*- coding: utf-8 -*-
"""
remit_contracts.stdlib.access.ownable
=====================================

Principal-specific authorization for record contracts.

Records (bills, policies, goals, split configs) carry their own ``owner``
address. Mutations are allowed only for that owner; the check runs as step 2
of a guarded operation, after the caller has been authenticated.

Typical usage
-------------
    from remit_contracts.stdlib.access.ownable import require_owner

    def _only_owner(ctx, caller, bill_id):
        bill = _load(ctx, bill_id)
        require_owner(bill.owner, caller, BillError.UNAUTHORIZED)
"""
from __future__ import annotations

from enum import IntEnum
from typing import Optional

from remit_vm.errors import ContractError

__all__ = ["is_owner", "require_owner"]


def is_owner(record_owner: Optional[bytes], caller: bytes) -> bool:
    return record_owner is not None and len(record_owner) > 0 and bytes(record_owner) == bytes(caller)


def require_owner(record_owner: Optional[bytes], caller: bytes, error: IntEnum) -> None:
    """
    Revert with ``ContractError(error)`` unless `caller` equals `record_owner`.
    """
    if not is_owner(record_owner, caller):
        raise ContractError(error)
