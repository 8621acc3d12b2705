"""
remit_vm.errors — structured errors raised by the host and by contract code.

Tests and contracts import:

    from remit_vm.errors import VmError, ContractError

Every error carries a short machine-readable ``code``, a human-readable
``message`` and an optional ``context`` dict for debugging / CLI wiring.

Contract-level failures use :class:`ContractError`, which wraps a member of a
contract-specific ``IntEnum``. Those enums form a small closed set of numbered
conditions per contract; ``code`` renders as ``"<EnumName>:<MEMBER>"`` and
``number`` is the integer value of the member.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, Mapping, Optional


class VmError(Exception):
    """
    Base error for the remit_vm host.

    Supported call patterns:

        VmError("simple message")
        VmError("message", code="some_code", context={...})
    """

    default_code = "vm_error"

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code: str = code or self.default_code
        self.message: str = str(message)
        self.context: Dict[str, Any] = dict(context or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }


class ContractError(VmError):
    """Precondition violation reported by contract code."""

    def __init__(
        self,
        error: IntEnum,
        message: Optional[str] = None,
        *,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        code = f"{type(error).__name__}:{error.name}"
        super().__init__(
            message or error.name.lower().replace("_", " "),
            code=code,
            context=context,
        )
        self.error = error
        self.number = int(error)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["number"] = self.number
        return d


class AuthError(VmError):
    """The invocation carries no valid authorization for the claimed address."""

    default_code = "auth:unauthenticated"


class ReentrancyError(VmError):
    """A nested call tried to enter a contract that is already executing."""

    default_code = "host:reentrant_call"


class CallDepthError(VmError):
    default_code = "host:call_depth"


class StorageError(VmError):
    default_code = "storage:invalid"


class EventError(VmError):
    default_code = "event:invalid"


class EntryPointError(VmError):
    """Unknown contract address or function name, or a non-callable entry."""

    default_code = "host:no_entry_point"


class LedgerError(VmError):
    default_code = "ledger:invalid"


__all__ = [
    "VmError",
    "ContractError",
    "AuthError",
    "ReentrancyError",
    "CallDepthError",
    "StorageError",
    "EventError",
    "EntryPointError",
    "LedgerError",
]
