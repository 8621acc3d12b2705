"""
remit_vm — local ledger host for Remitwise contracts.

A tiny, stable facade over the runtime so tests, examples and the CLI share
one API:

- Host(config=None, ledger=None)
    Deploy contract modules, invoke entry points atomically, control ledger
    time, persist snapshots.
- Signer.generate() / Signer.from_seed(seed)
    Ed25519 accounts that produce signed Authorization entries.
- load_config() -> VMConfig
    Environment-driven runtime caps and flags (REMIT_VM_*).
- VmError / ContractError
    Structured errors with machine-readable codes.
"""

from __future__ import annotations

from .config import VMConfig, load_config
from .errors import (AuthError, CallDepthError, ContractError, EntryPointError,
                     ReentrancyError, StorageError, VmError)
from .runtime.auth import Authorization, Signer, address_from_pubkey
from .runtime.context import InvocationContext, LedgerInfo
from .runtime.host import Host, InvocationResult
from .version import __version__


def version() -> str:
    """Return the remit_vm semantic version string."""
    return __version__


__all__ = [
    "__version__",
    "version",
    "VMConfig",
    "load_config",
    "VmError",
    "ContractError",
    "AuthError",
    "CallDepthError",
    "EntryPointError",
    "ReentrancyError",
    "StorageError",
    "Authorization",
    "Signer",
    "address_from_pubkey",
    "InvocationContext",
    "LedgerInfo",
    "Host",
    "InvocationResult",
]
