"""
remit_vm runtime package

Host-facing building blocks: canonical codec, journaled storage, the event
sink, ledger/invocation context, the authentication oracle, the contract
loader and the Host transaction engine.

Convenience re-exports live here so callers can do:

    from remit_vm.runtime import Host, Signer, LedgerInfo
    from remit_vm.runtime import storage, events  # module namespaces

Notes
-----
- No wall-clock I/O or system randomness reaches contract code.
- Contract code only sees the InvocationContext it is handed.
"""

from __future__ import annotations

from ..version import __version__  # re-export
from . import codec as codec
from . import events_api as events
from . import loader as loader
from . import storage_api as storage
from .auth import AuthContext, Authorization, Signer, address_from_pubkey
from .context import InvocationContext, LedgerInfo
from .host import Host, InvocationResult

__all__ = [
    "__version__",
    "codec",
    "events",
    "loader",
    "storage",
    "AuthContext",
    "Authorization",
    "Signer",
    "address_from_pubkey",
    "InvocationContext",
    "LedgerInfo",
    "Host",
    "InvocationResult",
]
