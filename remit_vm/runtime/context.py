"""
remit_vm.runtime.context — LedgerInfo and the InvocationContext passed to contracts.

Every entry point receives an `InvocationContext` as its first argument. It is
the only way contract code reaches storage, ledger time, events, the
authenticated principals and other contracts, so a contract never touches
ambient globals and exactly one state record exists per deployed instance.

Design notes
------------
- Addresses are raw bytes (32 bytes for accounts and contracts).
- Hex strings (with or without "0x") are accepted by helpers and normalized to
  bytes.
- `LedgerInfo` numeric fields are validated to be non-negative.
- No wall-clock access: `now()` is the ledger timestamp set by the host.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from ..errors import LedgerError
from .auth import AuthContext
from .events_api import Event, EventSink
from .storage_api import InstanceStorage

# ----------------------------- helpers ----------------------------- #


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise LedgerError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise LedgerError(f"invalid hex string: {value!r}") from e
    raise LedgerError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def _require_non_negative_int(name: str, v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise LedgerError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise LedgerError(f"{name} must be non-negative, got {v}")
    return v


# ----------------------------- models ------------------------------ #


@dataclass(frozen=True)
class LedgerInfo:
    """
    Read-only ledger environment for the current transaction.

    Fields
    ------
    timestamp:  Ledger time in seconds. Monotonically non-decreasing.
    sequence:   Number of committed transactions so far.
    network_id: Domain separator used in authorization SignBytes.
    """

    timestamp: int = 0
    sequence: int = 0
    network_id: str = "remitwise-local"

    def __post_init__(self) -> None:
        _require_non_negative_int("timestamp", self.timestamp)
        _require_non_negative_int("sequence", self.sequence)
        if not isinstance(self.network_id, str) or not self.network_id:
            raise LedgerError("network_id must be a non-empty str")

    def with_timestamp(self, timestamp: int) -> "LedgerInfo":
        return replace(self, timestamp=timestamp)

    def bumped(self) -> "LedgerInfo":
        return replace(self, sequence=self.sequence + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "sequence": self.sequence, "network_id": self.network_id}

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "LedgerInfo":
        return LedgerInfo(
            timestamp=int(d.get("timestamp", 0)),
            sequence=int(d.get("sequence", 0)),
            network_id=str(d.get("network_id", "remitwise-local")),
        )


CallFn = Callable[[bytes, bytes, str, Sequence[Any]], Any]


class InvocationContext:
    """
    Explicit execution context threaded through one entry-point invocation.

    Attributes
    ----------
    address:  this contract's address
    ledger:   read-only LedgerInfo
    storage:  InstanceStorage scoped to `address`
    auth:     AuthContext with the already-authenticated principals
    invoker:  address of the calling contract for nested calls, else None
    """

    __slots__ = ("address", "ledger", "storage", "auth", "invoker", "_events", "_call")

    def __init__(
        self,
        *,
        address: bytes,
        ledger: LedgerInfo,
        storage: InstanceStorage,
        events: EventSink,
        auth: AuthContext,
        call: CallFn,
        invoker: Optional[bytes] = None,
    ) -> None:
        self.address = bytes(address)
        self.ledger = ledger
        self.storage = storage
        self.auth = auth
        self.invoker = invoker
        self._events = events
        self._call = call

    def now(self) -> int:
        return self.ledger.timestamp

    def emit(self, topics: Sequence[bytes], data: Optional[Mapping[str, Any]] = None) -> Event:
        return self._events.emit(self.address, topics, data)

    def call(self, address: bytes, fn: str, *args: Any) -> Any:
        """Invoke another contract inside the current top-level transaction."""
        return self._call(self.address, to_bytes(address), fn, args)

    def __repr__(self) -> str:
        return f"InvocationContext(address={to_hex(self.address)}, t={self.ledger.timestamp})"


__all__ = ["LedgerInfo", "InvocationContext", "to_bytes", "to_hex"]
