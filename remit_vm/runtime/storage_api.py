"""
remit_vm.runtime.storage_api — the durable keyed state every contract reads and writes.

This module provides the host-facing journal and the contract-facing,
instance-scoped view that `InvocationContext.storage` exposes.

Design goals
------------
- Deterministic: pure functions over (key, value) with no wall-clock or I/O.
- All-or-nothing: writes land in a checkpoint overlay. The host commits the
  overlay when an entry point returns and rolls it back when it raises, so a
  trap discards every write made during that invocation, including writes by
  nested cross-contract calls that share the same top-level transaction.
- Pluggable: a tiny backend interface so a caller can swap in a real state DB.
- Safe: strict byte-length caps; typed helpers for common int/bool/record use.

Contract-facing API (InstanceStorage)
-------------------------------------
- get(key) -> Optional[bytes]        set(key, value) -> None
- remove(key) -> None                has(key) -> bool
- get_int(key) / set_int(key, v)     signed, 128-bit range
- get_bool(key) / set_bool(key, v)
- get_record(key) / set_record(key, obj)   canonical CBOR

Storage layout
--------------
Instance keys are namespaced by the owning contract's address:

    backend key = contract_address (32 bytes) + b"/" + instance key
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple, runtime_checkable

from ..errors import StorageError, VmError
from . import codec

# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for committed contract storage."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def exists(self, key: bytes) -> bool: ...
    def items(self) -> Iterator[Tuple[bytes, bytes]]: ...


class MemoryBackend:
    """In-memory backend for local runs and tests."""

    def __init__(self, initial: Optional[Dict[bytes, bytes]] = None) -> None:
        self._store: Dict[bytes, bytes] = dict(initial or {})

    def get(self, key: bytes) -> Optional[bytes]:
        return self._store.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._store[key] = value

    def delete(self, key: bytes) -> None:
        self._store.pop(key, None)

    def exists(self, key: bytes) -> bool:
        return key in self._store

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        return iter(sorted(self._store.items()))


# ------------------------------ Journal ------------------------------ #

_TOMBSTONE = object()


class JournaledStorage:
    """
    Committed backend plus a stack of write overlays (checkpoints).

    - begin():    push an empty overlay
    - commit():   merge the top overlay into the one below, or into the backend
    - rollback(): discard the top overlay

    Reads consult the newest overlay first. Deletions are tombstones until
    the outermost commit.
    """

    def __init__(self, backend: Optional[StorageBackend] = None) -> None:
        if backend is not None and not isinstance(backend, StorageBackend):
            raise VmError("storage backend must implement get/set/delete/exists/items")
        self._backend: StorageBackend = backend if backend is not None else MemoryBackend()
        self._overlays: List[Dict[bytes, Any]] = []

    @property
    def depth(self) -> int:
        return len(self._overlays)

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    # ---- checkpoints ---- #

    def begin(self) -> None:
        self._overlays.append({})

    def commit(self) -> None:
        if not self._overlays:
            raise VmError("commit without an open checkpoint")
        top = self._overlays.pop()
        if self._overlays:
            self._overlays[-1].update(top)
            return
        for k, v in top.items():
            if v is _TOMBSTONE:
                self._backend.delete(k)
            else:
                self._backend.set(k, v)

    def rollback(self) -> None:
        if not self._overlays:
            raise VmError("rollback without an open checkpoint")
        self._overlays.pop()

    # ---- raw access ---- #

    def get(self, key: bytes) -> Optional[bytes]:
        for overlay in reversed(self._overlays):
            if key in overlay:
                v = overlay[key]
                return None if v is _TOMBSTONE else v
        return self._backend.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        if not self._overlays:
            raise VmError("storage writes require an open checkpoint")
        self._overlays[-1][key] = value

    def delete(self, key: bytes) -> None:
        if not self._overlays:
            raise VmError("storage writes require an open checkpoint")
        self._overlays[-1][key] = _TOMBSTONE

    def exists(self, key: bytes) -> bool:
        return self.get(key) is not None

    def committed_items(self) -> List[Tuple[bytes, bytes]]:
        """Committed key/value pairs (ignores any open overlay)."""
        return list(self._backend.items())


# ------------------------- Instance-scoped view ------------------------- #

_I128_MIN = -(1 << 127)
_I128_MAX = (1 << 127) - 1


class InstanceStorage:
    """Storage view exclusively owned by one contract instance."""

    def __init__(
        self,
        journal: JournaledStorage,
        address: bytes,
        *,
        max_key_bytes: int = 64,
        max_value_bytes: int = 131_072,
    ) -> None:
        self._journal = journal
        self._prefix = bytes(address) + b"/"
        self._max_key = max_key_bytes
        self._max_value = max_value_bytes

    # ---- validation ---- #

    def _key(self, key: bytes) -> bytes:
        if not isinstance(key, (bytes, bytearray)):
            raise StorageError("storage key must be bytes", context={"type": type(key).__name__})
        if len(key) == 0:
            raise StorageError("storage key must be non-empty")
        if len(key) > self._max_key:
            raise StorageError(
                f"storage key too long (>{self._max_key} bytes)", context={"len": len(key)}
            )
        return self._prefix + bytes(key)

    def _value(self, value: bytes) -> bytes:
        if not isinstance(value, (bytes, bytearray)):
            raise StorageError("storage value must be bytes", context={"type": type(value).__name__})
        if len(value) > self._max_value:
            raise StorageError(
                f"storage value too large (>{self._max_value} bytes)", context={"len": len(value)}
            )
        return bytes(value)

    # ---- raw ---- #

    def get(self, key: bytes) -> Optional[bytes]:
        return self._journal.get(self._key(key))

    def set(self, key: bytes, value: bytes) -> None:
        self._journal.set(self._key(key), self._value(value))

    def remove(self, key: bytes) -> None:
        self._journal.delete(self._key(key))

    def has(self, key: bytes) -> bool:
        return self._journal.exists(self._key(key))

    # ---- typed helpers ---- #

    def get_int(self, key: bytes) -> Optional[int]:
        raw = self.get(key)
        if raw is None:
            return None
        return int.from_bytes(raw, "big", signed=True)

    def set_int(self, key: bytes, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise StorageError("set_int value must be int")
        if value < _I128_MIN or value > _I128_MAX:
            raise StorageError("set_int out of range (must fit in signed 128 bits)")
        self.set(key, value.to_bytes(16, "big", signed=True))

    def get_bool(self, key: bytes) -> Optional[bool]:
        raw = self.get(key)
        if raw is None:
            return None
        return raw == b"\x01"

    def set_bool(self, key: bytes, value: bool) -> None:
        self.set(key, b"\x01" if value else b"\x00")

    def get_record(self, key: bytes) -> Any:
        raw = self.get(key)
        if raw is None:
            return None
        return codec.loads(raw)

    def set_record(self, key: bytes, obj: Any) -> None:
        self.set(key, codec.dumps(obj))


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "JournaledStorage",
    "InstanceStorage",
]
