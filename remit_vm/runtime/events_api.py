from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..errors import EventError

# Basic bounds
MAX_TOPICS = 4
MAX_TOPIC_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_INT_BITS = 256

# Keys must be identifier-like: letters/underscore, then letters/digits/underscore.
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class Event:
    """A notification recorded when an entry point commits."""

    contract: bytes
    topics: Tuple[bytes, ...]
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def namespace(self) -> bytes:
        return self.topics[0]

    @property
    def action(self) -> Optional[bytes]:
        return self.topics[1] if len(self.topics) > 1 else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract": "0x" + self.contract.hex(),
            "topics": [t.decode("ascii", errors="replace") for t in self.topics],
            "data": {k: _render(v) for k, v in self.data.items()},
        }


def _render(v: Any) -> Any:
    if isinstance(v, bytes):
        return "0x" + v.hex()
    if isinstance(v, (list, tuple)):
        return [_render(x) for x in v]
    return v


# --- Validation helpers ---------------------------------------------------


def _check_topics(topics: Sequence[Any]) -> Tuple[bytes, ...]:
    if isinstance(topics, (bytes, bytearray)):
        topics = (topics,)
    if not isinstance(topics, (list, tuple)) or not topics:
        raise EventError("event topics must be a non-empty tuple of bytes")
    if len(topics) > MAX_TOPICS:
        raise EventError("too many event topics", context={"count": len(topics)})
    out = []
    for t in topics:
        if not isinstance(t, (bytes, bytearray)) or len(t) == 0:
            raise EventError("event topic must be non-empty bytes")
        if len(t) > MAX_TOPIC_BYTES:
            raise EventError("event topic too long", context={"len": len(t)})
        out.append(bytes(t))
    return tuple(out)


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key:
        raise EventError("event key must be a non-empty str")
    if len(key) > MAX_KEY_LEN:
        raise EventError("event key too long", context={"len": len(key)})
    if not _KEY_RE.match(key):
        raise EventError("event key has invalid characters", context={"key": key})
    return key


def _check_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, (bytes, bytearray)):
        b = bytes(value)
        if len(b) > MAX_BYTES_LEN:
            raise EventError("event bytes arg too long", context={"len": len(b)})
        return b
    if isinstance(value, int):
        if value.bit_length() > MAX_INT_BITS:
            raise EventError("event int arg out of range", context={"bits": value.bit_length()})
        return int(value)
    if isinstance(value, (list, tuple)):
        return [_check_value(v) for v in value]
    raise EventError("unsupported event arg type", context={"py_type": type(value).__name__})


# --- Sink -----------------------------------------------------------------


class EventSink:
    """
    Append-only event log with the same checkpoint shape as JournaledStorage.

    Events emitted inside an invocation stay pending until the host commits
    the outermost checkpoint; a rollback drops them, so a failed invocation
    never leaves a notification behind.
    """

    def __init__(self, *, max_per_tx: int = 1024) -> None:
        self._committed: List[Event] = []
        self._pending: List[List[Event]] = []
        self._max_per_tx = max_per_tx

    def begin(self) -> None:
        self._pending.append([])

    def commit(self) -> None:
        top = self._pending.pop()
        if self._pending:
            self._pending[-1].extend(top)
        else:
            self._committed.extend(top)

    def rollback(self) -> None:
        self._pending.pop()

    def _pending_count(self) -> int:
        return sum(len(p) for p in self._pending)

    def emit(self, contract: bytes, topics: Sequence[Any], data: Optional[Mapping[str, Any]] = None) -> Event:
        if not self._pending:
            raise EventError("events can only be emitted inside an invocation")
        if self._pending_count() >= self._max_per_tx:
            raise EventError("too many events in one transaction", context={"max": self._max_per_tx})
        checked = {_check_key(k): _check_value(v) for k, v in (data or {}).items()}
        ev = Event(bytes(contract), _check_topics(topics), checked)
        self._pending[-1].append(ev)
        return ev

    def all(self) -> List[Event]:
        return list(self._committed)

    def for_contract(self, contract: bytes) -> List[Event]:
        return [e for e in self._committed if e.contract == contract]

    def matching(self, *topics: bytes) -> List[Event]:
        """Committed events whose leading topics equal `topics`."""
        n = len(topics)
        return [e for e in self._committed if e.topics[:n] == tuple(topics)]

    def clear(self) -> None:
        self._committed.clear()

    def load(self, events: Sequence[Event]) -> None:
        self._committed = list(events)


__all__ = [
    "Event",
    "EventSink",
    "MAX_TOPICS",
    "MAX_TOPIC_BYTES",
    "MAX_KEY_LEN",
    "MAX_BYTES_LEN",
    "MAX_INT_BITS",
]
