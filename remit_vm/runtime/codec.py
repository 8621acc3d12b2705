"""
remit_vm.runtime.codec
======================

Canonical CBOR encode/decode helpers used for:

- persisted contract records (storage values)
- authorization SignBytes
- host snapshots written by the CLI

Deterministic, canonical map ordering (RFC 8949 "core deterministic encoding")
and shortest integer encodings come from ``cbor2`` in canonical mode, so the
same logical value always yields the same bytes.

Public API
----------
dumps(obj) -> bytes
loads(data: (bytes|bytearray|memoryview)) -> Any

Notes
-----
* Keys in mappings MUST be of type (str | int | bytes). Floats or other
  non-canonical keys are rejected to avoid non-determinism.
* Dataclasses and Enums are converted to plain Python types before encoding.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Union

import cbor2

from ..errors import VmError


class CodecError(VmError):
    """Raised for canonical CBOR violations or encode/decode failures."""

    default_code = "codec:invalid"


def _is_key_type(k: Any) -> bool:
    return isinstance(k, (str, int, bytes)) and not isinstance(k, bool)


def _to_plain(obj: Any) -> Any:
    """Convert dataclasses/Enums/bytearray/memoryview etc. to plain types."""
    if obj is None or isinstance(obj, (bool, str, bytes)):
        return obj
    if isinstance(obj, Enum):
        return _to_plain(obj.value)
    if isinstance(obj, int):
        return int(obj)
    if isinstance(obj, float):
        raise CodecError("floats are not allowed in canonical payloads")
    if isinstance(obj, (bytearray, memoryview)):
        return bytes(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _to_plain(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if not _is_key_type(k):
                raise CodecError(f"unsupported map key type: {type(k).__name__}")
            out[k] = _to_plain(v)
        return out
    if isinstance(obj, (list, tuple)):
        return [_to_plain(v) for v in obj]
    raise CodecError(f"unsupported type for canonical CBOR: {type(obj).__name__}")


def dumps(obj: Any) -> bytes:
    try:
        return cbor2.dumps(_to_plain(obj), canonical=True)
    except cbor2.CBOREncodeError as e:
        raise CodecError(f"encode failed: {e}") from e


def loads(data: Union[bytes, bytearray, memoryview]) -> Any:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise CodecError(f"expected bytes-like input, got {type(data).__name__}")
    try:
        return cbor2.loads(bytes(data))
    except cbor2.CBORDecodeError as e:
        raise CodecError(f"decode failed: {e}") from e


__all__ = ["CodecError", "dumps", "loads"]
