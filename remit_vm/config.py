"""
remit_vm.config — runtime feature flags and numeric caps.

This module centralizes configuration for the local ledger host. It has NO
third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (REMIT_VM_*)
  2) Hardcoded safe defaults below

Key env vars (case-insensitive where boolean):
  - REMIT_VM_STRICT_AUTH              (bool)   default: true
  - REMIT_VM_MAX_CALL_DEPTH           (int)    default: 16
  - REMIT_VM_MAX_STORAGE_KEY_BYTES    (int)    default: 64
  - REMIT_VM_MAX_STORAGE_VAL_BYTES    (int)    default: 131_072   (128 KiB)
  - REMIT_VM_MAX_EVENTS_PER_TX        (int)    default: 1024
  - REMIT_VM_NETWORK_ID               (str)    default: "remitwise-local"
  - REMIT_VM_LOG_LEVEL                (str)    default: "WARNING"

Usage:
    from remit_vm.config import load_config
    CFG = load_config()
    if CFG.strict_auth: ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any, Dict

# ----------------------------- helpers ---------------------------------------


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    return val in ("1", "true", "t", "yes", "y", "on")


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class VMConfig:
    # Feature flags
    strict_auth: bool

    # Signature domain separation
    network_id: str

    # Numeric caps / limits (enforced by host/storage/events)
    max_call_depth: int
    max_storage_key_bytes: int
    max_storage_value_bytes: int
    max_events_per_tx: int

    # Ambient
    log_level: str

    def with_overrides(self, **changes: Any) -> "VMConfig":
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "strict_auth": self.strict_auth,
            "network_id": self.network_id,
            "max_call_depth": self.max_call_depth,
            "max_storage_key_bytes": self.max_storage_key_bytes,
            "max_storage_value_bytes": self.max_storage_value_bytes,
            "max_events_per_tx": self.max_events_per_tx,
            "log_level": self.log_level,
        }


@lru_cache(maxsize=1)
def load_config() -> VMConfig:
    """
    Build and cache a VMConfig from environment + safe defaults.
    """
    return VMConfig(
        strict_auth=_env_bool("REMIT_VM_STRICT_AUTH", True),
        network_id=_env_str("REMIT_VM_NETWORK_ID", "remitwise-local"),
        max_call_depth=_env_int("REMIT_VM_MAX_CALL_DEPTH", 16, min_v=2, max_v=256),
        max_storage_key_bytes=_env_int("REMIT_VM_MAX_STORAGE_KEY_BYTES", 64, min_v=8, max_v=256),
        max_storage_value_bytes=_env_int(
            "REMIT_VM_MAX_STORAGE_VAL_BYTES", 131_072, min_v=32, max_v=1_048_576
        ),
        max_events_per_tx=_env_int("REMIT_VM_MAX_EVENTS_PER_TX", 1024, min_v=1, max_v=10_000),
        log_level=_env_str("REMIT_VM_LOG_LEVEL", "WARNING").upper(),
    )


__all__ = ["VMConfig", "load_config"]
