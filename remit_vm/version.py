"""remit_vm.version — semantic version string.

This module exposes:
- __version__: a PEP 440-compliant version string
- compute_version(): resolution order → env → package metadata → fallback

Environment overrides (first match wins):
- REMIT_VM_VERSION
- REMITWISE_VERSION
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import metadata as importlib_metadata
from typing import Optional

# Bump on changes that alter persisted state layout or signature payloads.
BASE_VERSION = "0.3.0"


def _pkg_metadata_version(dist_name: str = "remitwise") -> Optional[str]:
    """Try to read installed package version; None if unavailable."""
    try:
        v = importlib_metadata.version(dist_name)
    except importlib_metadata.PackageNotFoundError:
        return None
    return v if v and v != "0.0.0" else None


@lru_cache(maxsize=1)
def compute_version() -> str:
    """
    Resolve a version string with this precedence:
      1) REMIT_VM_VERSION or REMITWISE_VERSION (exact value)
      2) Installed package metadata version for 'remitwise'
      3) BASE_VERSION + '+dev'
    """
    for key in ("REMIT_VM_VERSION", "REMITWISE_VERSION"):
        val = os.getenv(key)
        if val:
            return val

    meta_v = _pkg_metadata_version()
    if meta_v:
        return meta_v

    return f"{BASE_VERSION}+dev"


__version__ = compute_version()

__all__ = ["__version__", "BASE_VERSION", "compute_version"]
