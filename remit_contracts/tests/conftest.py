# -*- coding: utf-8 -*-
"""
remit_contracts.tests.conftest
==============================

Pytest fixtures for the Remitwise contracts.

Goals:
- A fresh, strict-auth ``Host`` per test at a fixed ledger time.
- Deterministic Ed25519 accounts (``admin``, ``bob``, ``carol``) derived from
  fixed seeds, so addresses are stable across runs.
- ``as_`` : sign-and-invoke helper using each signer's current nonce.
- ``killswitch`` : a deployed and initialized Killswitch whose Authority is
  ``admin``.
- ``deploy_linked`` : deploy a record contract linked to that killswitch.

Usage:
    def test_pause(host, killswitch, admin, as_):
        as_(admin, killswitch, "pause", admin.address)
        assert host.invoke(killswitch, "is_paused") is True
"""
from __future__ import annotations

import hashlib
import os
from typing import Any, Callable

import pytest

from remit_contracts import CONTRACT_MODULES
from remit_vm.config import VMConfig, load_config
from remit_vm.errors import ContractError
from remit_vm.runtime.auth import Signer
from remit_vm.runtime.context import LedgerInfo
from remit_vm.runtime.host import Host

os.environ.setdefault("PYTHONHASHSEED", "0")
os.environ.setdefault("TZ", "UTC")

NETWORK = "remitwise-test"
GENESIS_TIME = 1_700_000_000


def det_signer(tag: str) -> Signer:
    return Signer.from_seed(hashlib.sha3_256(b"remit-contract-tests|" + tag.encode()).digest())


def error_of(exc_info) -> Any:
    """The IntEnum member carried by a ContractError."""
    assert isinstance(exc_info.value, ContractError), exc_info.value
    return exc_info.value.error


@pytest.fixture
def config() -> VMConfig:
    return load_config().with_overrides(strict_auth=True, network_id=NETWORK)


@pytest.fixture
def host(config: VMConfig) -> Host:
    return Host(config, LedgerInfo(timestamp=GENESIS_TIME, network_id=NETWORK))


@pytest.fixture
def admin() -> Signer:
    return det_signer("admin")


@pytest.fixture
def bob() -> Signer:
    return det_signer("bob")


@pytest.fixture
def carol() -> Signer:
    return det_signer("carol")


@pytest.fixture
def as_(host: Host) -> Callable[..., Any]:
    """as_(signer, address, fn, *args) -> value, signed with the current nonce."""

    def _invoke(signer: Signer, address: bytes, fn: str, *args: Any) -> Any:
        auth = signer.authorize(
            network_id=host.network_id,
            contract=address,
            fn=fn,
            args=list(args),
            nonce=host.nonce_of(signer.address),
        )
        return host.invoke(address, fn, *args, auths=[auth])

    return _invoke


@pytest.fixture
def killswitch(host: Host, admin: Signer) -> bytes:
    addr = host.deploy(CONTRACT_MODULES["killswitch"])
    host.invoke(addr, "initialize", admin.address)
    return addr


@pytest.fixture
def deploy_linked(host: Host, killswitch: bytes) -> Callable[[str], bytes]:
    def _deploy(name: str) -> bytes:
        return host.deploy(CONTRACT_MODULES[name], killswitch)

    return _deploy
