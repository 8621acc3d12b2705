# -*- coding: utf-8 -*-
"""
remit_vm.tests.conftest
=======================

Fixtures for the host runtime tests.

- ``config``  : strict-auth VMConfig with a test network id
- ``host``    : fresh Host at ledger time 1_000
- ``alice`` / ``bob`` : deterministic Ed25519 signers from fixed seeds
- ``signed``  : helper that signs with the signer's current nonce and invokes
- ``sample``  : address of a deployed ``sample_contract`` instance
"""
from __future__ import annotations

import hashlib
import os
from typing import Any, Callable

import pytest

from remit_vm.config import VMConfig, load_config
from remit_vm.runtime.auth import Signer
from remit_vm.runtime.context import LedgerInfo
from remit_vm.runtime.host import Host

os.environ.setdefault("PYTHONHASHSEED", "0")

SAMPLE_CONTRACT = "remit_vm.tests.sample_contract"
TEST_NETWORK = "remitwise-test"


def det_seed(tag: str) -> bytes:
    """Stable 32-byte seed derived from a tag."""
    return hashlib.sha3_256(b"remit-tests-v1|" + tag.encode("utf-8")).digest()


@pytest.fixture
def config() -> VMConfig:
    return load_config().with_overrides(strict_auth=True, network_id=TEST_NETWORK, max_call_depth=16)


@pytest.fixture
def host(config: VMConfig) -> Host:
    return Host(config, LedgerInfo(timestamp=1_000, network_id=TEST_NETWORK))


@pytest.fixture
def alice() -> Signer:
    return Signer.from_seed(det_seed("alice"))


@pytest.fixture
def bob() -> Signer:
    return Signer.from_seed(det_seed("bob"))


@pytest.fixture
def signed(host: Host) -> Callable[..., Any]:
    def _call(signer: Signer, address: bytes, fn: str, *args: Any) -> Any:
        auth = signer.authorize(
            network_id=host.network_id,
            contract=address,
            fn=fn,
            args=list(args),
            nonce=host.nonce_of(signer.address),
        )
        return host.invoke(address, fn, *args, auths=[auth])

    return _call


@pytest.fixture
def sample(host: Host) -> bytes:
    return host.deploy(SAMPLE_CONTRACT, 0)
