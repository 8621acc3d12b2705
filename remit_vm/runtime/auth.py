"""
remit_vm.runtime.auth — the Authentication Oracle.

Proves that an invocation was actually authorized by the address it claims to
act as. A caller identifier passed as a plain argument is never sufficient:
the host verifies signed `Authorization` entries *before* the contract runs and
hands the contract an `AuthContext` holding only already-authenticated
principals. Contracts never see keys or signatures.

Accounts
--------
- Keypairs are Ed25519 (``cryptography``).
- address = sha3_256(b"remit:addr:v1|" + raw_public_key)   (32 bytes)

SignBytes
---------
    sha3_256( CBOR([b"remit:auth:v1", network_id, contract, fn, args, nonce]) )

`network_id` domain-separates local ledgers; `nonce` is the signer's current
per-address nonce tracked by the host and consumed only when the invocation
commits, which prevents replays.

Typical usage (tests)
---------------------
    alice = Signer.from_seed(b"\\x01" * 32)
    auth = alice.authorize(network_id=host.network_id, contract=addr,
                           fn="pause", args=[alice.address],
                           nonce=host.nonce_of(alice.address))
    host.invoke(addr, "pause", alice.address, auths=[auth])
"""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Sequence

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (Ed25519PrivateKey,
                                                               Ed25519PublicKey)

from ..errors import AuthError
from . import codec

ADDRESS_TAG = b"remit:addr:v1|"
DOMAIN_TAG = b"remit:auth:v1"
ADDRESS_LEN = 32


def address_from_pubkey(public_key: bytes) -> bytes:
    """Derive the 32-byte account address for a raw Ed25519 public key."""
    return hashlib.sha3_256(ADDRESS_TAG + bytes(public_key)).digest()


def build_sign_bytes(network_id: str, contract: bytes, fn: str, args: Sequence, nonce: int) -> bytes:
    """Canonical SignBytes for one invocation authorization (unhashed)."""
    if nonce < 0:
        raise AuthError("nonce must be non-negative")
    return codec.dumps([DOMAIN_TAG, network_id, bytes(contract), fn, list(args), int(nonce)])


def _digest(sign_bytes: bytes) -> bytes:
    return hashlib.sha3_256(sign_bytes).digest()


@dataclass(frozen=True)
class Authorization:
    """A signed statement: `address` authorizes one specific invocation."""

    address: bytes
    public_key: bytes
    nonce: int
    signature: bytes


class Signer:
    """Ed25519 keypair wrapper used by tests, examples and the CLI."""

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._sk = private_key
        self._pk = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self.address = address_from_pubkey(self._pk)

    @classmethod
    def generate(cls) -> "Signer":
        return cls.from_seed(os.urandom(32))

    @classmethod
    def from_seed(cls, seed: bytes) -> "Signer":
        if len(seed) != 32:
            raise AuthError("Ed25519 seed must be 32 bytes", context={"len": len(seed)})
        return cls(Ed25519PrivateKey.from_private_bytes(bytes(seed)))

    @property
    def public_key(self) -> bytes:
        return self._pk

    @property
    def seed(self) -> bytes:
        return self._sk.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def authorize(
        self, *, network_id: str, contract: bytes, fn: str, args: Sequence, nonce: int
    ) -> Authorization:
        msg = _digest(build_sign_bytes(network_id, contract, fn, args, nonce))
        return Authorization(
            address=self.address,
            public_key=self._pk,
            nonce=int(nonce),
            signature=self._sk.sign(msg),
        )

    def __repr__(self) -> str:
        return f"Signer(0x{self.address.hex()[:16]}…)"


def verify_authorization(
    auth: Authorization, *, network_id: str, contract: bytes, fn: str, args: Sequence
) -> bool:
    """True iff `auth` is a valid signature by the key behind `auth.address`."""
    if address_from_pubkey(auth.public_key) != auth.address:
        return False
    try:
        pk = Ed25519PublicKey.from_public_bytes(bytes(auth.public_key))
        pk.verify(
            bytes(auth.signature),
            _digest(build_sign_bytes(network_id, contract, fn, args, auth.nonce)),
        )
    except (InvalidSignature, ValueError):
        return False
    return True


class AuthContext:
    """
    Per-invocation set of authenticated principals.

    `require(address)` is the pre-invocation capability check consumed by
    contracts; in mock mode every require passes (test harness only).
    """

    def __init__(self, verified: Iterable[bytes] = (), *, mock: bool = False) -> None:
        self._verified: FrozenSet[bytes] = frozenset(bytes(a) for a in verified)
        self._mock = mock
        self._required: List[bytes] = []

    @property
    def mock(self) -> bool:
        return self._mock

    @property
    def verified(self) -> FrozenSet[bytes]:
        return self._verified

    @property
    def required(self) -> List[bytes]:
        """Addresses that contract code asked to authenticate, in order."""
        return list(self._required)

    def is_authenticated(self, address: bytes) -> bool:
        return self._mock or bytes(address) in self._verified

    def require(self, address: bytes) -> None:
        if not isinstance(address, (bytes, bytearray)) or len(address) == 0:
            raise AuthError("caller address must be non-empty bytes")
        self._required.append(bytes(address))
        if not self.is_authenticated(address):
            raise AuthError(
                "invocation is not authorized by the claimed caller",
                context={"address": "0x" + bytes(address).hex()},
            )

    def for_nested_call(self, invoker: bytes) -> "AuthContext":
        """
        Child context for a nested call: only the invoking contract is authenticated.

        Signatures verified for the top-level invocation cover that one
        (contract, fn, args) and are not carried into calls it makes.
        """
        return AuthContext([invoker], mock=self._mock)


__all__ = [
    "ADDRESS_LEN",
    "Authorization",
    "AuthContext",
    "Signer",
    "address_from_pubkey",
    "build_sign_bytes",
    "verify_authorization",
]
