"""
remit_vm.runtime.host — the single-threaded transaction engine.

The Host owns the committed ledger state (storage, events, nonces, ledger
time) and runs entry points one at a time:

    invoke(address, fn, *args, auths=...)
      1. verify every supplied Authorization (signature, address binding, nonce)
      2. begin a storage + event checkpoint
      3. run the entry point with a fresh InvocationContext
      4. commit on return; on ANY exception roll back storage and events, re-raise

Cross-contract calls made through ``ctx.call`` open nested checkpoints inside
the same top-level transaction. If the nested call raises and the caller does
not handle it, the whole top-level invocation is rolled back. A call into a
contract already on the call stack raises ReentrancyError; exceeding
``max_call_depth`` raises CallDepthError.
A nested call authenticates only the invoking contract; account signatures
verified for the top-level invocation do not carry over.

Authorization nonces are consumed only when the top-level invocation commits,
so a failed invocation leaves its signatures re-usable and a committed one
can never be replayed.

Snapshots
---------
`snapshot()` serializes the ledger to canonical CBOR; `Host.restore(blob)`
rebuilds it (contract modules are re-imported from their recorded source).
The CLI uses this to persist a local ledger between runs.
"""

from __future__ import annotations

import hashlib
import inspect
import logging
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union

from ..config import VMConfig, load_config
from ..errors import (AuthError, CallDepthError, EntryPointError, LedgerError,
                      ReentrancyError, VmError)
from . import codec
from .auth import AuthContext, Authorization, verify_authorization
from .context import InvocationContext, LedgerInfo, to_bytes, to_hex
from .events_api import Event, EventSink
from .loader import ContractCode, load_contract
from .storage_api import InstanceStorage, JournaledStorage, MemoryBackend, StorageBackend

log = logging.getLogger(__name__)

CONTRACT_ADDR_TAG = b"remit:contract:v1|"
SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class InvocationResult:
    """Outcome of `Host.try_invoke`; `events` are the ones this call committed."""

    ok: bool
    value: Any = None
    error: Optional[VmError] = None
    events: Tuple[Event, ...] = ()

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error is not None else None


@dataclass
class _Frame:
    address: bytes
    auth: AuthContext


class Host:
    """Local ledger host: deploys contract modules and runs their entry points."""

    def __init__(
        self,
        config: Optional[VMConfig] = None,
        ledger: Optional[LedgerInfo] = None,
        *,
        backend: Optional[StorageBackend] = None,
    ) -> None:
        self.config = config or load_config()
        self._ledger = ledger or LedgerInfo(network_id=self.config.network_id)
        self._journal = JournaledStorage(backend if backend is not None else MemoryBackend())
        self._events = EventSink(max_per_tx=self.config.max_events_per_tx)
        self._contracts: Dict[bytes, ContractCode] = {}
        self._nonces: Dict[bytes, int] = {}
        self._deploy_counter = 0
        self._mock_auth = not self.config.strict_auth
        self._stack: List[_Frame] = []

    # ------------------------------------------------------------------ #
    # Ledger control
    # ------------------------------------------------------------------ #

    @property
    def ledger(self) -> LedgerInfo:
        return self._ledger

    @property
    def network_id(self) -> str:
        return self._ledger.network_id

    def set_timestamp(self, timestamp: int) -> None:
        if timestamp < self._ledger.timestamp:
            raise LedgerError(
                "ledger time cannot move backwards",
                context={"current": self._ledger.timestamp, "requested": timestamp},
            )
        self._ledger = self._ledger.with_timestamp(timestamp)

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise LedgerError("cannot advance by a negative amount", context={"seconds": seconds})
        self.set_timestamp(self._ledger.timestamp + seconds)
        return self._ledger.timestamp

    # ------------------------------------------------------------------ #
    # Auth
    # ------------------------------------------------------------------ #

    def mock_all_auths(self, enabled: bool = True) -> None:
        """Test mode: every `ctx.auth.require` passes without signatures."""
        self._mock_auth = enabled

    @property
    def mocking_auths(self) -> bool:
        return self._mock_auth

    def nonce_of(self, address: Union[bytes, str]) -> int:
        return self._nonces.get(to_bytes(address), 0)

    def _verify(
        self, address: bytes, fn: str, args: Sequence[Any], auths: Sequence[Authorization]
    ) -> Set[bytes]:
        verified: Set[bytes] = set()
        for a in auths:
            expected = self.nonce_of(a.address)
            if a.nonce != expected:
                log.warning(
                    "auth rejected for %s: stale nonce %d (expected %d)", to_hex(a.address), a.nonce, expected
                )
                raise AuthError(
                    "authorization nonce mismatch",
                    context={"address": to_hex(a.address), "nonce": a.nonce, "expected": expected},
                )
            if a.address in verified:
                raise AuthError("duplicate authorization", context={"address": to_hex(a.address)})
            ok = verify_authorization(
                a, network_id=self.network_id, contract=address, fn=fn, args=list(args)
            )
            if not ok:
                log.warning("auth rejected for %s: bad signature on %s", to_hex(a.address), fn)
                raise AuthError("invalid authorization signature", context={"address": to_hex(a.address)})
            verified.add(a.address)
        return verified

    # ------------------------------------------------------------------ #
    # Contracts
    # ------------------------------------------------------------------ #

    def _next_address(self) -> bytes:
        self._deploy_counter += 1
        seed = CONTRACT_ADDR_TAG + self.network_id.encode() + self._deploy_counter.to_bytes(8, "big")
        return hashlib.sha3_256(seed).digest()

    def contract(self, address: Union[bytes, str]) -> ContractCode:
        addr = to_bytes(address)
        try:
            return self._contracts[addr]
        except KeyError:
            raise EntryPointError("no contract at address", context={"address": to_hex(addr)}) from None

    def contracts(self) -> Dict[bytes, ContractCode]:
        return dict(self._contracts)

    def deploy(
        self,
        contract: Union[ContractCode, ModuleType, str, Path],
        *init_args: Any,
        auths: Sequence[Authorization] = (),
    ) -> bytes:
        """Register a contract instance and run its constructor; returns the new address."""
        code = contract if isinstance(contract, ContractCode) else load_contract(contract)
        address = self._next_address()
        self._contracts[address] = code
        log.debug("deploy %s at %s", code.name, to_hex(address))
        if code.constructor is None:
            if init_args:
                del self._contracts[address]
                raise EntryPointError(
                    "contract has no constructor but init args were given", context={"contract": code.name}
                )
            return address
        try:
            self._transact(address, "init", code.constructor, init_args, auths)
        except BaseException:
            del self._contracts[address]
            raise
        return address

    # ------------------------------------------------------------------ #
    # Invocation
    # ------------------------------------------------------------------ #

    def invoke(
        self, address: Union[bytes, str], fn: str, *args: Any, auths: Sequence[Authorization] = ()
    ) -> Any:
        addr = to_bytes(address)
        entry = self.contract(addr).resolve(fn)
        return self._transact(addr, fn, entry, args, auths)

    def try_invoke(
        self, address: Union[bytes, str], fn: str, *args: Any, auths: Sequence[Authorization] = ()
    ) -> InvocationResult:
        before = len(self._events.all())
        try:
            value = self.invoke(address, fn, *args, auths=auths)
        except VmError as e:
            return InvocationResult(ok=False, error=e)
        return InvocationResult(ok=True, value=value, events=tuple(self._events.all()[before:]))

    def _transact(
        self,
        address: bytes,
        fn: str,
        entry: Any,
        args: Sequence[Any],
        auths: Sequence[Authorization],
    ) -> Any:
        if self._stack:
            raise ReentrancyError("host is already running an invocation")
        verified = self._verify(address, fn, args, auths)
        auth = AuthContext(verified, mock=self._mock_auth)
        self._journal.begin()
        self._events.begin()
        try:
            value = self._run(address, fn, entry, args, auth, invoker=None)
        except BaseException as e:
            self._journal.rollback()
            self._events.rollback()
            log.info("rollback %s.%s: %s", self._label(address), fn, getattr(e, "code", type(e).__name__))
            raise
        self._journal.commit()
        self._events.commit()
        for a in verified:
            self._nonces[a] = self._nonces.get(a, 0) + 1
        self._ledger = self._ledger.bumped()
        log.debug("commit %s.%s seq=%d", self._label(address), fn, self._ledger.sequence)
        return value

    def _run(
        self,
        address: bytes,
        fn: str,
        entry: Any,
        args: Sequence[Any],
        auth: AuthContext,
        *,
        invoker: Optional[bytes],
    ) -> Any:
        if len(self._stack) >= self.config.max_call_depth:
            raise CallDepthError(
                "cross-contract call depth exceeded", context={"max": self.config.max_call_depth}
            )
        if any(f.address == address for f in self._stack):
            raise ReentrancyError(
                "re-entrant call into a contract already executing",
                context={"address": to_hex(address), "fn": fn},
            )
        ctx = InvocationContext(
            address=address,
            ledger=self._ledger,
            storage=InstanceStorage(
                self._journal,
                address,
                max_key_bytes=self.config.max_storage_key_bytes,
                max_value_bytes=self.config.max_storage_value_bytes,
            ),
            events=self._events,
            auth=auth,
            call=self._nested_call,
            invoker=invoker,
        )
        try:
            inspect.signature(entry).bind(ctx, *args)
        except TypeError as e:
            raise EntryPointError(f"bad arguments for {fn}: {e}", context={"fn": fn}) from None
        self._stack.append(_Frame(address, auth))
        try:
            return entry(ctx, *args)
        finally:
            self._stack.pop()

    def _nested_call(self, caller: bytes, target: bytes, fn: str, args: Sequence[Any]) -> Any:
        entry = self.contract(target).resolve(fn)
        parent = self._stack[-1].auth
        self._journal.begin()
        self._events.begin()
        try:
            value = self._run(target, fn, entry, args, parent.for_nested_call(caller), invoker=caller)
        except BaseException:
            self._journal.rollback()
            self._events.rollback()
            raise
        self._journal.commit()
        self._events.commit()
        return value

    def _label(self, address: bytes) -> str:
        code = self._contracts.get(address)
        return code.name if code is not None else to_hex(address)[:18]

    # ------------------------------------------------------------------ #
    # Observation & persistence
    # ------------------------------------------------------------------ #

    @property
    def events(self) -> List[Event]:
        return self._events.all()

    def events_for(self, address: Union[bytes, str]) -> List[Event]:
        return self._events.for_contract(to_bytes(address))

    def storage_items(self, address: Union[bytes, str]) -> List[Tuple[bytes, bytes]]:
        prefix = to_bytes(address) + b"/"
        return [(k[len(prefix):], v) for k, v in self._journal.committed_items() if k.startswith(prefix)]

    def snapshot(self) -> bytes:
        if self._stack:
            raise VmError("cannot snapshot during an invocation")
        return codec.dumps(
            {
                "version": SNAPSHOT_VERSION,
                "ledger": self._ledger.to_dict(),
                "deploy_counter": self._deploy_counter,
                "mock_auth": self._mock_auth,
                "contracts": [[a, c.name, c.source] for a, c in self._contracts.items()],
                "nonces": [[a, n] for a, n in sorted(self._nonces.items())],
                "storage": [[k, v] for k, v in self._journal.committed_items()],
                "events": [[e.contract, list(e.topics), dict(e.data)] for e in self._events.all()],
            }
        )

    @classmethod
    def restore(cls, blob: bytes, config: Optional[VMConfig] = None) -> "Host":
        doc = codec.loads(blob)
        if not isinstance(doc, dict) or doc.get("version") != SNAPSHOT_VERSION:
            raise VmError("unsupported snapshot format", code="snapshot:invalid")
        cfg = config or load_config()
        try:
            ledger = LedgerInfo.from_dict(doc["ledger"])
            backend = MemoryBackend({bytes(k): bytes(v) for k, v in doc["storage"]})
            host = cls(cfg, ledger, backend=backend)
            host._deploy_counter = int(doc["deploy_counter"])
            host._mock_auth = bool(doc.get("mock_auth", False))
            for addr, name, source in doc["contracts"]:
                host._contracts[bytes(addr)] = load_contract(source, name=name)
            host._nonces = {bytes(a): int(n) for a, n in doc["nonces"]}
            host._events.load(
                [Event(bytes(c), tuple(bytes(t) for t in topics), dict(data)) for c, topics, data in doc["events"]]
            )
        except (KeyError, TypeError, ValueError) as e:
            raise VmError(f"malformed snapshot: {e}", code="snapshot:invalid") from e
        return host


__all__ = ["Host", "InvocationResult", "SNAPSHOT_VERSION"]
