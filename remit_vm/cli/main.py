"""
remit-vm — drive a local Remitwise ledger from the shell.

The ledger lives in a snapshot file (canonical CBOR) that every command loads,
mutates and writes back, so a sequence of invocations behaves like one
long-running host.

Examples:
  remit-vm init ledger.cbor --timestamp 1700000000
  remit-vm keygen
  remit-vm deploy ledger.cbor killswitch
  remit-vm call ledger.cbor 0x<ks> initialize '["0x<admin>"]'
  remit-vm call ledger.cbor 0x<ks> pause '["0x<admin>"]' --seed <hex-seed>
  remit-vm time ledger.cbor --advance 3600
  remit-vm events ledger.cbor --contract 0x<ks>

JSON arguments: strings starting with "0x" become bytes.

Exit codes:
  0 on success, 1 on an invocation or ledger error, 2 on bad usage.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, List, NoReturn, Optional

import typer
from remit_contracts import CONTRACT_MODULES as BUNDLED_CONTRACTS

from ..config import load_config
from ..errors import VmError
from ..runtime.auth import Signer
from ..runtime.context import LedgerInfo, to_bytes
from ..runtime.host import Host

app = typer.Typer(
    name="remit-vm",
    help="Local ledger host for Remitwise contracts",
    no_args_is_help=True,
    add_completion=False,
)

# ---------------------- small utils ---------------------- #


def _safe_json(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return _safe_json(asdict(obj))
    if isinstance(obj, (bytes, bytearray)):
        return "0x" + bytes(obj).hex()
    if isinstance(obj, (list, tuple)):
        return [_safe_json(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): _safe_json(v) for k, v in obj.items()}
    return obj


def _maybe_hex_to_bytes(x: Any) -> Any:
    if isinstance(x, str) and x.startswith("0x"):
        try:
            return bytes.fromhex(x[2:])
        except ValueError:
            return x
    if isinstance(x, list):
        return [_maybe_hex_to_bytes(v) for v in x]
    if isinstance(x, dict):
        return {k: _maybe_hex_to_bytes(v) for k, v in x.items()}
    return x


def _parse_args_json(s: Optional[str]) -> List[Any]:
    if not s or not s.strip():
        return []
    try:
        val = json.loads(s)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"ARGS must be JSON: {e}") from e
    if not isinstance(val, list):
        raise typer.BadParameter('ARGS must be a JSON array, e.g. \'["0xabcd", 100]\'')
    return [_maybe_hex_to_bytes(v) for v in val]


def _print(obj: Any) -> None:
    typer.echo(json.dumps(_safe_json(obj), indent=2, sort_keys=True))


def _fail(e: VmError) -> NoReturn:
    typer.echo(json.dumps({"error": _safe_json(e.to_dict())}, sort_keys=True), err=True)
    raise typer.Exit(1)


def _load(state: Path) -> Host:
    if not state.exists():
        typer.echo(f"Error: ledger snapshot not found: {state} (run `remit-vm init` first)", err=True)
        raise typer.Exit(1)
    try:
        return Host.restore(state.read_bytes())
    except VmError as e:
        _fail(e)


def _save(host: Host, state: Path) -> None:
    state.write_bytes(host.snapshot())


# ---------------------- commands ---------------------- #


@app.callback()
def main_callback() -> None:
    """Configure logging from REMIT_VM_LOG_LEVEL."""
    cfg = load_config()
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def init(
    state: Path = typer.Argument(..., help="Snapshot file to create"),
    timestamp: int = typer.Option(0, "--timestamp", min=0, help="Initial ledger time (seconds)"),
    mock_auth: bool = typer.Option(False, "--mock-auth", help="Accept every auth check (testing only)"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing snapshot"),
) -> None:
    """Create an empty ledger snapshot."""
    if state.exists() and not force:
        typer.echo(f"Error: {state} exists (use --force to overwrite)", err=True)
        raise typer.Exit(1)
    cfg = load_config()
    host = Host(cfg, LedgerInfo(timestamp=timestamp, network_id=cfg.network_id))
    if mock_auth:
        host.mock_all_auths()
    _save(host, state)
    _print({"state": str(state), "ledger": host.ledger.to_dict(), "mock_auth": host.mocking_auths})


@app.command()
def keygen() -> None:
    """Generate a fresh Ed25519 account and print its seed and address."""
    signer = Signer.generate()
    _print({"seed": signer.seed, "public_key": signer.public_key, "address": signer.address})


@app.command()
def deploy(
    state: Path = typer.Argument(..., help="Ledger snapshot"),
    contract: str = typer.Argument(..., help="Bundled contract name or a module path"),
    args: Optional[str] = typer.Argument(None, help="Constructor args as a JSON array"),
) -> None:
    """Deploy a contract and print its address."""
    host = _load(state)
    target = BUNDLED_CONTRACTS.get(contract, contract)
    try:
        address = host.deploy(target, *_parse_args_json(args))
    except VmError as e:
        _fail(e)
    _save(host, state)
    _print({"contract": contract, "address": address})


@app.command()
def call(
    state: Path = typer.Argument(..., help="Ledger snapshot"),
    address: str = typer.Argument(..., help="Contract address (0x-hex)"),
    fn: str = typer.Argument(..., help="Entry point name"),
    args: Optional[str] = typer.Argument(None, help="Call args as a JSON array"),
    seed: List[str] = typer.Option([], "--seed", help="Hex Ed25519 seed to sign with (repeatable)"),
) -> None:
    """Invoke an entry point, signing with the given seeds."""
    host = _load(state)
    call_args = _parse_args_json(args)
    try:
        contract = to_bytes(address)
        auths = []
        for s in seed:
            signer = Signer.from_seed(to_bytes(s))
            auths.append(
                signer.authorize(
                    network_id=host.network_id,
                    contract=contract,
                    fn=fn,
                    args=call_args,
                    nonce=host.nonce_of(signer.address),
                )
            )
        before = len(host.events)
        value = host.invoke(contract, fn, *call_args, auths=auths)
    except VmError as e:
        _fail(e)
    _save(host, state)
    _print({"result": value, "events": [e.to_dict() for e in host.events[before:]]})


@app.command()
def time(
    state: Path = typer.Argument(..., help="Ledger snapshot"),
    set_to: Optional[int] = typer.Option(None, "--set", min=0, help="Set ledger time"),
    advance: Optional[int] = typer.Option(None, "--advance", min=0, help="Advance ledger time"),
) -> None:
    """Show or move ledger time."""
    if set_to is not None and advance is not None:
        raise typer.BadParameter("use either --set or --advance, not both")
    host = _load(state)
    try:
        if set_to is not None:
            host.set_timestamp(set_to)
        elif advance is not None:
            host.advance(advance)
    except VmError as e:
        _fail(e)
    _save(host, state)
    _print(host.ledger.to_dict())


@app.command()
def events(
    state: Path = typer.Argument(..., help="Ledger snapshot"),
    contract: Optional[str] = typer.Option(None, "--contract", help="Only events from this address"),
) -> None:
    """Print committed events."""
    host = _load(state)
    evs = host.events_for(contract) if contract else host.events
    _print([e.to_dict() for e in evs])


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
