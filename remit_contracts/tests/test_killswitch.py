# -*- coding: utf-8 -*-
"""
Emergency Killswitch: authority, pause flag, cooldown and hand-off.
"""
from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from remit_contracts import CONTRACT_MODULES
from remit_contracts.stdlib.control import KillswitchError
from remit_vm.errors import AuthError, ContractError, EntryPointError
from remit_vm.runtime.context import LedgerInfo
from remit_vm.runtime.host import Host

from . import relay_contract
from .conftest import GENESIS_TIME, NETWORK, det_signer, error_of

PAUSED = (b"killswitch", b"paused")
UNPAUSED = (b"killswitch", b"unpaused")
TRANSFERRED = (b"killswitch", b"authority_transferred")


def _topics(host, addr):
    return [e.topics for e in host.events_for(addr)]


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def test_initialize_sets_authority_and_unpaused(host, killswitch, admin):
    assert host.invoke(killswitch, "get_admin") == admin.address
    assert host.invoke(killswitch, "get_authority") == admin.address
    assert host.invoke(killswitch, "is_paused") is False
    assert host.invoke(killswitch, "get_scheduled_unpause") is None
    host.invoke(killswitch, "assert_not_paused")


def test_second_initialize_fails(host, killswitch, bob):
    with pytest.raises(ContractError) as ei:
        host.invoke(killswitch, "initialize", bob.address)
    assert error_of(ei) is KillswitchError.ALREADY_INITIALIZED
    assert host.invoke(killswitch, "get_admin") != bob.address


def test_initialize_needs_no_authorization(host, bob):
    ks = host.deploy(CONTRACT_MODULES["killswitch"])
    host.invoke(ks, "initialize", bob.address)
    assert host.invoke(ks, "get_admin") == bob.address


@pytest.mark.parametrize(
    "fn, extra",
    [("pause", ()), ("unpause", ()), ("schedule_unpause", (GENESIS_TIME + 10,)), ("transfer_admin", (b"\x01" * 32,))],
)
def test_mutations_before_initialize_fail_not_initialized(host, admin, as_, fn, extra):
    ks = host.deploy(CONTRACT_MODULES["killswitch"])
    with pytest.raises(ContractError) as ei:
        as_(admin, ks, fn, admin.address, *extra)
    assert error_of(ei) is KillswitchError.NOT_INITIALIZED
    assert host.events_for(ks) == []


def test_queries_before_initialize_return_absent(host):
    ks = host.deploy(CONTRACT_MODULES["killswitch"])
    assert host.invoke(ks, "is_paused") is False
    assert host.invoke(ks, "get_admin") is None
    assert host.invoke(ks, "get_scheduled_unpause") is None
    with pytest.raises(ContractError) as ei:
        host.invoke(ks, "assert_not_paused")
    assert error_of(ei) is KillswitchError.NOT_INITIALIZED


# ---------------------------------------------------------------------------
# Pause / unpause
# ---------------------------------------------------------------------------

def test_pause_then_unpause(host, killswitch, admin, as_):
    as_(admin, killswitch, "pause", admin.address)
    assert host.invoke(killswitch, "is_paused") is True
    with pytest.raises(ContractError) as ei:
        host.invoke(killswitch, "assert_not_paused")
    assert error_of(ei) is KillswitchError.CONTRACT_PAUSED

    as_(admin, killswitch, "unpause", admin.address)
    assert host.invoke(killswitch, "is_paused") is False
    assert _topics(host, killswitch) == [PAUSED, UNPAUSED]


def test_non_authority_cannot_pause_or_unpause(host, killswitch, admin, bob, as_):
    with pytest.raises(ContractError) as ei:
        as_(bob, killswitch, "pause", bob.address)
    assert error_of(ei) is KillswitchError.UNAUTHORIZED
    as_(admin, killswitch, "pause", admin.address)
    with pytest.raises(ContractError) as ei:
        as_(bob, killswitch, "unpause", bob.address)
    assert error_of(ei) is KillswitchError.UNAUTHORIZED
    assert host.invoke(killswitch, "is_paused") is True


def test_claiming_to_be_the_authority_is_not_enough(host, killswitch, admin, bob):
    # bob signs, but passes the authority's address as the caller
    auth = bob.authorize(
        network_id=host.network_id, contract=killswitch, fn="pause", args=[admin.address],
        nonce=host.nonce_of(bob.address),
    )
    with pytest.raises(AuthError):
        host.invoke(killswitch, "pause", admin.address, auths=[auth])
    with pytest.raises(AuthError):
        host.invoke(killswitch, "pause", admin.address)
    assert host.invoke(killswitch, "is_paused") is False
    assert host.events_for(killswitch) == []


def test_pause_when_already_paused_still_succeeds_and_emits(host, killswitch, admin, as_):
    as_(admin, killswitch, "pause", admin.address)
    as_(admin, killswitch, "pause", admin.address)
    assert host.invoke(killswitch, "is_paused") is True
    assert _topics(host, killswitch) == [PAUSED, PAUSED]


def test_unpause_when_not_paused_still_succeeds_and_emits(host, killswitch, admin, as_):
    as_(admin, killswitch, "unpause", admin.address)
    assert host.invoke(killswitch, "is_paused") is False
    assert _topics(host, killswitch) == [UNPAUSED]


def test_events_carry_no_payload(host, killswitch, admin, as_):
    as_(admin, killswitch, "pause", admin.address)
    (ev,) = host.events_for(killswitch)
    assert ev.namespace == b"killswitch"
    assert ev.data == {}


# ---------------------------------------------------------------------------
# Cooldown
# ---------------------------------------------------------------------------

def test_schedule_must_be_strictly_in_the_future(host, killswitch, admin, as_):
    now = host.ledger.timestamp
    for at in (now, now - 1):
        with pytest.raises(ContractError) as ei:
            as_(admin, killswitch, "schedule_unpause", admin.address, at)
        assert error_of(ei) is KillswitchError.INVALID_SCHEDULE
    as_(admin, killswitch, "schedule_unpause", admin.address, now + 1)
    assert host.invoke(killswitch, "get_scheduled_cooldown") == now + 1


def test_schedule_by_non_authority_fails(host, killswitch, bob, as_):
    with pytest.raises(ContractError) as ei:
        as_(bob, killswitch, "schedule_cooldown", bob.address, host.ledger.timestamp + 100)
    assert error_of(ei) is KillswitchError.UNAUTHORIZED


def test_schedule_can_be_set_before_any_pause(host, killswitch, admin, as_):
    at = host.ledger.timestamp + 50
    as_(admin, killswitch, "schedule_unpause", admin.address, at)
    assert host.invoke(killswitch, "is_paused") is False
    with pytest.raises(ContractError) as ei:
        as_(admin, killswitch, "unpause", admin.address)
    assert error_of(ei) is KillswitchError.CONTRACT_PAUSED


def test_cooldown_boundary_is_inclusive(host, killswitch, admin, as_):
    at = host.ledger.timestamp + 100
    as_(admin, killswitch, "pause", admin.address)
    as_(admin, killswitch, "schedule_unpause", admin.address, at)
    host.set_timestamp(at - 1)
    with pytest.raises(ContractError):
        as_(admin, killswitch, "unpause", admin.address)
    host.set_timestamp(at)
    as_(admin, killswitch, "unpause", admin.address)
    assert host.invoke(killswitch, "get_scheduled_unpause") is None


def test_cooldown_is_not_revalidated_and_never_expires(host, killswitch, admin, as_):
    at = host.ledger.timestamp + 10
    as_(admin, killswitch, "schedule_unpause", admin.address, at)
    host.advance(10_000)
    # still recorded although it now lies in the past
    assert host.invoke(killswitch, "get_scheduled_unpause") == at
    as_(admin, killswitch, "unpause", admin.address)
    assert host.invoke(killswitch, "get_scheduled_unpause") is None


def test_failed_unpause_changes_nothing(host, killswitch, admin, as_):
    as_(admin, killswitch, "pause", admin.address)
    as_(admin, killswitch, "schedule_unpause", admin.address, host.ledger.timestamp + 60)
    before = list(host.events)
    with pytest.raises(ContractError):
        as_(admin, killswitch, "unpause", admin.address)
    assert host.events == before
    assert host.invoke(killswitch, "is_paused") is True
    assert host.invoke(killswitch, "get_scheduled_unpause") == host.ledger.timestamp + 60


# ---------------------------------------------------------------------------
# Authority transfer
# ---------------------------------------------------------------------------

def test_transfer_authority_takes_effect_immediately(host, killswitch, admin, bob, as_):
    as_(admin, killswitch, "transfer_admin", admin.address, bob.address)
    assert host.invoke(killswitch, "get_admin") == bob.address
    as_(bob, killswitch, "pause", bob.address)
    with pytest.raises(ContractError) as ei:
        as_(admin, killswitch, "pause", admin.address)
    assert error_of(ei) is KillswitchError.UNAUTHORIZED
    assert _topics(host, killswitch) == [TRANSFERRED, PAUSED]


def test_only_authority_can_transfer(host, killswitch, bob, as_):
    with pytest.raises(ContractError) as ei:
        as_(bob, killswitch, "transfer_authority", bob.address, bob.address)
    assert error_of(ei) is KillswitchError.UNAUTHORIZED


# ---------------------------------------------------------------------------
# Representative guarded operations
# ---------------------------------------------------------------------------

def test_guarded_operations_follow_the_pause_flag(host, killswitch, admin, bob, as_):
    as_(bob, killswitch, "do_transfer", bob.address, 100)
    as_(bob, killswitch, "do_mint", bob.address, 5)
    as_(admin, killswitch, "pause", admin.address)
    for fn in ("do_transfer", "do_mint"):
        with pytest.raises(ContractError) as ei:
            as_(bob, killswitch, fn, bob.address, 1)
        assert error_of(ei) is KillswitchError.CONTRACT_PAUSED
    with pytest.raises(AuthError):
        host.invoke(killswitch, "do_transfer", bob.address, 1)


def test_unknown_entry_point(host, killswitch):
    with pytest.raises(EntryPointError):
        host.invoke(killswitch, "self_destruct")


# ---------------------------------------------------------------------------
# Authority cannot be borrowed through another contract
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "fn, extra",
    [
        ("pause", []),
        ("transfer_admin", [b"\xee" * 32]),
        ("schedule_unpause", [GENESIS_TIME + 3600]),
    ],
)
def test_signature_for_another_contract_cannot_drive_killswitch(host, killswitch, admin, as_, fn, extra):
    relay = host.deploy(relay_contract)
    with pytest.raises(AuthError):
        as_(admin, relay, "relay", admin.address, killswitch, fn, extra)
    assert host.invoke(killswitch, "is_paused") is False
    assert host.invoke(killswitch, "get_admin") == admin.address
    assert host.invoke(killswitch, "get_scheduled_unpause") is None
    assert host.events_for(killswitch) == []


# ---------------------------------------------------------------------------
# End-to-end scenario
# ---------------------------------------------------------------------------

def test_incident_scenario(host, killswitch, admin, as_):
    now = host.ledger.timestamp
    as_(admin, killswitch, "pause", admin.address)
    assert host.invoke(killswitch, "is_paused") is True
    assert _topics(host, killswitch) == [PAUSED]

    as_(admin, killswitch, "schedule_unpause", admin.address, now + 3600)
    host.set_timestamp(now + 1)
    with pytest.raises(ContractError) as ei:
        as_(admin, killswitch, "unpause", admin.address)
    assert error_of(ei) is KillswitchError.CONTRACT_PAUSED

    host.set_timestamp(now + 3601)
    as_(admin, killswitch, "unpause", admin.address)
    assert host.invoke(killswitch, "is_paused") is False
    assert host.invoke(killswitch, "get_scheduled_unpause") is None
    assert _topics(host, killswitch) == [PAUSED, UNPAUSED]


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

def _fresh(admin_tag: str = "admin"):
    host = Host(
        config=None,
        ledger=LedgerInfo(timestamp=GENESIS_TIME, network_id=NETWORK),
    )
    host.mock_all_auths(False)
    admin = det_signer(admin_tag)
    ks = host.deploy(CONTRACT_MODULES["killswitch"])
    host.invoke(ks, "initialize", admin.address)
    return host, ks, admin


def _signed(host, signer, ks, fn, *args):
    auth = signer.authorize(
        network_id=host.network_id, contract=ks, fn=fn, args=list(args), nonce=host.nonce_of(signer.address)
    )
    return host.try_invoke(ks, fn, *args, auths=[auth])


@settings(max_examples=20, deadline=None)
@given(tag=st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789", min_size=1, max_size=12).filter(lambda t: t != "admin"))
def test_any_other_caller_is_unauthorized(tag):
    host, ks, admin = _fresh()
    other = det_signer(tag)
    for fn in ("pause", "unpause"):
        res = _signed(host, other, ks, fn, other.address)
        assert not res.ok and res.code == "KillswitchError:UNAUTHORIZED"
    assert _signed(host, admin, ks, "pause", admin.address).ok
    assert _signed(host, admin, ks, "unpause", admin.address).ok


@settings(max_examples=30, deadline=None)
@given(offset=st.integers(min_value=-GENESIS_TIME, max_value=10**9))
def test_schedule_validity_matches_ledger_time(offset):
    host, ks, admin = _fresh()
    at = GENESIS_TIME + offset
    res = _signed(host, admin, ks, "schedule_unpause", admin.address, at)
    if offset <= 0:
        assert res.code == "KillswitchError:INVALID_SCHEDULE"
    else:
        assert res.ok
        assert host.invoke(ks, "get_scheduled_unpause") == at


@settings(max_examples=30, deadline=None)
@given(delay=st.integers(min_value=1, max_value=10**6), elapsed=st.integers(min_value=0, max_value=2 * 10**6))
def test_unpause_respects_cooldown(delay, elapsed):
    host, ks, admin = _fresh()
    assert _signed(host, admin, ks, "pause", admin.address).ok
    assert _signed(host, admin, ks, "schedule_unpause", admin.address, GENESIS_TIME + delay).ok
    host.advance(elapsed)
    res = _signed(host, admin, ks, "unpause", admin.address)
    if elapsed < delay:
        assert res.code == "KillswitchError:CONTRACT_PAUSED"
        assert host.invoke(ks, "is_paused") is True
    else:
        assert res.ok
        assert host.invoke(ks, "is_paused") is False
        assert host.invoke(ks, "get_scheduled_unpause") is None


@settings(max_examples=20, deadline=None)
@given(ops=st.lists(st.sampled_from(["pause", "unpause"]), max_size=8))
def test_queries_never_fail_and_track_last_transition(ops):
    host, ks, admin = _fresh()
    expected = False
    for op in ops:
        assert _signed(host, admin, ks, op, admin.address).ok
        expected = op == "pause"
        assert host.try_invoke(ks, "is_paused").value is expected
        assert host.try_invoke(ks, "get_admin").value == admin.address
        assert host.try_invoke(ks, "get_scheduled_unpause").ok
    assert len(host.events_for(ks)) == len(ops)
