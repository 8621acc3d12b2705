# -*- coding: utf-8 -*-
from __future__ import annotations

import pytest

from remit_contracts.savings_goals import SavingsError
from remit_contracts.stdlib.math.safe_int import I128_MAX, MathError
from remit_vm.errors import ContractError

from .conftest import error_of

TARGET_DATE = 1_731_536_000


@pytest.fixture
def goals(deploy_linked):
    return deploy_linked("savings_goals")


def _create(as_, owner, goals, target=5_000, name="Emergency Fund"):
    return as_(owner, goals, "create_goal", owner.address, name, target, TARGET_DATE)


def test_goals_are_created_locked(host, bob, as_, goals):
    gid = _create(as_, bob, goals)
    g = host.invoke(goals, "get_goal", gid)
    assert g.locked is True and g.current_amount == 0 and g.owner == bob.address
    with pytest.raises(ContractError) as ei:
        _create(as_, bob, goals, target=0)
    assert error_of(ei) is SavingsError.INVALID_AMOUNT


def test_add_emits_completed_only_when_crossing_target(host, bob, as_, goals):
    gid = _create(as_, bob, goals, target=1_000)
    assert as_(bob, goals, "add_to_goal", bob.address, gid, 600) == 600
    assert host.invoke(goals, "is_goal_completed", gid) is False
    assert as_(bob, goals, "add_to_goal", bob.address, gid, 500) == 1_100
    assert as_(bob, goals, "add_to_goal", bob.address, gid, 1) == 1_101
    assert host.invoke(goals, "is_goal_completed", gid) is True
    actions = [e.topics[1] for e in host.events_for(goals)]
    assert actions == [b"created", b"added", b"added", b"completed", b"added"]


def test_add_validation(bob, carol, as_, goals):
    gid = _create(as_, bob, goals)
    with pytest.raises(ContractError) as ei:
        as_(bob, goals, "add_to_goal", bob.address, gid, 0)
    assert error_of(ei) is SavingsError.INVALID_AMOUNT
    with pytest.raises(ContractError) as ei:
        as_(carol, goals, "add_to_goal", carol.address, gid, 10)
    assert error_of(ei) is SavingsError.UNAUTHORIZED
    with pytest.raises(ContractError) as ei:
        as_(bob, goals, "add_to_goal", bob.address, 77, 10)
    assert error_of(ei) is SavingsError.GOAL_NOT_FOUND


def test_withdraw_requires_unlock_and_balance(host, bob, as_, goals):
    gid = _create(as_, bob, goals)
    as_(bob, goals, "add_to_goal", bob.address, gid, 300)
    with pytest.raises(ContractError) as ei:
        as_(bob, goals, "withdraw_from_goal", bob.address, gid, 100)
    assert error_of(ei) is SavingsError.GOAL_LOCKED

    as_(bob, goals, "unlock_goal", bob.address, gid)
    with pytest.raises(ContractError) as ei:
        as_(bob, goals, "withdraw_from_goal", bob.address, gid, 301)
    assert error_of(ei) is SavingsError.INSUFFICIENT_BALANCE
    assert as_(bob, goals, "withdraw_from_goal", bob.address, gid, 100) == 200

    as_(bob, goals, "lock_goal", bob.address, gid)
    assert host.invoke(goals, "get_goal", gid).locked is True


def test_batch_is_all_or_nothing(host, bob, carol, as_, goals):
    g1 = _create(as_, bob, goals)
    g2 = _create(as_, bob, goals)
    assert as_(bob, goals, "batch_add_to_goals", bob.address, [[g1, 10], [g2, 20], [g1, 5]]) == [10, 20, 15]

    with pytest.raises(ContractError) as ei:
        as_(bob, goals, "batch_add_to_goals", bob.address, [[g1, 10], [g2, -1]])
    assert error_of(ei) is SavingsError.INVALID_AMOUNT
    assert host.invoke(goals, "get_goal", g1).current_amount == 15

    g3 = _create(as_, carol, goals)
    with pytest.raises(ContractError) as ei:
        as_(bob, goals, "batch_add_to_goals", bob.address, [[g1, 1], [g3, 1]])
    assert error_of(ei) is SavingsError.UNAUTHORIZED


def test_get_all_goals_per_owner(host, bob, carol, as_, goals):
    _create(as_, bob, goals, name="a")
    _create(as_, carol, goals, name="b")
    _create(as_, bob, goals, name="c")
    assert [g.name for g in host.invoke(goals, "get_all_goals", bob.address)] == ["a", "c"]


# ---------------------------------------------------------------------------
# Large amounts
# ---------------------------------------------------------------------------

def test_near_max_target_and_deposits(host, bob, as_, goals):
    half = I128_MAX // 2
    gid = _create(as_, bob, goals, target=half)
    assert as_(bob, goals, "add_to_goal", bob.address, gid, half) == half
    assert as_(bob, goals, "add_to_goal", bob.address, gid, half) == 2 * half
    assert host.invoke(goals, "is_goal_completed", gid) is True


def test_overflow_reverts_without_wrapping(host, bob, as_, goals):
    gid = _create(as_, bob, goals, target=I128_MAX)
    as_(bob, goals, "add_to_goal", bob.address, gid, I128_MAX - 10)
    with pytest.raises(ContractError) as ei:
        as_(bob, goals, "add_to_goal", bob.address, gid, 11)
    assert ei.value.error is MathError.OVERFLOW
    assert host.invoke(goals, "get_goal", gid).current_amount == I128_MAX - 10


def test_full_withdrawal_of_large_balance(host, bob, as_, goals):
    big = I128_MAX // 2
    gid = _create(as_, bob, goals, target=big)
    as_(bob, goals, "add_to_goal", bob.address, gid, big)
    as_(bob, goals, "unlock_goal", bob.address, gid)
    assert as_(bob, goals, "withdraw_from_goal", bob.address, gid, big) == 0
