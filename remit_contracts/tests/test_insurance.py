# -*- coding: utf-8 -*-
from __future__ import annotations

import pytest

from remit_contracts.insurance import InsuranceError
from remit_contracts.insurance.contract import PREMIUM_PERIOD_DAYS, SECONDS_PER_DAY
from remit_vm.errors import ContractError

from .conftest import error_of

PERIOD = PREMIUM_PERIOD_DAYS * SECONDS_PER_DAY


@pytest.fixture
def policies(deploy_linked):
    return deploy_linked("insurance")


def _create(as_, owner, policies, premium=200, coverage=50_000):
    return as_(owner, policies, "create_policy", owner.address, "Health", "HMO", premium, coverage)


def test_create_policy(host, bob, as_, policies):
    pid = _create(as_, bob, policies)
    p = host.invoke(policies, "get_policy", pid)
    assert p.active is True
    assert p.next_payment_date == host.ledger.timestamp + PERIOD
    assert host.events_for(policies)[0].topics == (b"insure", b"created")


def test_premium_and_coverage_validation(bob, as_, policies):
    with pytest.raises(ContractError) as ei:
        _create(as_, bob, policies, premium=0)
    assert error_of(ei) is InsuranceError.INVALID_PREMIUM
    with pytest.raises(ContractError) as ei:
        _create(as_, bob, policies, coverage=-5)
    assert error_of(ei) is InsuranceError.INVALID_COVERAGE


def test_pay_premium_moves_next_payment(host, bob, as_, policies):
    pid = _create(as_, bob, policies)
    host.advance(10 * SECONDS_PER_DAY)
    due = as_(bob, policies, "pay_premium", bob.address, pid)
    assert due == host.ledger.timestamp + PERIOD
    assert host.invoke(policies, "get_policy", pid).next_payment_date == due
    ev = host.events_for(policies)[-1]
    assert ev.topics == (b"insure", b"paid") and ev.data["amount"] == 200


def test_deactivated_policy_rejects_premiums(host, bob, as_, policies):
    pid = _create(as_, bob, policies)
    as_(bob, policies, "deactivate_policy", bob.address, pid)
    with pytest.raises(ContractError) as ei:
        as_(bob, policies, "pay_premium", bob.address, pid)
    assert error_of(ei) is InsuranceError.POLICY_INACTIVE
    assert [e.topics[1] for e in host.events_for(policies)] == [b"created", b"deactivated"]


def test_owner_only(bob, carol, as_, policies):
    pid = _create(as_, bob, policies)
    for fn in ("pay_premium", "deactivate_policy"):
        with pytest.raises(ContractError) as ei:
            as_(carol, policies, fn, carol.address, pid)
        assert error_of(ei) is InsuranceError.UNAUTHORIZED
    with pytest.raises(ContractError) as ei:
        as_(carol, policies, "pay_premium", carol.address, 42)
    assert error_of(ei) is InsuranceError.POLICY_NOT_FOUND


def test_active_policies_and_total_premium(host, bob, as_, policies):
    ids = [_create(as_, bob, policies, premium=p) for p in (100, 200, 300)]
    as_(bob, policies, "deactivate_policy", bob.address, ids[1])
    page = host.invoke(policies, "get_active_policies", bob.address, 0, 0)
    assert [p.id for p in page.items] == [ids[0], ids[2]]
    assert page.next_cursor == 0
    assert host.invoke(policies, "get_total_monthly_premium", bob.address) == 400
