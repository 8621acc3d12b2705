# -*- coding: utf-8 -*-
"""
remit_contracts — Remitwise ledger contracts for the remit_vm host.

Contracts (each a module whose public functions are entry points):

- ``killswitch.contract``        Emergency Killswitch (pause/authority/cooldown)
- ``bill_payments.contract``     bills with optional recurrence
- ``insurance.contract``         policies with a 30-day premium cycle
- ``savings_goals.contract``     locked/unlocked savings goals
- ``remittance_split.contract``  percentage split of incoming remittances

Every mutating record entry point is a guarded operation that consults the
killswitch linked in the contract's constructor.
"""
from __future__ import annotations

CONTRACT_MODULES = {
    "killswitch": "remit_contracts.killswitch.contract",
    "bill_payments": "remit_contracts.bill_payments.contract",
    "insurance": "remit_contracts.insurance.contract",
    "savings_goals": "remit_contracts.savings_goals.contract",
    "remittance_split": "remit_contracts.remittance_split.contract",
}

__all__ = ["CONTRACT_MODULES"]
