"""
Tests for the per-session credit budget.
"""

import logging

import pytest

from agents.generation.credit_ledger import CreditLedger


def spend(ledger: CreditLedger) -> bool:
    if not ledger.try_reserve():
        return False
    ledger.commit()
    return True


def test_commits_never_exceed_budget():
    ledger = CreditLedger(max_credits=3)

    outcomes = [spend(ledger) for _ in range(5)]

    assert outcomes == [True, True, True, False, False]
    assert ledger.remaining() == 0
    assert ledger.stats()['committed'] == 3


def test_reserve_does_not_change_balance():
    ledger = CreditLedger(max_credits=2)

    assert ledger.try_reserve()
    assert ledger.remaining() == 2
    assert ledger.available() == 1


def test_outstanding_holds_block_double_spend():
    ledger = CreditLedger(max_credits=1)

    assert ledger.try_reserve()
    # A second overlapping attempt cannot take the same credit
    assert not ledger.try_reserve()
    ledger.commit()
    assert ledger.remaining() == 0


def test_release_returns_the_hold():
    ledger = CreditLedger(max_credits=1)

    assert ledger.try_reserve()
    ledger.release()

    assert ledger.remaining() == 1
    assert ledger.try_reserve()


def test_balance_never_goes_negative():
    ledger = CreditLedger(max_credits=1)

    assert ledger.commit() == 1
    assert ledger.commit() == 0
    assert ledger.remaining() == 0


def test_exhaustion_warns_once(caplog):
    ledger = CreditLedger(max_credits=0)

    with caplog.at_level(logging.WARNING, logger="agents.generation.credit_ledger"):
        assert not ledger.try_reserve()
        assert not ledger.try_reserve()
        assert not ledger.try_reserve()

    warnings = [r for r in caplog.records if "Credits limit reached" in r.getMessage()]
    assert len(warnings) == 1
    assert ledger.has_warned


def test_reset_restores_budget_and_rearms_warning():
    ledger = CreditLedger(max_credits=1)
    spend(ledger)
    ledger.try_reserve()
    assert ledger.has_warned

    ledger.reset()

    assert ledger.remaining() == 1
    assert not ledger.has_warned
    assert spend(ledger)


def test_independent_ledgers_do_not_share_state():
    first = CreditLedger(max_credits=1)
    second = CreditLedger(max_credits=1)

    spend(first)

    assert first.remaining() == 0
    assert second.remaining() == 1


def test_negative_budget_rejected():
    with pytest.raises(ValueError):
        CreditLedger(max_credits=-1)
