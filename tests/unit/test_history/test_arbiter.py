#!/usr/bin/env python3
"""Tests for deposited-value arbitration between history and the ledger."""

from decimal import Decimal

import pytest

from tests.fixtures.synthetic_data import BASE_TIMESTAMP, TREASURY, VAULT, WALLET, make_transfer
from yieldrecon.core.money import Money
from yieldrecon.history.arbiter import (
    ARBITRATION_RULES,
    ArbitrationRule,
    DepositSource,
    EarningsSource,
    SourceArbiter,
)
from yieldrecon.history.classifier import classify_transfers
from yieldrecon.history.fee_matcher import match_fees_to_withdrawals


@pytest.fixture
def arbiter():
    return SourceArbiter()


@pytest.fixture
def vault_history(address_context):
    """Classify and fee-match vault transfers for the standard wallet."""

    def _history(transfers):
        transactions = classify_transfers(transfers, address_context).transactions
        match_fees_to_withdrawals(transactions)
        return transactions

    return _history


@pytest.mark.unit
@pytest.mark.reconciliation
class TestDecisionTable:
    """Each guard of the decision table, in order."""

    @pytest.mark.parametrize(
        "history,ledger,balance,expected_value,expected_source,expected_rule",
        [
            (float("nan"), 80, 100, "80", DepositSource.LEDGER, "history_impossible"),
            (-5, 80, 100, "80", DepositSource.LEDGER, "history_impossible"),
            ("101.01", 80, 100, "80", DepositSource.LEDGER, "history_impossible"),
            (float("nan"), 120, 100, "100", DepositSource.LEDGER, "history_impossible"),
            (80, 0, 100, "80", DepositSource.HISTORY, "ledger_empty"),
            (101, 0, 100, "101", DepositSource.HISTORY, "ledger_empty"),
            (60, -20, 100, "60", DepositSource.HISTORY, "ledger_empty"),
            (40, "99.50", 100, "99.50", DepositSource.LEDGER, "history_stale"),
            (60, 80, 100, "80", DepositSource.LEDGER, "sources_diverge"),
            (85, 90, 100, "85", DepositSource.HISTORY, "history_default"),
            (300, 350, 1000, "300", DepositSource.HISTORY, "history_default"),
        ],
        ids=[
            "history_nan",
            "history_negative",
            "history_above_balance",
            "ledger_clamped_to_balance",
            "ledger_empty",
            "history_at_balance_buffer",
            "negative_ledger_has_no_data",
            "history_stale",
            "sources_diverge",
            "close_values_prefer_history",
            "within_ten_percent",
        ],
    )
    def test_rules(self, arbiter, history, ledger, balance, expected_value, expected_source, expected_rule):
        """The first applicable guard decides."""
        estimate = arbiter.resolve(history, ledger, balance)

        assert estimate.value == Money.from_dollars(expected_value)
        assert estimate.source == expected_source
        assert estimate.rule == expected_rule

    def test_divergence_threshold_scales_with_balance(self, arbiter):
        """Above $100 the threshold is 10% of the balance."""
        assert arbiter.resolve(300, 390, 1000).source == DepositSource.HISTORY
        assert arbiter.resolve(300, 401, 1000).source == DepositSource.LEDGER

    def test_negative_ledger_uses_balance(self, arbiter):
        """An invalid ledger value falls back to the balance."""
        estimate = arbiter.resolve(float("nan"), -5, 100)

        assert estimate.source == DepositSource.LEDGER
        assert estimate.value == Money.from_dollars(100)

    def test_zero_balance(self, arbiter):
        """With nothing held, the ledger value is not clamped."""
        estimate = arbiter.resolve(5, 3, 0)

        assert estimate.rule == "history_impossible"
        assert estimate.value == Money.from_dollars(3)

    def test_nan_ledger_and_balance_are_zero(self, arbiter):
        """Not-a-number ledger and balance values are treated as zero."""
        estimate = arbiter.resolve(0, float("nan"), float("nan"))

        assert estimate.rule == "ledger_empty"
        assert estimate.value.is_zero()

    def test_result_never_negative_or_nan(self, arbiter):
        """Arbitrated values are finite and non-negative."""
        for history in [float("nan"), -100, 0, 50, 1000]:
            for ledger in [float("nan"), -1, 0, 40, 500]:
                for balance in [0, 45, 100]:
                    value = arbiter.resolve(history, ledger, balance).value.to_decimal()
                    assert value.is_finite()
                    assert value >= 0

    def test_table_without_catch_all(self):
        """A custom table that matches nothing is an error."""
        arbiter = SourceArbiter(rules=ARBITRATION_RULES[:1])

        with pytest.raises(ValueError):
            arbiter.resolve(50, 50, 100)

    def test_custom_table(self):
        """Tables can be replaced wholesale."""
        always_ledger = (ArbitrationRule("always_ledger", lambda inputs: True, DepositSource.LEDGER),)

        estimate = SourceArbiter(rules=always_ledger).resolve(50, 40, 100)

        assert estimate.rule == "always_ledger"
        assert estimate.to_dict() == {"value": Decimal(40), "source": "ledger", "rule": "always_ledger"}


@pytest.mark.unit
@pytest.mark.reconciliation
class TestPrincipalReplay:
    """Test the history-derived deposited value."""

    def test_fee_marks_yield_portion(self, arbiter, vault_history):
        """Only the principal share of a fee-bearing withdrawal is removed."""
        transactions = vault_history(
            [
                make_transfer(WALLET, VAULT, "100", BASE_TIMESTAMP, "0x01"),
                make_transfer(VAULT, WALLET, "45", BASE_TIMESTAMP + 100, "0x02"),
                make_transfer(WALLET, TREASURY, "0.75", BASE_TIMESTAMP + 110, "0x03"),
            ]
        )

        replay = arbiter.replay_principal(transactions)

        assert replay.total_deposits == Decimal(100)
        assert replay.total_withdrawals == Decimal(45)
        assert replay.principal_withdrawn == Decimal(40)
        assert replay.net_deposited == Decimal(60)
        assert replay.suspicious_fee_count == 0

    def test_withdrawal_without_fee_is_principal(self, arbiter, vault_history):
        transactions = vault_history(
            [
                make_transfer(WALLET, VAULT, "100", BASE_TIMESTAMP, "0x01"),
                make_transfer(VAULT, WALLET, "30", BASE_TIMESTAMP + 100, "0x02"),
            ]
        )

        assert arbiter.net_deposited_from_history(transactions) == Money.from_dollars(70)

    def test_suspicious_fee_ignored(self, arbiter, vault_history, caplog):
        """A fee above 10% of its withdrawal is not trusted."""
        transactions = vault_history(
            [
                make_transfer(WALLET, VAULT, "100", BASE_TIMESTAMP, "0x01"),
                make_transfer(VAULT, WALLET, "10", BASE_TIMESTAMP + 100, "0x02"),
                make_transfer(WALLET, TREASURY, "2", BASE_TIMESTAMP + 110, "0x03"),
            ]
        )

        replay = arbiter.replay_principal(transactions)

        assert replay.suspicious_fee_count == 1
        assert replay.principal_withdrawn == Decimal(10)
        assert replay.net_deposited == Decimal(90)
        assert "Suspicious fee" in caplog.text

    def test_clamped_to_zero(self, arbiter, vault_history):
        """Withdrawing more than was deposited cannot go negative."""
        transactions = vault_history(
            [
                make_transfer(WALLET, VAULT, "10", BASE_TIMESTAMP, "0x01"),
                make_transfer(VAULT, WALLET, "50", BASE_TIMESTAMP + 100, "0x02"),
            ]
        )

        assert arbiter.replay_principal(transactions).net_deposited == Decimal(0)


@pytest.mark.unit
@pytest.mark.reconciliation
class TestEarnings:
    """Test realized and total earnings."""

    def test_realized_from_matched_fees(self, arbiter, vault_history, sample_history):
        """Realized earnings use fees still typed as fees after matching."""
        transactions = vault_history(sample_history)

        assert arbiter.realized_earnings(transactions) == Money.from_dollars("4.25")

    def test_no_fees_no_realized(self, arbiter):
        assert arbiter.realized_earnings([]).is_zero()

    def test_total_earnings(self, arbiter, vault_history, sample_history):
        """Realized plus balance above the trusted deposited value."""
        transactions = vault_history(sample_history)

        earnings = arbiter.total_earnings(transactions, ledger_value=0, current_balance=62)

        assert earnings.deposited.rule == "ledger_empty"
        assert earnings.deposited.value == Money.from_dollars(60)
        assert earnings.unrealized == Money.from_dollars(2)
        assert earnings.total == Money.from_dollars("6.25")
        assert earnings.source == EarningsSource.FEES

    def test_unrealized_never_negative(self, arbiter):
        """Balance below deposited yields zero unrealized earnings."""
        earnings = arbiter.total_earnings([], ledger_value=100, current_balance=90)

        assert earnings.unrealized.is_zero()
        assert earnings.source == EarningsSource.ESTIMATED
        assert earnings.to_dict()["deposited"]["source"] == "ledger"
