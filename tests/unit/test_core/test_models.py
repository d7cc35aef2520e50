#!/usr/bin/env python3
"""Tests for core data models."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tests.fixtures.synthetic_data import TREASURY, VAULT, WALLET, make_transfer
from yieldrecon.core.models import (
    DepositRecord,
    RawTransfer,
    Transaction,
    TransactionType,
)
from yieldrecon.core.money import Money


def _transaction(tx_type: TransactionType, **kwargs) -> Transaction:
    defaults = {
        "id": "0xabc-from-to-1-0",
        "type": tx_type,
        "amount": Money.from_dollars(45),
        "timestamp": datetime(2024, 6, 10, tzinfo=timezone.utc),
        "tx_hash": "0xabc",
        "from_address": VAULT,
        "to_address": WALLET,
        "amount_raw": "45000000",
    }
    defaults.update(kwargs)
    return Transaction(**defaults)


class TestTransactionType:
    """Test transaction type metadata."""

    @pytest.mark.parametrize(
        "tx_type,label,inflow,outflow",
        [
            (TransactionType.DEPOSIT, "Add to Savings", False, True),
            (TransactionType.WITHDRAW, "Withdraw from Savings", True, False),
            (TransactionType.FEE, "Fee", False, False),
            (TransactionType.RECEIVE, "Receive", True, False),
            (TransactionType.SEND, "Send", False, True),
        ],
    )
    def test_type_metadata(self, tx_type, label, inflow, outflow):
        """Test labels and flow direction."""
        assert tx_type.label == label
        assert tx_type.is_inflow is inflow
        assert tx_type.is_outflow is outflow


class TestRawTransfer:
    """Test explorer record parsing."""

    def test_from_dict(self):
        """Explorer field names map onto the record."""
        raw = make_transfer(WALLET, TREASURY, "0.75", 1718000000, "0x04")
        transfer = RawTransfer.from_dict(raw.to_dict())

        assert transfer == raw
        assert transfer.value == "750000"

    def test_missing_fields(self):
        """Missing fields become empty strings rather than raising."""
        transfer = RawTransfer.from_dict({"hash": "0x01"})

        assert transfer.from_address == ""
        assert transfer.to_address == ""
        assert transfer.value == "0"
        assert transfer.timestamp == ""


class TestTransaction:
    """Test classified transaction behaviour."""

    def test_attach_fee_to_withdrawal(self):
        """Withdrawals accept a fee."""
        withdrawal = _transaction(TransactionType.WITHDRAW)
        fee = _transaction(TransactionType.FEE, amount=Money.from_dollars("0.75"), tx_hash="0xfee")

        withdrawal.attach_fee(fee)

        assert withdrawal.associated_fee is not None
        assert withdrawal.associated_fee.amount == Money.from_dollars("0.75")
        assert withdrawal.associated_fee.tx_hash == "0xfee"

    @pytest.mark.parametrize("tx_type", [TransactionType.DEPOSIT, TransactionType.SEND, TransactionType.FEE])
    def test_attach_fee_rejects_other_types(self, tx_type):
        """Only withdrawals carry fees."""
        transaction = _transaction(tx_type)
        fee = _transaction(TransactionType.FEE)

        with pytest.raises(ValueError, match="only be attached to withdrawals"):
            transaction.attach_fee(fee)

    def test_dict_round_trip(self):
        """Transactions survive serialization with their fee and balance."""
        withdrawal = _transaction(
            TransactionType.WITHDRAW,
            vault_name="Re7 USDC",
            vault_address=VAULT,
            balance_after=Money.from_dollars("45.00"),
        )
        withdrawal.attach_fee(_transaction(TransactionType.FEE, amount=Money.from_dollars("0.75")))

        data = withdrawal.to_dict()
        restored = Transaction.from_dict(data)

        assert data["type"] == "withdraw"
        assert data["timestamp"] == withdrawal.unix_timestamp
        assert restored == withdrawal


class TestDepositRecord:
    """Test ledger record persistence format."""

    def test_round_trip_keeps_exact_decimal(self):
        """Deposited totals are stored as exact strings."""
        record = DepositRecord(
            total_deposited=Decimal("100.123456"),
            last_updated=datetime(2024, 6, 10, 8, 30, tzinfo=timezone.utc),
        )

        data = record.to_dict()

        assert data["total_deposited"] == "100.123456"
        assert DepositRecord.from_dict(data) == record
