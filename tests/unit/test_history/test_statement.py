#!/usr/bin/env python3
"""Tests for the CSV account statement."""

import csv
import io
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from tests.fixtures.synthetic_data import TREASURY, WALLET, sample_transfers
from yieldrecon.core.dates import DateRange
from yieldrecon.history.service import TransactionHistoryService
from yieldrecon.history.statement import (
    DISCLAIMER,
    TRANSACTION_HEADER,
    generate_statement_csv,
    statement_filename,
    write_statement,
)

GENERATED_AT = datetime(2024, 7, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def june_result():
    service = TransactionHistoryService(treasury_address=TREASURY)
    return service.get_history(
        WALLET,
        Decimal(55),
        DateRange.from_dates(date(2024, 6, 1), date(2024, 6, 30)),
        transfers=sample_transfers(),
    )


def _rows(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


@pytest.mark.unit
class TestStatementContent:
    """Test statement layout."""

    def test_header_block(self, june_result):
        rows = _rows(generate_statement_csv(june_result, GENERATED_AT))

        assert rows[0] == ["Account Statement"]
        assert rows[1] == ["Wallet", WALLET]
        assert rows[2] == ["Period", "06/01/2024 - 06/30/2024"]
        assert rows[3] == ["Generated", "07/01/2024"]
        assert rows[4] == []

    def test_summary_block(self, june_result):
        rows = _rows(generate_statement_csv(june_result, GENERATED_AT))
        summary = dict(row for row in rows[6:13])

        assert rows[5] == ["SUMMARY"]
        assert summary == {
            "Invested (Net Deposited)": "55.00",
            "Current Balance": "55.00",
            "Realized Earnings": "4.25",
            "Unrealized Earnings": "0.00",
            "Gross Yield Realized": "5.00",
            "Total Fees Paid": "0.75",
            "Transaction Count": "5",
        }

    def test_transaction_rows(self, june_result):
        """Deposits are negative, withdrawals positive, with running balances."""
        rows = _rows(generate_statement_csv(june_result, GENERATED_AT))
        start = rows.index(["TRANSACTIONS"])

        assert rows[start + 1] == TRANSACTION_HEADER
        assert rows[start + 2 : start + 7] == [
            ["06/10/2024", "Receive", "100.00", "154.25", "", "0x01"],
            ["06/10/2024", "Add to Savings", "-100.00", "54.25", "Re7 USDC", "0x02"],
            ["06/11/2024", "Withdraw from Savings", "+45.00", "99.25", "Re7 USDC", "0x03"],
            ["06/11/2024", "Fee", "0.75", "99.25", "", "0x04"],
            ["06/11/2024", "Send", "44.25", "55.00", "", "0x05"],
        ]

    def test_disclaimer_last(self, june_result):
        rows = _rows(generate_statement_csv(june_result, GENERATED_AT))

        assert rows[-1] == [DISCLAIMER]
        assert rows[-2] == []


@pytest.mark.unit
class TestStatementFile:
    """Test writing statements to disk."""

    def test_filename(self):
        assert statement_filename(GENERATED_AT) == "yieldrecon-statement-2024-07-01.csv"

    def test_write_statement(self, june_result, temp_dir):
        path = write_statement(june_result, temp_dir / "reports", GENERATED_AT)

        assert path == temp_dir / "reports" / "yieldrecon-statement-2024-07-01.csv"
        assert path.read_text(encoding="utf-8") == generate_statement_csv(june_result, GENERATED_AT)
