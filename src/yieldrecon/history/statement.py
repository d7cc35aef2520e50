#!/usr/bin/env python3
"""
Account Statement Export

Renders a history result as a CSV account statement: header, summary block,
then one row per transaction with its running balance.
"""

import csv
import io
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from ..core.currency import decimal_to_dollars_str
from ..core.dates import FinancialDate, utc_now
from ..core.models import Transaction, TransactionType

if TYPE_CHECKING:
    from .service import HistoryResult

logger = logging.getLogger(__name__)

STATEMENT_TITLE = "Account Statement"
TRANSACTION_HEADER = ["Date", "Type", "Amount", "Balance After", "Vault", "Transaction Hash"]
DISCLAIMER = (
    "Note: This report is for informational purposes only. "
    "DeFi yields may be taxed differently across jurisdictions. Consult a tax professional."
)


def _short_date(moment: datetime) -> str:
    return FinancialDate.from_datetime(moment).to_short_string()


def _transaction_row(tx: Transaction) -> list[str]:
    if tx.type == TransactionType.DEPOSIT:
        prefix = "-"
    elif tx.type == TransactionType.WITHDRAW:
        prefix = "+"
    else:
        prefix = ""

    return [
        _short_date(tx.timestamp),
        tx.type.label,
        f"{prefix}{decimal_to_dollars_str(tx.amount.to_decimal())}",
        decimal_to_dollars_str(tx.balance_after.to_decimal()) if tx.balance_after is not None else "",
        tx.vault_name or "",
        tx.tx_hash,
    ]


def generate_statement_csv(result: "HistoryResult", generated_at: datetime | None = None) -> str:
    """
    Build the statement text.

    Args:
        result: History result to render
        generated_at: Generation time shown in the header (default: now)

    Returns:
        CSV content with newline line endings
    """
    summary = result.summary
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow([STATEMENT_TITLE])
    writer.writerow(["Wallet", result.wallet_address])
    writer.writerow(
        ["Period", f"{_short_date(result.date_range.start)} - {_short_date(result.date_range.end)}"]
    )
    writer.writerow(["Generated", _short_date(generated_at or utc_now())])
    writer.writerow([])

    writer.writerow(["SUMMARY"])
    summary_rows = [
        ("Invested (Net Deposited)", summary.net_deposited),
        ("Current Balance", summary.current_balance),
        ("Realized Earnings", summary.realized_earnings),
        ("Unrealized Earnings", summary.unrealized_earnings),
        ("Gross Yield Realized", summary.gross_yield_realized),
        ("Total Fees Paid", summary.total_fees),
    ]
    for label, value in summary_rows:
        writer.writerow([label, decimal_to_dollars_str(value.to_decimal())])
    writer.writerow(["Transaction Count", summary.transaction_count])
    writer.writerow([])

    writer.writerow(["TRANSACTIONS"])
    writer.writerow(TRANSACTION_HEADER)
    for tx in result.transactions:
        writer.writerow(_transaction_row(tx))

    writer.writerow([])
    writer.writerow([DISCLAIMER])

    return buffer.getvalue()


def statement_filename(generated_at: datetime | None = None) -> str:
    """Dated statement filename."""
    moment = generated_at or utc_now()
    return f"yieldrecon-statement-{moment.date().isoformat()}.csv"


def write_statement(
    result: "HistoryResult", output_dir: Path, generated_at: datetime | None = None
) -> Path:
    """
    Write the statement CSV into a directory.

    Args:
        result: History result to render
        output_dir: Destination directory (created if missing)
        generated_at: Generation time (default: now)

    Returns:
        Path of the written file
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / statement_filename(generated_at)

    with open(output_path, "w", encoding="utf-8", newline="") as f:
        f.write(generate_statement_csv(result, generated_at))

    logger.info("Wrote statement with %d transactions to %s", len(result.transactions), output_path)
    return output_path
