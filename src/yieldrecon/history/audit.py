#!/usr/bin/env python3
"""
Line-by-Line Audit Trail

Replays transactions chronologically, tracking the running wallet balance,
vault position and accumulated realized yield, then verifies that the
accumulated yield matches what the fee formula says it should be.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

import pandas as pd

from ..core.config import DEFAULT_FEE_RATE
from ..core.currency import decimal_to_dollars_str, within_tolerance
from ..core.models import Transaction, TransactionType
from ..core.money import Money

logger = logging.getLogger(__name__)

VERIFICATION_TOLERANCE = Decimal("0.01")

AUDIT_COLUMNS = ["line", "date", "type", "amount", "wallet", "vault", "realized", "notes"]


@dataclass(frozen=True)
class AuditLine:
    """One transaction in the audit trail, with running totals after it."""

    line: int
    date: str
    type: str
    amount: Money  # signed: inflows positive
    wallet_balance: Money
    vault_balance: Money
    realized_yield: Money
    note: str

    def formatted_amount(self) -> str:
        """Signed dollar string like +$45.00."""
        sign = "+" if self.amount.amount >= 0 else "-"
        return f"{sign}${decimal_to_dollars_str(abs(self.amount.amount))}"

    def to_row(self) -> dict:
        """Row for tabular export."""
        return {
            "line": self.line,
            "date": self.date,
            "type": self.type,
            "amount": self.formatted_amount(),
            "wallet": str(self.wallet_balance),
            "vault": str(self.vault_balance),
            "realized": str(self.realized_yield),
            "notes": self.note,
        }


@dataclass
class AuditTrail:
    """Audit lines plus totals and the realized-yield verification."""

    lines: list[AuditLine] = field(default_factory=list)
    total_deposited: Money = field(default_factory=Money.zero)
    total_withdrawn: Money = field(default_factory=Money.zero)
    vault_position: Money = field(default_factory=Money.zero)
    accumulated_fees: Money = field(default_factory=Money.zero)
    gross_yield: Money = field(default_factory=Money.zero)
    realized_yield: Money = field(default_factory=Money.zero)
    expected_realized_yield: Money = field(default_factory=Money.zero)
    verified: bool = True

    def to_dataframe(self) -> pd.DataFrame:
        """Audit lines as a DataFrame with the standard columns."""
        return pd.DataFrame([line.to_row() for line in self.lines], columns=AUDIT_COLUMNS)

    def totals(self) -> dict[str, Decimal]:
        """Summary totals for display."""
        return {
            "total_deposited": self.total_deposited.to_decimal(),
            "total_withdrawn": self.total_withdrawn.to_decimal(),
            "vault_position": self.vault_position.to_decimal(),
            "accumulated_fees": self.accumulated_fees.to_decimal(),
            "gross_yield": self.gross_yield.to_decimal(),
            "realized_yield": self.realized_yield.to_decimal(),
            "expected_realized_yield": self.expected_realized_yield.to_decimal(),
        }

    def export_csv(self, output_path: Path) -> Path:
        """
        Write the audit lines to a CSV file.

        Args:
            output_path: Destination file (parent directories are created)

        Returns:
            The path written
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.to_dataframe().to_csv(output_path, index=False)
        logger.info("Wrote %d audit lines to %s", len(self.lines), output_path)
        return output_path


def build_audit_trail(transactions: list[Transaction], fee_rate: Decimal = DEFAULT_FEE_RATE) -> AuditTrail:
    """
    Build the line-by-line audit trail.

    Args:
        transactions: Fee-matched transactions in any order
        fee_rate: Platform performance-fee fraction

    Returns:
        AuditTrail; `verified` is True when the accumulated realized yield is
        within $0.01 of fees / fee_rate - fees
    """
    ordered = sorted(transactions, key=lambda tx: tx.timestamp)

    wallet = Money.zero()
    vault = Money.zero()
    deposited = Money.zero()
    withdrawn = Money.zero()
    realized = Money.zero()
    fees = Money.zero()
    lines = []

    for index, tx in enumerate(ordered, start=1):
        note = ""
        if tx.type == TransactionType.RECEIVE:
            wallet += tx.amount
            note = "External receive"
        elif tx.type == TransactionType.SEND:
            wallet -= tx.amount
            note = "External send"
        elif tx.type == TransactionType.DEPOSIT:
            wallet -= tx.amount
            vault += tx.amount
            deposited += tx.amount
            note = f"-> {tx.vault_name[:20]}" if tx.vault_name else "-> Vault"
        elif tx.type == TransactionType.WITHDRAW:
            wallet += tx.amount
            vault -= tx.amount
            withdrawn += tx.amount
            if tx.associated_fee is not None:
                fee = tx.associated_fee.amount
                net_yield = fee / fee_rate - fee
                realized += net_yield
                fees += fee
                note = f"Yield: +{net_yield} (fee: {fee})"
            else:
                note = "No fee (principal only?)"
        elif tx.type == TransactionType.FEE:
            # Already counted through the withdrawal's associated fee
            wallet -= tx.amount
            note = "-> Treasury"

        signed = tx.amount if tx.type.is_inflow else -tx.amount
        lines.append(
            AuditLine(
                line=index,
                date=tx.timestamp.date().isoformat(),
                type=tx.type.value.upper(),
                amount=signed,
                wallet_balance=wallet,
                vault_balance=vault,
                realized_yield=realized,
                note=note,
            )
        )

    gross = fees / fee_rate if fees.is_positive() else Money.zero()
    expected = gross - fees
    verified = within_tolerance(realized.to_decimal(), expected.to_decimal(), VERIFICATION_TOLERANCE)

    if not verified:
        logger.warning("Audit mismatch: realized yield %s, expected %s", realized, expected)

    return AuditTrail(
        lines=lines,
        total_deposited=deposited,
        total_withdrawn=withdrawn,
        vault_position=vault,
        accumulated_fees=fees,
        gross_yield=gross,
        realized_yield=realized,
        expected_realized_yield=expected,
        verified=verified,
    )
