#!/usr/bin/env python3
"""
Core Data Models for yieldrecon

Common data structures shared by the classification, fee matching,
reconciliation and ledger components.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from .dates import utc_from_timestamp
from .money import Money


class TransactionType(Enum):
    """Semantic transaction categories, as seen by the wallet holder."""

    DEPOSIT = "deposit"  # wallet -> vault
    WITHDRAW = "withdraw"  # vault -> wallet
    FEE = "fee"  # wallet -> treasury
    RECEIVE = "receive"  # external -> wallet
    SEND = "send"  # wallet -> external

    @property
    def label(self) -> str:
        """User-facing label."""
        return _TYPE_LABELS[self]

    @property
    def is_inflow(self) -> bool:
        """True if the transaction moves money into the wallet."""
        return self in (TransactionType.RECEIVE, TransactionType.WITHDRAW)

    @property
    def is_outflow(self) -> bool:
        """True if the transaction moves money out of the wallet (fees excluded)."""
        return self in (TransactionType.SEND, TransactionType.DEPOSIT)


_TYPE_LABELS = {
    TransactionType.DEPOSIT: "Add to Savings",
    TransactionType.WITHDRAW: "Withdraw from Savings",
    TransactionType.FEE: "Fee",
    TransactionType.RECEIVE: "Receive",
    TransactionType.SEND: "Send",
}


@dataclass(frozen=True)
class RawTransfer:
    """
    A single token transfer as reported by the ledger explorer.

    Values are kept exactly as received: `value` is an integer string in token
    base units and `timestamp` is unix seconds (string or int). Parsing happens
    in the classifier so malformed records can be counted and dropped.
    """

    tx_hash: str
    from_address: str
    to_address: str
    value: str
    timestamp: str | int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RawTransfer":
        """Create from an Etherscan/Blockscout `tokentx` result entry."""
        return cls(
            tx_hash=data.get("hash") or "",
            from_address=data.get("from") or "",
            to_address=data.get("to") or "",
            value=str(data.get("value") or "0"),
            timestamp=data.get("timeStamp") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert back to explorer field names."""
        return {
            "hash": self.tx_hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": self.value,
            "timeStamp": str(self.timestamp),
        }


@dataclass(frozen=True)
class AssociatedFee:
    """Platform fee attached to the withdrawal that generated it."""

    amount: Money
    tx_hash: str


@dataclass
class Transaction:
    """
    A classified wallet transaction.

    Created once by the classifier. The fee matcher may change `type` (fee to
    send) or set `associated_fee` (withdrawals only), once.
    """

    id: str
    type: TransactionType
    amount: Money
    timestamp: datetime
    tx_hash: str
    from_address: str
    to_address: str
    amount_raw: str = ""

    # Optional fields
    vault_name: str | None = None
    vault_address: str | None = None
    associated_fee: AssociatedFee | None = None
    balance_after: Money | None = None

    def attach_fee(self, fee: "Transaction") -> None:
        """Attach a fee transaction to this withdrawal."""
        if self.type != TransactionType.WITHDRAW:
            raise ValueError(f"Fees can only be attached to withdrawals, not {self.type.value}")
        self.associated_fee = AssociatedFee(amount=fee.amount, tx_hash=fee.tx_hash)

    @property
    def unix_timestamp(self) -> int:
        """Timestamp as unix seconds."""
        return int(self.timestamp.timestamp())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "id": self.id,
            "type": self.type.value,
            "amount": str(self.amount.to_decimal()),
            "amount_raw": self.amount_raw,
            "timestamp": self.unix_timestamp,
            "tx_hash": self.tx_hash,
            "from_address": self.from_address,
            "to_address": self.to_address,
            "vault_name": self.vault_name,
            "vault_address": self.vault_address,
            "associated_fee": (
                {
                    "amount": str(self.associated_fee.amount.to_decimal()),
                    "tx_hash": self.associated_fee.tx_hash,
                }
                if self.associated_fee is not None
                else None
            ),
            "balance_after": str(self.balance_after.to_decimal()) if self.balance_after is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """Create Transaction from dictionary produced by to_dict()."""
        fee_data = data.get("associated_fee")
        return cls(
            id=data["id"],
            type=TransactionType(data["type"]),
            amount=Money.from_dollars(data["amount"]),
            amount_raw=data.get("amount_raw", ""),
            timestamp=utc_from_timestamp(int(data["timestamp"])),
            tx_hash=data["tx_hash"],
            from_address=data["from_address"],
            to_address=data["to_address"],
            vault_name=data.get("vault_name"),
            vault_address=data.get("vault_address"),
            associated_fee=(
                AssociatedFee(amount=Money.from_dollars(fee_data["amount"]), tx_hash=fee_data["tx_hash"])
                if fee_data
                else None
            ),
            balance_after=(
                Money.from_dollars(data["balance_after"]) if data.get("balance_after") is not None else None
            ),
        )


@dataclass
class DepositRecord:
    """Principal tracked for one wallet by the deposit ledger."""

    total_deposited: Decimal
    last_updated: datetime

    def to_dict(self) -> dict[str, str]:
        """Convert to dict for persistence (Decimal kept exact as a string)."""
        return {
            "total_deposited": str(self.total_deposited),
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DepositRecord":
        """Create DepositRecord from persisted dictionary."""
        last_updated = data["last_updated"]
        if not isinstance(last_updated, datetime):
            last_updated = datetime.fromisoformat(str(last_updated))
        return cls(
            total_deposited=Decimal(str(data["total_deposited"])),
            last_updated=last_updated,
        )


@dataclass(frozen=True)
class NetDepositedCheck:
    """Deposits minus withdrawals must equal net deposited."""

    deposits: Decimal
    withdrawals: Decimal
    net_deposited: Decimal
    passed: bool


@dataclass(frozen=True)
class RealizedEarningsCheck:
    """Realized earnings must round-trip back to the fees paid."""

    total_fees: Decimal
    gross_yield: Decimal
    realized_earnings: Decimal
    reverse_check_fees: Decimal
    passed: bool


@dataclass(frozen=True)
class CashFlowCheck:
    """External cash flows must equal the capital currently invested."""

    receives: Decimal
    sends: Decimal
    fees_external: Decimal
    net_cash_flow: Decimal
    invested_capital: Decimal
    difference: Decimal
    passed: bool


@dataclass(frozen=True)
class TransactionCountCheck:
    """Every raw transfer is either classified or skipped."""

    raw_transfers: int
    classified: int
    skipped: int
    passed: bool


@dataclass(frozen=True)
class SanityCheckResults:
    """The four independent reconciliation checks."""

    net_deposited_check: NetDepositedCheck
    realized_earnings_check: RealizedEarningsCheck
    cash_flow_check: CashFlowCheck
    transaction_count_check: TransactionCountCheck

    @property
    def all_passed(self) -> bool:
        """Conjunction of all checks."""
        return (
            self.net_deposited_check.passed
            and self.realized_earnings_check.passed
            and self.cash_flow_check.passed
            and self.transaction_count_check.passed
        )

    @property
    def failed_checks(self) -> list[str]:
        """Names of checks that did not pass."""
        checks = {
            "net_deposited": self.net_deposited_check,
            "realized_earnings": self.realized_earnings_check,
            "cash_flow": self.cash_flow_check,
            "transaction_count": self.transaction_count_check,
        }
        return [name for name, check in checks.items() if not check.passed]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "net_deposited_check": asdict(self.net_deposited_check),
            "realized_earnings_check": asdict(self.realized_earnings_check),
            "cash_flow_check": asdict(self.cash_flow_check),
            "transaction_count_check": asdict(self.transaction_count_check),
            "all_passed": self.all_passed,
        }


@dataclass(frozen=True)
class TransactionSummary:
    """
    Reconciled view of a wallet's history against its current balance.

    Recomputed on demand from a transaction list and a balance; never persisted.
    """

    # Vault operations
    total_deposited_to_vaults: Money
    total_withdrawn_from_vaults: Money
    net_deposited: Money  # capital currently invested
    unrealized_earnings: Money
    current_balance: Money

    # Fees and realized yield
    total_fees: Money  # fees attached to withdrawals only
    gross_yield_realized: Money
    realized_earnings: Money

    # External cash flows
    total_receives: Money
    total_sends: Money
    total_fees_external: Money

    # Counts
    transaction_count: int
    raw_transfer_count: int
    skipped_count: int

    sanity_checks: SanityCheckResults

    @property
    def net_gain(self) -> Money:
        """Unrealized earnings minus fees (kept for older report layouts)."""
        return self.unrealized_earnings - self.total_fees

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "total_deposited_to_vaults": self.total_deposited_to_vaults.to_decimal(),
            "total_withdrawn_from_vaults": self.total_withdrawn_from_vaults.to_decimal(),
            "net_deposited": self.net_deposited.to_decimal(),
            "unrealized_earnings": self.unrealized_earnings.to_decimal(),
            "current_balance": self.current_balance.to_decimal(),
            "total_fees": self.total_fees.to_decimal(),
            "gross_yield_realized": self.gross_yield_realized.to_decimal(),
            "realized_earnings": self.realized_earnings.to_decimal(),
            "net_gain": self.net_gain.to_decimal(),
            "total_receives": self.total_receives.to_decimal(),
            "total_sends": self.total_sends.to_decimal(),
            "total_fees_external": self.total_fees_external.to_decimal(),
            "transaction_count": self.transaction_count,
            "raw_transfer_count": self.raw_transfer_count,
            "skipped_count": self.skipped_count,
            "sanity_checks": self.sanity_checks.to_dict(),
        }


@dataclass
class ClassificationResult:
    """Output of classifying a batch of raw transfers."""

    transactions: list[Transaction]
    raw_transfer_count: int
    skipped_count: int

    @property
    def classified_count(self) -> int:
        """Number of transfers that produced a transaction."""
        return len(self.transactions)


# Type aliases for common data structures
TransactionList = list[Transaction]
RawTransferList = list[RawTransfer]

