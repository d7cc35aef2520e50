#!/usr/bin/env python3
"""
Reconciliation Engine

Aggregates a fee-matched transaction list against the wallet's current balance
into a TransactionSummary and runs four independent self-consistency checks.
Check failures are diagnostics: they are logged and returned, never raised.

Accounting model:
- Vault operations (deposit/withdraw) define the capital currently invested
- Fees attached to withdrawals recover the pre-fee realized yield
  (fee = FEE_RATE x realized yield, so gross yield = fee / FEE_RATE)
- External flows (receive/send/fee) must net out to the invested capital
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any

from ..core.config import DEFAULT_FEE_RATE
from ..core.currency import to_decimal, within_tolerance
from ..core.dates import DateRange
from ..core.models import (
    CashFlowCheck,
    NetDepositedCheck,
    RealizedEarningsCheck,
    SanityCheckResults,
    Transaction,
    TransactionCountCheck,
    TransactionSummary,
    TransactionType,
)
from ..core.money import Money

logger = logging.getLogger(__name__)

NET_DEPOSITED_TOLERANCE = Decimal("0.001")
REALIZED_EARNINGS_TOLERANCE = Decimal("0.01")
CASH_FLOW_TOLERANCE = Decimal("0.01")


def gross_yield_from_fees(total_fees: Decimal, fee_rate: Decimal = DEFAULT_FEE_RATE) -> Decimal:
    """Recover pre-fee realized yield from fees paid (0 when no fees)."""
    if total_fees > 0:
        return total_fees / fee_rate
    return Decimal(0)


def reverse_fee(realized_earnings: Decimal, fee_rate: Decimal = DEFAULT_FEE_RATE) -> Decimal:
    """Recompute the fee from the net realized earnings it left behind."""
    if realized_earnings > 0:
        return realized_earnings / (1 - fee_rate) * fee_rate
    return Decimal(0)


def check_net_deposited(deposits: Decimal, withdrawals: Decimal, net_deposited: Decimal) -> NetDepositedCheck:
    """Deposits minus withdrawals must equal the reported net deposited."""
    return NetDepositedCheck(
        deposits=deposits,
        withdrawals=withdrawals,
        net_deposited=net_deposited,
        passed=within_tolerance(deposits - withdrawals, net_deposited, NET_DEPOSITED_TOLERANCE),
    )


def check_realized_earnings(
    total_fees: Decimal,
    gross_yield: Decimal,
    realized_earnings: Decimal,
    fee_rate: Decimal = DEFAULT_FEE_RATE,
) -> RealizedEarningsCheck:
    """Round-trip the fee formula to catch drift."""
    reverse_check_fees = reverse_fee(realized_earnings, fee_rate)
    return RealizedEarningsCheck(
        total_fees=total_fees,
        gross_yield=gross_yield,
        realized_earnings=realized_earnings,
        reverse_check_fees=reverse_check_fees,
        passed=within_tolerance(reverse_check_fees, total_fees, REALIZED_EARNINGS_TOLERANCE),
    )


def check_cash_flow(
    receives: Decimal,
    sends: Decimal,
    fees_external: Decimal,
    current_balance: Decimal,
    unrealized_earnings: Decimal,
) -> CashFlowCheck:
    """
    Bank-statement identity: external flows must equal what is currently invested.

    Args:
        receives: Total received from external addresses
        sends: Total sent to external addresses
        fees_external: Total still typed as fee
        current_balance: Wallet's current position
        unrealized_earnings: Balance minus net deposited

    Returns:
        CashFlowCheck
    """
    net_cash_flow = receives - sends - fees_external
    invested_capital = current_balance - unrealized_earnings
    difference = abs(net_cash_flow - invested_capital)
    return CashFlowCheck(
        receives=receives,
        sends=sends,
        fees_external=fees_external,
        net_cash_flow=net_cash_flow,
        invested_capital=invested_capital,
        difference=difference,
        passed=difference < CASH_FLOW_TOLERANCE,
    )


def check_transaction_count(raw_transfers: int, classified: int, skipped: int) -> TransactionCountCheck:
    """No transfer silently vanishes."""
    return TransactionCountCheck(
        raw_transfers=raw_transfers,
        classified=classified,
        skipped=skipped,
        passed=raw_transfers == 0 or raw_transfers == classified + skipped,
    )


class ReconciliationEngine:
    """Builds audited summaries from fee-matched transactions."""

    def __init__(self, fee_rate: Decimal = DEFAULT_FEE_RATE):
        """
        Initialize the engine.

        Args:
            fee_rate: Platform performance-fee fraction of realized yield
        """
        self.fee_rate = fee_rate

    def summarize(
        self,
        transactions: list[Transaction],
        current_balance: Any,
        raw_transfer_count: int = 0,
        skipped_count: int = 0,
        classified_count: int | None = None,
    ) -> TransactionSummary:
        """
        Aggregate transactions into a TransactionSummary.

        Args:
            transactions: Fee-matched transactions
            current_balance: Live wallet balance (Money, Decimal or number;
                not-a-number becomes 0)
            raw_transfer_count: Transfers fetched before classification
            skipped_count: Transfers dropped by the classifier
            classified_count: Transfers the classifier kept, when
                `transactions` is a date-filtered subset (default: its length)

        Returns:
            TransactionSummary with sanity checks attached
        """
        if classified_count is None:
            classified_count = len(transactions)

        if isinstance(current_balance, Money):
            balance = current_balance.to_decimal()
        else:
            balance = to_decimal(current_balance)

        totals = {transaction_type: Decimal(0) for transaction_type in TransactionType}
        total_fees = Decimal(0)

        for tx in transactions:
            totals[tx.type] += tx.amount.to_decimal()
            if tx.type == TransactionType.WITHDRAW and tx.associated_fee is not None:
                total_fees += tx.associated_fee.amount.to_decimal()

        deposits = totals[TransactionType.DEPOSIT]
        withdrawals = totals[TransactionType.WITHDRAW]
        net_deposited = deposits - withdrawals
        unrealized_earnings = balance - net_deposited
        gross_yield = gross_yield_from_fees(total_fees, self.fee_rate)
        realized_earnings = gross_yield - total_fees

        sanity_checks = SanityCheckResults(
            net_deposited_check=check_net_deposited(deposits, withdrawals, net_deposited),
            realized_earnings_check=check_realized_earnings(
                total_fees, gross_yield, realized_earnings, self.fee_rate
            ),
            cash_flow_check=check_cash_flow(
                totals[TransactionType.RECEIVE],
                totals[TransactionType.SEND],
                totals[TransactionType.FEE],
                balance,
                unrealized_earnings,
            ),
            transaction_count_check=check_transaction_count(
                raw_transfer_count, classified_count, skipped_count
            ),
        )

        if not sanity_checks.all_passed:
            logger.warning("Sanity checks failed: %s", ", ".join(sanity_checks.failed_checks))

        return TransactionSummary(
            total_deposited_to_vaults=Money(amount=deposits),
            total_withdrawn_from_vaults=Money(amount=withdrawals),
            net_deposited=Money(amount=net_deposited),
            unrealized_earnings=Money(amount=unrealized_earnings),
            current_balance=Money(amount=balance),
            total_fees=Money(amount=total_fees),
            gross_yield_realized=Money(amount=gross_yield),
            realized_earnings=Money(amount=realized_earnings),
            total_receives=Money(amount=totals[TransactionType.RECEIVE]),
            total_sends=Money(amount=totals[TransactionType.SEND]),
            total_fees_external=Money(amount=totals[TransactionType.FEE]),
            transaction_count=len(transactions),
            raw_transfer_count=raw_transfer_count,
            skipped_count=skipped_count,
            sanity_checks=sanity_checks,
        )


def apply_running_balances(transactions: list[Transaction], current_balance: Any) -> list[Transaction]:
    """
    Annotate each transaction with the wallet balance right after it.

    Walks from newest to oldest starting at the current balance: inflows
    (receive, withdraw) are subtracted and outflows (send, deposit) added back.
    Fees leave the balance unchanged.

    Args:
        transactions: Transactions in any order (not mutated)
        current_balance: Live wallet balance (not-a-number becomes 0)

    Returns:
        Copies with balance_after set, oldest first (equal timestamps keep
        their input order)
    """
    if isinstance(current_balance, Money):
        balance = current_balance
    else:
        balance = Money.from_dollars(current_balance)

    newest_first = list(reversed(sort_chronologically(transactions)))
    with_balances = []

    for tx in newest_first:
        with_balances.append(replace(tx, balance_after=balance))
        if tx.type.is_inflow:
            balance = balance - tx.amount
        elif tx.type.is_outflow:
            balance = balance + tx.amount

    with_balances.reverse()
    return with_balances


def filter_by_date_range(transactions: list[Transaction], date_range: DateRange) -> list[Transaction]:
    """Keep transactions whose timestamp falls within the range (inclusive)."""
    return [tx for tx in transactions if date_range.contains(tx.timestamp)]


def sort_chronologically(transactions: list[Transaction]) -> list[Transaction]:
    """Oldest first; stable for equal timestamps."""
    return sorted(transactions, key=lambda tx: tx.timestamp)
