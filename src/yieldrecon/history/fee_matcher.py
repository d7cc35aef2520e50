#!/usr/bin/env python3
"""
Fee Matching Module

Ties platform fees to the withdrawals that realized the yield they were
charged on. Implements a 2-strategy system for the protocol's 1:1 fee model:
same transaction hash first, then the nearest fee inside a time window.
Fees that cannot be tied to a withdrawal are reclassified as sends.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from ..core.models import Transaction, TransactionType
from ..core.money import Money

logger = logging.getLogger(__name__)

DEFAULT_FEE_WINDOW_SECONDS = 300


class FeeMatchStrategy(Enum):
    """Different fee matching strategies"""

    SAME_TX_HASH = "same_tx_hash"
    TIME_WINDOW = "time_window"


@dataclass(frozen=True)
class FeeMatchReport:
    """Outcome of one fee matching pass."""

    matched_count: int
    matched_amount: Money
    reclassified_count: int
    reclassified_amount: Money
    hash_matches: int = 0
    window_matches: int = 0

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization."""
        return {
            "matched_count": self.matched_count,
            "matched_amount": self.matched_amount.to_decimal(),
            "reclassified_count": self.reclassified_count,
            "reclassified_amount": self.reclassified_amount.to_decimal(),
            "hash_matches": self.hash_matches,
            "window_matches": self.window_matches,
        }


class FeeMatcher:
    """Matches fee transactions to withdrawals, one-to-one."""

    def __init__(self, window_seconds: int = DEFAULT_FEE_WINDOW_SECONDS):
        """
        Initialize the matcher.

        Args:
            window_seconds: Maximum distance between a withdrawal and a fee
                matched by time (inclusive)
        """
        self.window_seconds = window_seconds

    def match(self, transactions: list[Transaction]) -> FeeMatchReport:
        """
        Attach fees to withdrawals in place.

        Withdrawals are processed in list order. Every fee ends up either
        attached to exactly one withdrawal or retyped as a send.

        Args:
            transactions: Classified transactions (mutated in place)

        Returns:
            FeeMatchReport summarizing the pass
        """
        fees = [tx for tx in transactions if tx.type == TransactionType.FEE]
        withdrawals = [tx for tx in transactions if tx.type == TransactionType.WITHDRAW]
        consumed: set[str] = set()

        matched_amount = Money.zero()
        counts = {FeeMatchStrategy.SAME_TX_HASH: 0, FeeMatchStrategy.TIME_WINDOW: 0}

        for withdrawal in withdrawals:
            available = [fee for fee in fees if fee.id not in consumed]
            if not available:
                break

            # Strategy 1: Same transaction hash
            fee = self._find_same_hash(withdrawal, available)
            strategy = FeeMatchStrategy.SAME_TX_HASH

            # Strategy 2: Nearest fee inside the time window
            if fee is None:
                fee = self._find_in_window(withdrawal, available)
                strategy = FeeMatchStrategy.TIME_WINDOW

            if fee is None:
                logger.debug("No fee for withdrawal %s", withdrawal.tx_hash)
                continue

            withdrawal.attach_fee(fee)
            consumed.add(fee.id)
            matched_amount += fee.amount
            counts[strategy] += 1

            logger.debug(
                "Matched fee %s to withdrawal %s (%s, %s)",
                fee.amount,
                withdrawal.tx_hash,
                strategy.value,
                withdrawal.amount,
            )

        reclassified_amount = Money.zero()
        reclassified_count = 0
        for fee in fees:
            if fee.id in consumed:
                continue
            fee.type = TransactionType.SEND
            reclassified_amount += fee.amount
            reclassified_count += 1
            logger.warning(
                "Fee %s in %s has no matching withdrawal; treating it as a send",
                fee.amount,
                fee.tx_hash,
            )

        report = FeeMatchReport(
            matched_count=len(consumed),
            matched_amount=matched_amount,
            reclassified_count=reclassified_count,
            reclassified_amount=reclassified_amount,
            hash_matches=counts[FeeMatchStrategy.SAME_TX_HASH],
            window_matches=counts[FeeMatchStrategy.TIME_WINDOW],
        )

        logger.info(
            "Matched %d fees (%s), reclassified %d as sends",
            report.matched_count,
            report.matched_amount,
            report.reclassified_count,
        )
        return report

    def _find_same_hash(self, withdrawal: Transaction, fees: list[Transaction]) -> Transaction | None:
        """Earliest (in list order) unconsumed fee sharing the withdrawal's hash."""
        for fee in fees:
            if fee.tx_hash == withdrawal.tx_hash:
                return fee
        return None

    def _find_in_window(self, withdrawal: Transaction, fees: list[Transaction]) -> Transaction | None:
        """
        Nearest unconsumed fee within the window.

        Ties go to the fee that appears first in the list.
        """
        best_match = None
        best_distance = self.window_seconds + 1

        for fee in fees:
            distance = abs(fee.unix_timestamp - withdrawal.unix_timestamp)
            if distance <= self.window_seconds and distance < best_distance:
                best_match = fee
                best_distance = distance

        return best_match


def match_fees_to_withdrawals(
    transactions: list[Transaction], window_seconds: int = DEFAULT_FEE_WINDOW_SECONDS
) -> FeeMatchReport:
    """Convenience wrapper around FeeMatcher.match()."""
    return FeeMatcher(window_seconds).match(transactions)
