#!/usr/bin/env python3
"""
Source Arbiter Module

Two independently computed "amount invested" values can diverge: one replayed
from transfer history, one kept incrementally by the deposit ledger. The
arbiter decides which to trust through an ordered decision table; the first
guard that applies wins and names itself in the result.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from ..core.config import DEFAULT_FEE_RATE
from ..core.currency import is_not_a_number, to_decimal
from ..core.models import Transaction, TransactionType
from ..core.money import Money

logger = logging.getLogger(__name__)

BALANCE_BUFFER = Decimal("1")
MIN_SIGNIFICANT_DIFF = Decimal("10")
SIGNIFICANT_DIFF_RATIO = Decimal("0.10")
STALE_HISTORY_RATIO = Decimal("0.5")
MAX_FEE_RATIO = Decimal("0.10")


class DepositSource(Enum):
    """Where an arbitrated deposited value came from."""

    HISTORY = "history"
    LEDGER = "ledger"


class EarningsSource(Enum):
    """Basis of an earnings breakdown."""

    FEES = "fees"
    ESTIMATED = "estimated"


@dataclass(frozen=True)
class PrincipalReplay:
    """Result of replaying vault operations to split principal from yield."""

    total_deposits: Decimal
    total_withdrawals: Decimal
    principal_withdrawn: Decimal
    net_deposited: Decimal
    suspicious_fee_count: int = 0


@dataclass(frozen=True)
class ArbitrationInputs:
    """
    Normalized inputs to the decision table.

    `history` keeps NaN so the first guard can reject it; `ledger` and
    `balance` are already finite.
    """

    history: Decimal
    ledger: Decimal
    balance: Decimal

    @property
    def history_invalid(self) -> bool:
        if self.history.is_nan():
            return True
        return self.history < 0 or self.history > self.balance + BALANCE_BUFFER

    @property
    def significant_diff(self) -> Decimal:
        return max(MIN_SIGNIFICANT_DIFF, self.balance * SIGNIFICANT_DIFF_RATIO)


@dataclass(frozen=True)
class ArbitrationRule:
    """A named guard and the source it selects."""

    name: str
    applies: Callable[[ArbitrationInputs], bool]
    source: DepositSource


ARBITRATION_RULES: tuple[ArbitrationRule, ...] = (
    ArbitrationRule(
        name="history_impossible",
        applies=lambda inputs: inputs.history_invalid,
        source=DepositSource.LEDGER,
    ),
    ArbitrationRule(
        name="ledger_empty",
        applies=lambda inputs: inputs.ledger <= 0,
        source=DepositSource.HISTORY,
    ),
    ArbitrationRule(
        name="history_stale",
        applies=lambda inputs: (
            abs(inputs.ledger - inputs.balance) < BALANCE_BUFFER
            and inputs.history < inputs.balance * STALE_HISTORY_RATIO
        ),
        source=DepositSource.LEDGER,
    ),
    ArbitrationRule(
        name="sources_diverge",
        applies=lambda inputs: abs(inputs.history - inputs.ledger) > inputs.significant_diff,
        source=DepositSource.LEDGER,
    ),
    ArbitrationRule(
        name="history_default",
        applies=lambda inputs: True,
        source=DepositSource.HISTORY,
    ),
)


@dataclass(frozen=True)
class DepositedEstimate:
    """Arbitrated deposited value with its provenance."""

    value: Money
    source: DepositSource
    rule: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {"value": self.value.to_decimal(), "source": self.source.value, "rule": self.rule}


@dataclass(frozen=True)
class EarningsBreakdown:
    """Realized plus unrealized earnings."""

    realized: Money
    unrealized: Money
    total: Money
    source: EarningsSource
    deposited: DepositedEstimate

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "realized": self.realized.to_decimal(),
            "unrealized": self.unrealized.to_decimal(),
            "total": self.total.to_decimal(),
            "source": self.source.value,
            "deposited": self.deposited.to_dict(),
        }


def _finite(value: Any) -> Decimal:
    if isinstance(value, Money):
        return value.to_decimal()
    return to_decimal(value)


class SourceArbiter:
    """Chooses between history-derived and ledger deposited values."""

    def __init__(
        self,
        fee_rate: Decimal = DEFAULT_FEE_RATE,
        rules: tuple[ArbitrationRule, ...] = ARBITRATION_RULES,
    ):
        """
        Initialize the arbiter.

        Args:
            fee_rate: Platform performance-fee fraction used to split yield
            rules: Ordered decision table (default: ARBITRATION_RULES)
        """
        self.fee_rate = fee_rate
        self.rules = rules

    def replay_principal(self, transactions: list[Transaction]) -> PrincipalReplay:
        """
        Replay vault operations, counting only principal as withdrawn.

        A withdrawal with an attached fee removes `amount - fee / fee_rate` of
        principal. When the implied yield exceeds the withdrawal, or the fee is
        more than 10% of it, the fee match is not trusted and the whole
        withdrawal counts as principal. Withdrawals without a fee are all
        principal.

        Args:
            transactions: Fee-matched transactions

        Returns:
            PrincipalReplay with net deposited clamped to [0, total deposits]
        """
        total_deposits = Decimal(0)
        total_withdrawals = Decimal(0)
        principal_withdrawn = Decimal(0)
        suspicious = 0

        for tx in transactions:
            amount = tx.amount.to_decimal()
            if tx.type == TransactionType.DEPOSIT:
                total_deposits += amount
            elif tx.type == TransactionType.WITHDRAW:
                total_withdrawals += amount
                if tx.associated_fee is None or amount <= 0:
                    principal_withdrawn += amount
                    continue

                fee = tx.associated_fee.amount.to_decimal()
                yield_portion = fee / self.fee_rate
                if yield_portion > amount or fee / amount > MAX_FEE_RATIO:
                    logger.warning(
                        "Suspicious fee %s on withdrawal %s (%s); treating withdrawal as principal",
                        tx.associated_fee.amount,
                        tx.amount,
                        tx.tx_hash,
                    )
                    suspicious += 1
                    principal_withdrawn += amount
                else:
                    principal_withdrawn += amount - yield_portion

        net_deposited = min(max(Decimal(0), total_deposits - principal_withdrawn), total_deposits)

        logger.debug(
            "Replay: deposits %s, withdrawals %s, principal withdrawn %s, net %s",
            total_deposits,
            total_withdrawals,
            principal_withdrawn,
            net_deposited,
        )

        return PrincipalReplay(
            total_deposits=total_deposits,
            total_withdrawals=total_withdrawals,
            principal_withdrawn=principal_withdrawn,
            net_deposited=net_deposited,
            suspicious_fee_count=suspicious,
        )

    def net_deposited_from_history(self, transactions: list[Transaction]) -> Money:
        """History-derived deposited value."""
        return Money(amount=self.replay_principal(transactions).net_deposited)

    def resolve(self, history_value: Any, ledger_value: Any, current_balance: Any) -> DepositedEstimate:
        """
        Decide which deposited value to trust.

        Args:
            history_value: History-derived value (may be NaN or negative)
            ledger_value: Deposit ledger value (NaN becomes 0)
            current_balance: Live balance (NaN becomes 0)

        Returns:
            DepositedEstimate naming the source and the rule that fired
        """
        if isinstance(history_value, Money):
            history = history_value.to_decimal()
        elif is_not_a_number(history_value):
            history = Decimal("NaN")
        else:
            history = to_decimal(history_value)

        inputs = ArbitrationInputs(
            history=history,
            ledger=_finite(ledger_value),
            balance=_finite(current_balance),
        )

        for rule in self.rules:
            if not rule.applies(inputs):
                continue

            if rule.source == DepositSource.HISTORY:
                value = inputs.history
            else:
                value = self._ledger_value(inputs)

            logger.debug(
                "Deposited: %s from %s (%s); history %s, ledger %s, balance %s",
                value,
                rule.source.value,
                rule.name,
                inputs.history,
                inputs.ledger,
                inputs.balance,
            )
            return DepositedEstimate(value=Money(amount=value), source=rule.source, rule=rule.name)

        # Only reachable with a custom table lacking a catch-all
        raise ValueError("No arbitration rule applied")

    def _ledger_value(self, inputs: ArbitrationInputs) -> Decimal:
        """Ledger value capped at the balance; an invalid ledger yields the balance."""
        if inputs.ledger < 0:
            logger.warning("Ledger value %s is invalid; using balance as deposited", inputs.ledger)
            return inputs.balance
        if inputs.balance > 0:
            return min(inputs.ledger, inputs.balance)
        return inputs.ledger

    def reliable_deposited(
        self, transactions: list[Transaction], ledger_value: Any, current_balance: Any
    ) -> DepositedEstimate:
        """Replay history and arbitrate it against the ledger."""
        history = self.net_deposited_from_history(transactions)
        return self.resolve(history, ledger_value, current_balance)

    def realized_earnings(self, transactions: list[Transaction]) -> Money:
        """
        Net realized yield from fees that were matched to withdrawals.

        Fees that remain typed as fee after matching are the ones consumed by a
        withdrawal; unmatched fees were retyped as sends.
        """
        total_fees = sum(
            (tx.amount for tx in transactions if tx.type == TransactionType.FEE),
            Money.zero(),
        )
        if not total_fees.is_positive():
            return Money.zero()
        return total_fees / self.fee_rate - total_fees

    def total_earnings(
        self, transactions: list[Transaction], ledger_value: Any, current_balance: Any
    ) -> EarningsBreakdown:
        """
        Realized (fee-derived) plus unrealized (balance minus deposited) earnings.

        Args:
            transactions: Fee-matched transactions
            ledger_value: Deposit ledger value
            current_balance: Live balance

        Returns:
            EarningsBreakdown; source is FEES when any yield was realized
        """
        realized = self.realized_earnings(transactions)
        deposited = self.reliable_deposited(transactions, ledger_value, current_balance)
        balance = Money(amount=_finite(current_balance))
        unrealized = max(Money.zero(), balance - deposited.value)

        return EarningsBreakdown(
            realized=realized,
            unrealized=unrealized,
            total=realized + unrealized,
            source=EarningsSource.FEES if realized.is_positive() else EarningsSource.ESTIMATED,
            deposited=deposited,
        )
