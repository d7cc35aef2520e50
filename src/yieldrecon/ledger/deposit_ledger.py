#!/usr/bin/env python3
"""
Deposit Ledger

Incremental per-wallet principal tracker driven by deposit and withdrawal
events rather than by replaying history. Writers for the same wallet are
serialized by a per-wallet lock; the stored total never goes negative.

Partial withdrawals remove principal in proportion to the share of total value
withdrawn:
- Deposited $100, value grew to $120
- Withdraw $60 (50% of value) -> deposited becomes $50
"""

import logging
import threading
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from ..core.config import DEFAULT_FEE_RATE, Config
from ..core.currency import to_decimal
from ..core.dates import utc_now
from ..core.models import DepositRecord
from ..history.registry import is_valid_address, normalize_address
from .store import InMemoryLedgerStore, LedgerStore, YamlLedgerStore

logger = logging.getLogger(__name__)

# Records above balance by more than this factor are treated as corrupted
CORRUPTION_THRESHOLD = Decimal("1.01")


def calculate_yield(current_value: Any, total_deposited: Any) -> Decimal:
    """Profit (negative when in loss)."""
    return to_decimal(current_value) - to_decimal(total_deposited)


def calculate_performance_fee(yield_amount: Any, fee_rate: Decimal = DEFAULT_FEE_RATE) -> Decimal:
    """
    Performance fee on a yield amount.

    Args:
        yield_amount: Profit being realized
        fee_rate: Fee fraction of yield (0.15 = 15%)

    Returns:
        Fee, or 0 when there is no profit
    """
    amount = to_decimal(yield_amount)
    if amount <= 0:
        return Decimal(0)
    return amount * fee_rate


@dataclass(frozen=True)
class YieldBreakdown:
    """What a full withdrawal at the current value would look like."""

    total_deposited: Decimal
    current_value: Decimal
    yield_amount: Decimal
    yield_percent: Decimal
    fee: Decimal
    user_receives: Decimal
    has_profits: bool


class DepositLedger:
    """Per-wallet deposited principal, backed by a LedgerStore."""

    def __init__(self, store: LedgerStore | None = None, clock: Callable[[], datetime] = utc_now):
        """
        Initialize the ledger.

        Args:
            store: Record storage (default: in-memory)
            clock: Source of `last_updated` timestamps
        """
        self.store = store if store is not None else InMemoryLedgerStore()
        self.clock = clock
        # Entries drop out once no caller holds the lock
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    @classmethod
    def from_config(cls, config: Config) -> "DepositLedger":
        """Create a ledger backed by the configured YAML file."""
        return cls(store=YamlLedgerStore(config.ledger.ledger_file))

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def _key(self, wallet_address: str) -> str | None:
        """Normalized wallet key, or None (logged) when malformed."""
        if not is_valid_address(wallet_address):
            logger.error("Invalid wallet address format: %r", wallet_address)
            return None
        return normalize_address(wallet_address)

    def _current(self, key: str) -> Decimal:
        record = self.store.load(key)
        return record.total_deposited if record is not None else Decimal(0)

    def _store_total(self, key: str, total: Decimal) -> None:
        self.store.save(key, DepositRecord(total_deposited=total, last_updated=self.clock()))

    def record_deposit(self, wallet_address: str, amount: Any) -> Decimal | None:
        """
        Add a deposit to the wallet's principal.

        Args:
            wallet_address: Depositing wallet
            amount: Deposited amount (not-a-number counts as 0)

        Returns:
            The new total, or None when the input was rejected
        """
        key = self._key(wallet_address)
        if key is None:
            return None

        value = to_decimal(amount)
        if value < 0:
            logger.error("Rejected negative deposit amount %s for %s", value, key)
            return None

        with self._lock_for(key):
            previous = self._current(key)
            total = previous + value
            self._store_total(key, total)

        logger.debug("Recorded deposit %s for %s: %s -> %s", value, key, previous, total)
        return total

    def record_withdrawal(self, wallet_address: str, withdrawn_value: Any, total_value_before: Any) -> Decimal | None:
        """
        Remove principal proportionally to the share of value withdrawn.

        Resets to 0 when the value before withdrawal or the current principal
        is not positive.

        Args:
            wallet_address: Withdrawing wallet
            withdrawn_value: Value taken out (not-a-number counts as 0)
            total_value_before: Position value before the withdrawal

        Returns:
            The new total, or None when the input was rejected
        """
        key = self._key(wallet_address)
        if key is None:
            return None

        withdrawn = to_decimal(withdrawn_value)
        value_before = to_decimal(total_value_before)
        if withdrawn < 0:
            logger.error("Rejected negative withdrawal %s for %s", withdrawn, key)
            return None

        with self._lock_for(key):
            previous = self._current(key)
            if value_before <= 0 or previous <= 0:
                total = Decimal(0)
            else:
                reduction = previous * (withdrawn / value_before)
                total = max(Decimal(0), previous - reduction)
            self._store_total(key, total)

        logger.debug("Recorded withdrawal %s of %s for %s: %s -> %s", withdrawn, value_before, key, previous, total)
        return total

    def get_total_deposited(self, wallet_address: str) -> Decimal:
        """Current principal (0 for unknown or malformed wallets)."""
        key = self._key(wallet_address)
        if key is None:
            return Decimal(0)
        return self._current(key)

    def get_record(self, wallet_address: str) -> DepositRecord | None:
        """Stored record, if any."""
        key = self._key(wallet_address)
        if key is None:
            return None
        return self.store.load(key)

    def reset(self, wallet_address: str) -> None:
        """Forget a wallet's record."""
        key = self._key(wallet_address)
        if key is None:
            return
        with self._lock_for(key):
            self.store.delete(key)
        logger.info("Reset deposit record for %s", key)

    def recover_missing_deposit(self, wallet_address: str, current_value: Any) -> bool:
        """
        Seed a missing record from the current position value.

        Returns:
            True if a record was created
        """
        key = self._key(wallet_address)
        if key is None:
            return False

        value = to_decimal(current_value)
        with self._lock_for(key):
            if self._current(key) != 0 or value <= 0:
                return False
            self._store_total(key, value)

        logger.info("Recovered missing deposit record for %s: %s", key, value)
        return True

    def yield_breakdown(
        self, wallet_address: str, current_value: Any, fee_rate: Decimal = DEFAULT_FEE_RATE
    ) -> YieldBreakdown:
        """Yield, fee and net proceeds at the current value."""
        deposited = self.get_total_deposited(wallet_address)
        value = to_decimal(current_value)
        yield_amount = calculate_yield(value, deposited)
        fee = calculate_performance_fee(yield_amount, fee_rate)

        return YieldBreakdown(
            total_deposited=deposited,
            current_value=value,
            yield_amount=yield_amount,
            yield_percent=yield_amount / deposited * 100 if deposited > 0 else Decimal(0),
            fee=fee,
            user_receives=value - fee,
            has_profits=yield_amount > 0,
        )

    def deposited_and_earnings(self, wallet_address: str, current_balance: Any) -> tuple[Decimal, Decimal]:
        """
        Deposited principal and unrealized earnings.

        A record exceeding the balance by more than 1% is treated as corrupted
        and rewritten to the balance.

        Returns:
            Tuple of (deposited, earnings floored at 0)
        """
        balance = to_decimal(current_balance)
        key = self._key(wallet_address)
        if key is None:
            return Decimal(0), max(Decimal(0), balance)

        with self._lock_for(key):
            deposited = self._current(key)
            if balance > 0 and deposited > balance * CORRUPTION_THRESHOLD:
                logger.warning(
                    "Deposited %s exceeds balance %s for %s; resetting to balance", deposited, balance, key
                )
                self._store_total(key, balance)
                deposited = balance

        return deposited, max(Decimal(0), balance - deposited)
