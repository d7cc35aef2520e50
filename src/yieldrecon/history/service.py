#!/usr/bin/env python3
"""
Transaction History Service

Runs the full pipeline for one wallet: fetch (or accept) raw transfers,
classify, match fees, filter by date range, sort, annotate running balances
and summarize. The fee-matched classification snapshot is cached per wallet
through an injected SnapshotCache.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ..core.config import DEFAULT_FEE_RATE, Config
from ..core.currency import USDC_DECIMALS
from ..core.dates import DateRange
from ..core.models import ClassificationResult, RawTransfer, Transaction, TransactionSummary
from .arbiter import DepositedEstimate, EarningsBreakdown, SourceArbiter
from .audit import AuditTrail, build_audit_trail
from .cache import SnapshotCache, TTLCache
from .classifier import AddressContext, TransferClassifier
from .explorer import ExplorerClient
from .fee_matcher import DEFAULT_FEE_WINDOW_SECONDS, FeeMatcher, FeeMatchReport
from .reconciliation import ReconciliationEngine, apply_running_balances, filter_by_date_range, sort_chronologically
from .registry import DEFAULT_VAULTS, VaultInfo, is_valid_address

logger = logging.getLogger(__name__)


@dataclass
class HistoryResult:
    """Chronological transactions with running balances plus their summary."""

    transactions: list[Transaction]
    summary: TransactionSummary
    date_range: DateRange
    wallet_address: str
    fee_report: FeeMatchReport | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "wallet_address": self.wallet_address,
            "date_range": self.date_range.to_dict(),
            "summary": self.summary.to_dict(),
            "fee_report": self.fee_report.to_dict() if self.fee_report else None,
            "transactions": [tx.to_dict() for tx in self.transactions],
        }


class TransactionHistoryService:
    """Wallet history pipeline with injected collaborators."""

    def __init__(
        self,
        treasury_address: str,
        explorer: ExplorerClient | None = None,
        cache: SnapshotCache | None = None,
        fee_rate: Decimal = DEFAULT_FEE_RATE,
        vaults: tuple[VaultInfo, ...] = DEFAULT_VAULTS,
        decimals: int = USDC_DECIMALS,
        fee_window_seconds: int = DEFAULT_FEE_WINDOW_SECONDS,
    ):
        """
        Initialize the service.

        Args:
            treasury_address: Fee-collecting address
            explorer: Transfer source (required unless transfers are supplied)
            cache: Snapshot cache (default: no caching)
            fee_rate: Platform performance-fee fraction
            vaults: Vault registry
            decimals: Token decimals
            fee_window_seconds: Fee matching window

        Raises:
            ValueError: If the treasury address is malformed
        """
        if not is_valid_address(treasury_address):
            raise ValueError(f"Invalid treasury address: {treasury_address!r}")

        self.treasury_address = treasury_address
        self.explorer = explorer
        self.cache = cache
        self.fee_rate = fee_rate
        self.vaults = vaults
        self.decimals = decimals
        self.fee_matcher = FeeMatcher(fee_window_seconds)
        self.engine = ReconciliationEngine(fee_rate)
        self.arbiter = SourceArbiter(fee_rate)

    @classmethod
    def from_config(
        cls,
        config: Config,
        treasury_address: str | None = None,
        explorer: ExplorerClient | None = None,
        cache: SnapshotCache | None = None,
    ) -> "TransactionHistoryService":
        """
        Create a service from application configuration.

        Raises:
            ValueError: If no treasury address is configured or supplied
        """
        treasury = treasury_address or config.protocol.treasury_address
        if not treasury:
            raise ValueError("A treasury address is required (set TREASURY_ADDRESS)")

        return cls(
            treasury_address=treasury,
            explorer=explorer or ExplorerClient.from_config(config.explorer),
            cache=cache if cache is not None else TTLCache(config.cache.ttl_seconds),
            fee_rate=config.protocol.fee_rate,
            decimals=config.explorer.token_decimals,
        )

    def context_for(self, wallet_address: str, other_owned_address: str | None = None) -> AddressContext:
        """Build the address context for a wallet."""
        return AddressContext.create(
            wallet=wallet_address,
            treasury=self.treasury_address,
            vaults=self.vaults,
            other_owned_address=other_owned_address,
        )

    def load_snapshot(
        self,
        wallet_address: str,
        transfers: list[RawTransfer] | None = None,
        other_owned_address: str | None = None,
        force_refresh: bool = False,
    ) -> tuple[ClassificationResult, FeeMatchReport | None]:
        """
        Get the fee-matched classification snapshot for a wallet.

        Supplied transfers are always classified fresh and never cached.
        Otherwise a cached snapshot is returned unless `force_refresh` is set,
        in which case transfers are fetched from the explorer.

        Args:
            wallet_address: Wallet to load
            transfers: Raw transfers to use instead of fetching
            other_owned_address: Another address owned by the same holder
            force_refresh: Bypass the cache

        Returns:
            Tuple of (snapshot, fee report); the report is None on a cache hit

        Raises:
            ValueError: If no transfers are supplied and no explorer is set
            ExplorerError: If fetching fails
        """
        use_cache = transfers is None and self.cache is not None

        if use_cache and not force_refresh:
            cached = self.cache.get(wallet_address)
            if cached is not None:
                logger.debug("Using cached snapshot for %s", wallet_address)
                return cached, None

        if transfers is None:
            if self.explorer is None:
                raise ValueError("No explorer configured and no transfers supplied")
            transfers = self.explorer.fetch_transfers(wallet_address)

        classifier = TransferClassifier(self.context_for(wallet_address, other_owned_address), self.decimals)
        snapshot = classifier.classify_all(transfers)
        report = self.fee_matcher.match(snapshot.transactions)

        if use_cache:
            self.cache.put(wallet_address, snapshot)

        return snapshot, report

    def get_history(
        self,
        wallet_address: str,
        current_balance: Any,
        date_range: DateRange | None = None,
        transfers: list[RawTransfer] | None = None,
        other_owned_address: str | None = None,
        force_refresh: bool = False,
    ) -> HistoryResult:
        """
        Run the full pipeline.

        Args:
            wallet_address: Wallet to report on
            current_balance: Live balance (not-a-number becomes 0)
            date_range: Reporting range (default: all time)
            transfers: Raw transfers to use instead of fetching
            other_owned_address: Another address owned by the same holder
            force_refresh: Bypass the snapshot cache

        Returns:
            HistoryResult with chronological transactions and summary
        """
        date_range = date_range or DateRange.all_time()
        snapshot, report = self.load_snapshot(wallet_address, transfers, other_owned_address, force_refresh)

        in_range = sort_chronologically(filter_by_date_range(snapshot.transactions, date_range))
        with_balances = apply_running_balances(in_range, current_balance)

        summary = self.engine.summarize(
            with_balances,
            current_balance,
            raw_transfer_count=snapshot.raw_transfer_count,
            skipped_count=snapshot.skipped_count,
            classified_count=snapshot.classified_count,
        )

        logger.info(
            "History for %s: %d transactions in range, net deposited %s",
            wallet_address,
            len(with_balances),
            summary.net_deposited,
        )

        return HistoryResult(
            transactions=with_balances,
            summary=summary,
            date_range=date_range,
            wallet_address=wallet_address,
            fee_report=report,
        )

    def get_audit_trail(
        self,
        wallet_address: str,
        transfers: list[RawTransfer] | None = None,
        other_owned_address: str | None = None,
        force_refresh: bool = False,
    ) -> AuditTrail:
        """Line-by-line audit over the wallet's full history."""
        snapshot, _ = self.load_snapshot(wallet_address, transfers, other_owned_address, force_refresh)
        return build_audit_trail(snapshot.transactions, self.fee_rate)

    def get_reliable_deposited(
        self,
        wallet_address: str,
        current_balance: Any,
        ledger_value: Any,
        transfers: list[RawTransfer] | None = None,
        other_owned_address: str | None = None,
    ) -> DepositedEstimate:
        """Arbitrate the history-derived deposited value against the ledger."""
        snapshot, _ = self.load_snapshot(wallet_address, transfers, other_owned_address)
        return self.arbiter.reliable_deposited(snapshot.transactions, ledger_value, current_balance)

    def get_total_earnings(
        self,
        wallet_address: str,
        current_balance: Any,
        ledger_value: Any,
        transfers: list[RawTransfer] | None = None,
        other_owned_address: str | None = None,
    ) -> EarningsBreakdown:
        """Realized plus unrealized earnings."""
        snapshot, _ = self.load_snapshot(wallet_address, transfers, other_owned_address)
        return self.arbiter.total_earnings(snapshot.transactions, ledger_value, current_balance)

    def clear_cache(self, wallet_address: str | None = None) -> None:
        """Invalidate cached snapshots."""
        if self.cache is not None:
            self.cache.clear(wallet_address)
