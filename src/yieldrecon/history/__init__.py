"""
Transaction History Package

Turns raw token transfers into an audited financial history.

Key Components:
- classifier: Ordered-rule transfer classification over an address context
- fee_matcher: Fee to withdrawal matching (same hash, then 5-minute window)
- reconciliation: Summary aggregation, sanity checks and running balances
- arbiter: History vs. ledger deposited-value arbitration and earnings
- audit: Line-by-line audit trail with realized-yield verification
- statement: CSV account statement export
- explorer: Etherscan/Blockscout-compatible transfer client
- cache: Per-wallet snapshot cache with TTL
- service: The end-to-end history pipeline
"""

from .arbiter import (
    DepositedEstimate,
    DepositSource,
    EarningsBreakdown,
    PrincipalReplay,
    SourceArbiter,
)
from .audit import AuditLine, AuditTrail, build_audit_trail
from .cache import SnapshotCache, TTLCache
from .classifier import (
    CLASSIFICATION_RULES,
    AddressContext,
    ClassificationRule,
    TransferClassifier,
    classify_transfers,
)
from .explorer import ExplorerClient, ExplorerError
from .fee_matcher import FeeMatcher, FeeMatchReport, match_fees_to_withdrawals
from .reconciliation import (
    ReconciliationEngine,
    apply_running_balances,
    filter_by_date_range,
)
from .service import HistoryResult, TransactionHistoryService
from .statement import generate_statement_csv, write_statement

__all__ = [
    "AddressContext",
    "AuditLine",
    "AuditTrail",
    "CLASSIFICATION_RULES",
    "ClassificationRule",
    "DepositSource",
    "DepositedEstimate",
    "EarningsBreakdown",
    "ExplorerClient",
    "ExplorerError",
    "FeeMatchReport",
    "FeeMatcher",
    "HistoryResult",
    "PrincipalReplay",
    "ReconciliationEngine",
    "SnapshotCache",
    "SourceArbiter",
    "TTLCache",
    "TransactionHistoryService",
    "TransferClassifier",
    "apply_running_balances",
    "build_audit_trail",
    "classify_transfers",
    "filter_by_date_range",
    "generate_statement_csv",
    "match_fees_to_withdrawals",
    "write_statement",
]
