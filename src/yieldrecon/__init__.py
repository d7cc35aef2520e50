"""
yieldrecon - Yield Vault Transaction Reconciliation

Classifies a wallet's raw token-transfer history into semantic transactions,
ties platform fees to the withdrawals that generated them, and reconciles the
result into an audited summary of capital invested and yield realized.

Domain Packages:
- core: Money, currency conversion, dates, data models, configuration
- history: Classification, fee matching, reconciliation, arbitration, exports
- ledger: Incremental per-wallet deposit tracking
- cli: Command-line interface (yieldrecon)

Example Usage:
    from yieldrecon.history import AddressContext, classify_transfers
    from yieldrecon.history import match_fees_to_withdrawals, ReconciliationEngine
    from yieldrecon.ledger import DepositLedger

Version: 0.1.0
"""

__version__ = "0.1.0"

# Export core utilities for easy access
from .core.currency import base_units_to_decimal, format_usd, to_decimal
from .core.money import Money

# Export key domain functionality
from .core.models import RawTransfer, Transaction, TransactionSummary, TransactionType
from .core.config import get_config, Environment

__all__ = [
    # Core currency functions
    "base_units_to_decimal",
    "format_usd",
    "to_decimal",
    "Money",

    # Core models
    "RawTransfer",
    "Transaction",
    "TransactionSummary",
    "TransactionType",

    # Configuration
    "get_config",
    "Environment",
]
