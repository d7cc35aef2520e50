"""
Core Utilities Package

Shared primitives, data models, and configuration used by the history and
ledger packages.

This package provides:
- Decimal-backed money handling with exact base-unit conversion
- Transaction, summary and sanity-check data models
- Date ranges and reporting presets
- Configuration management for environment-specific settings
"""

from .config import (
    Config,
    Environment,
    get_config,
    get_data_dir,
    is_development,
    is_production,
    is_test,
    reload_config,
)
from .currency import (
    USDC_DECIMALS,
    base_units_to_decimal,
    decimal_to_base_units,
    decimal_to_dollars_str,
    format_usd,
    is_not_a_number,
    parse_base_units,
    to_decimal,
    within_tolerance,
)
from .dates import DateRange, DateRangePreset, FinancialDate, date_range_preset
from .models import (
    AssociatedFee,
    ClassificationResult,
    DepositRecord,
    RawTransfer,
    SanityCheckResults,
    Transaction,
    TransactionSummary,
    TransactionType,
)
from .money import Money

__all__ = [
    "AssociatedFee",
    "ClassificationResult",
    # Configuration
    "Config",
    "DateRange",
    "DateRangePreset",
    "DepositRecord",
    "Environment",
    "FinancialDate",
    "Money",
    "RawTransfer",
    "SanityCheckResults",
    # Data models
    "Transaction",
    "TransactionSummary",
    "TransactionType",
    # Currency utilities
    "USDC_DECIMALS",
    "base_units_to_decimal",
    "date_range_preset",
    "decimal_to_base_units",
    "decimal_to_dollars_str",
    "format_usd",
    "get_config",
    "get_data_dir",
    "is_development",
    "is_not_a_number",
    "is_production",
    "is_test",
    "parse_base_units",
    "reload_config",
    "to_decimal",
    "within_tolerance",
]
