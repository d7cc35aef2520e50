#!/usr/bin/env python3
"""
Deposit Ledger

Incremental per-wallet principal tracking with pluggable persistence.
"""

from .deposit_ledger import DepositLedger, YieldBreakdown, calculate_performance_fee, calculate_yield
from .store import InMemoryLedgerStore, LedgerStore, YamlLedgerStore

__all__ = [
    'DepositLedger',
    'InMemoryLedgerStore',
    'LedgerStore',
    'YamlLedgerStore',
    'YieldBreakdown',
    'calculate_performance_fee',
    'calculate_yield',
]
