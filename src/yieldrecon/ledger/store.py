#!/usr/bin/env python3
"""
Deposit Ledger Storage

Persistence backends for per-wallet deposit records. The YAML store keeps one
file mapping lower-cased wallet addresses to their record; amounts are stored
as strings so Decimal values survive the round trip exactly.
"""

import logging
import threading
from pathlib import Path
from typing import Protocol

import yaml

from ..core.models import DepositRecord

logger = logging.getLogger(__name__)


class LedgerStore(Protocol):
    """Storage for deposit records keyed by lower-cased wallet address."""

    def load(self, wallet_address: str) -> DepositRecord | None: ...

    def save(self, wallet_address: str, record: DepositRecord) -> None: ...

    def delete(self, wallet_address: str) -> None: ...

    def all_records(self) -> dict[str, DepositRecord]: ...


class InMemoryLedgerStore:
    """Dictionary-backed store, for tests and short-lived processes."""

    def __init__(self, records: dict[str, DepositRecord] | None = None):
        self._records: dict[str, DepositRecord] = dict(records or {})

    def load(self, wallet_address: str) -> DepositRecord | None:
        return self._records.get(wallet_address)

    def save(self, wallet_address: str, record: DepositRecord) -> None:
        self._records[wallet_address] = record

    def delete(self, wallet_address: str) -> None:
        self._records.pop(wallet_address, None)

    def all_records(self) -> dict[str, DepositRecord]:
        return dict(self._records)


class YamlLedgerStore:
    """
    Single-file YAML store.

    The whole file is read and rewritten on every save. Writes are serialized
    within a process only, so one process should own a given ledger file.
    """

    def __init__(self, ledger_file: Path):
        """
        Initialize the store.

        Args:
            ledger_file: YAML file path (parent directories are created)
        """
        self.ledger_file = Path(ledger_file)
        self.ledger_file.parent.mkdir(parents=True, exist_ok=True)
        self._file_lock = threading.Lock()

    def _read(self) -> dict[str, DepositRecord]:
        """Load all records from disk."""
        if not self.ledger_file.exists():
            return {}

        with open(self.ledger_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        records = {}
        for wallet_address, record_data in data.items():
            records[str(wallet_address)] = DepositRecord.from_dict(record_data)
        return records

    def _write(self, records: dict[str, DepositRecord]) -> None:
        """Save all records to disk."""
        data = {wallet_address: record.to_dict() for wallet_address, record in records.items()}

        with open(self.ledger_file, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)

    def load(self, wallet_address: str) -> DepositRecord | None:
        with self._file_lock:
            return self._read().get(wallet_address)

    def save(self, wallet_address: str, record: DepositRecord) -> None:
        with self._file_lock:
            records = self._read()
            records[wallet_address] = record
            self._write(records)
        logger.debug("Saved deposit record for %s to %s", wallet_address, self.ledger_file)

    def delete(self, wallet_address: str) -> None:
        with self._file_lock:
            records = self._read()
            if records.pop(wallet_address, None) is not None:
                self._write(records)

    def all_records(self) -> dict[str, DepositRecord]:
        with self._file_lock:
            return self._read()
