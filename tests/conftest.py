"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

import tempfile
from pathlib import Path

import pytest

from tests.fixtures.synthetic_data import TREASURY, WALLET, explorer_response, sample_transfers
from yieldrecon.core import config as config_module
from yieldrecon.core.models import RawTransfer
from yieldrecon.history.classifier import AddressContext


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def address_context() -> AddressContext:
    """Address context for the standard test wallet."""
    return AddressContext.create(wallet=WALLET, treasury=TREASURY)


@pytest.fixture
def sample_history() -> list[RawTransfer]:
    """Raw transfers covering every transaction type."""
    return sample_transfers()


@pytest.fixture
def sample_explorer_response() -> dict:
    """Explorer tokentx response body for the sample history."""
    return explorer_response()


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    # Ensure tests don't use production data
    monkeypatch.setenv("YIELDRECON_ENV", "test")
    monkeypatch.setenv("YIELDRECON_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("TREASURY_ADDRESS", TREASURY)
    monkeypatch.delenv("PLATFORM_FEE_RATE", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    # Drop any configuration cached by an earlier test
    monkeypatch.setattr(config_module, "_config", None)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "currency: Tests for currency handling and precision")
    config.addinivalue_line("markers", "classifier: Tests for transfer classification")
    config.addinivalue_line("markers", "reconciliation: Tests for summaries, checks and arbitration")
    config.addinivalue_line("markers", "ledger: Tests for the deposit ledger")
    config.addinivalue_line("markers", "slow: Tests that take significant time to run")
