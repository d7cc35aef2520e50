#!/usr/bin/env python3
"""
Configuration Management for yieldrecon

Handles environment-based configuration with secure defaults and validation.
Supports multiple environments (development, test, production).
"""

import logging
import os
import re
import tempfile
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")

DEFAULT_EXPLORER_URL = "https://base.blockscout.com/api"
DEFAULT_TOKEN_ADDRESS = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"  # USDC on Base
DEFAULT_FEE_RATE = Decimal("0.15")


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class ExplorerConfig:
    """Ledger explorer API configuration."""

    base_url: str = DEFAULT_EXPLORER_URL
    timeout: int = 30
    token_address: str = DEFAULT_TOKEN_ADDRESS
    token_decimals: int = 6


@dataclass
class ProtocolConfig:
    """Fee-collecting protocol settings."""

    treasury_address: str | None = None
    fee_rate: Decimal = DEFAULT_FEE_RATE


@dataclass
class LedgerConfig:
    """Deposit ledger persistence settings."""

    ledger_file: Path


@dataclass
class CacheConfig:
    """Snapshot cache settings."""

    ttl_seconds: int = 300


@dataclass
class Config:
    """
    Main configuration class for yieldrecon.

    Loads configuration from environment variables with secure defaults
    and validation for each environment type.
    """

    environment: Environment

    # Core directories
    data_dir: Path
    output_dir: Path

    # Component configurations
    explorer: ExplorerConfig
    protocol: ProtocolConfig
    ledger: LedgerConfig
    cache: CacheConfig

    # Application settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("YIELDRECON_ENV", "development"))

        # Base directories
        if env == Environment.TEST:
            default_test_dir = Path(tempfile.gettempdir()) / "test_yieldrecon"
            base_dir = Path(os.getenv("YIELDRECON_DATA_DIR", str(default_test_dir)))
        else:
            base_dir = Path(os.getenv("YIELDRECON_DATA_DIR", "./data"))
        data_dir = base_dir.expanduser().resolve()
        output_dir = data_dir / "reports"

        # Ensure directories exist
        for directory in [data_dir, output_dir]:
            directory.mkdir(parents=True, exist_ok=True)

        explorer = ExplorerConfig(
            base_url=os.getenv("EXPLORER_BASE_URL", DEFAULT_EXPLORER_URL),
            timeout=int(os.getenv("EXPLORER_TIMEOUT", "30")),
            token_address=os.getenv("TOKEN_ADDRESS", DEFAULT_TOKEN_ADDRESS),
            token_decimals=int(os.getenv("TOKEN_DECIMALS", "6")),
        )

        protocol = ProtocolConfig(
            treasury_address=os.getenv("TREASURY_ADDRESS") or None,
            fee_rate=_parse_decimal(os.getenv("PLATFORM_FEE_RATE", str(DEFAULT_FEE_RATE))),
        )

        ledger = LedgerConfig(ledger_file=data_dir / "ledger" / "deposits.yaml")

        cache = CacheConfig(ttl_seconds=int(os.getenv("CACHE_TTL_SECONDS", "300")))

        return cls(
            environment=env,
            data_dir=data_dir,
            output_dir=output_dir,
            explorer=explorer,
            protocol=protocol,
            ledger=ledger,
            cache=cache,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list:
        """Validate configuration and return list of errors."""
        errors = []

        for name, path in [("data_dir", self.data_dir), ("output_dir", self.output_dir)]:
            if not path.exists():
                errors.append(f"{name} does not exist: {path}")

        treasury = self.protocol.treasury_address
        if treasury and not ADDRESS_PATTERN.match(treasury):
            errors.append(f"TREASURY_ADDRESS is not a valid address: {treasury}")
        if self.environment == Environment.PRODUCTION and not treasury:
            errors.append("TREASURY_ADDRESS is required in production")

        if not ADDRESS_PATTERN.match(self.explorer.token_address):
            errors.append(f"TOKEN_ADDRESS is not a valid address: {self.explorer.token_address}")

        if self.explorer.timeout <= 0:
            errors.append("Explorer timeout must be positive")
        if self.explorer.token_decimals < 0:
            errors.append("Token decimals must be non-negative")
        fee_rate = self.protocol.fee_rate
        if not fee_rate.is_finite() or not Decimal(0) < fee_rate < Decimal(1):
            errors.append("PLATFORM_FEE_RATE must be between 0 and 1 (exclusive)")
        if self.cache.ttl_seconds < 0:
            errors.append("Cache TTL must be non-negative")

        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

        # Reduce noise from HTTP libraries outside development
        if self.environment != Environment.DEVELOPMENT:
            logging.getLogger("urllib3").setLevel(logging.WARNING)
            logging.getLogger("requests").setLevel(logging.WARNING)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary for display."""
        result: dict[str, Any] = {}

        for field_name, field_value in self.__dict__.items():
            if hasattr(field_value, "__dict__") and not isinstance(field_value, (Path, Enum)):
                result[field_name] = {
                    nested_name: _display_value(nested_value)
                    for nested_name, nested_value in field_value.__dict__.items()
                }
            else:
                result[field_name] = _display_value(field_value)

        return result


def _display_value(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    return value


def _parse_decimal(value: str) -> Decimal:
    """Parse a decimal setting; invalid input yields NaN so validate() reports it."""
    try:
        return Decimal(value.strip())
    except (InvalidOperation, AttributeError):
        return Decimal("NaN")


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        config = Config.from_environment()

        errors = config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        config.setup_logging()
        _config = config

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()


def get_data_dir() -> Path:
    """Get the data directory path."""
    return get_config().data_dir


def is_development() -> bool:
    """Check if running in development environment."""
    return get_config().environment == Environment.DEVELOPMENT


def is_test() -> bool:
    """Check if running in test environment."""
    return get_config().environment == Environment.TEST


def is_production() -> bool:
    """Check if running in production environment."""
    return get_config().environment == Environment.PRODUCTION
