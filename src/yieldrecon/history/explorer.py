#!/usr/bin/env python3
"""
Ledger Explorer Client

Fetches a wallet's token transfers from an Etherscan/Blockscout-compatible
`module=account&action=tokentx` endpoint. Network and API failures raise
ExplorerError; retry and backoff are left to the caller.
"""

import logging
from typing import Any

import requests

from ..core.config import DEFAULT_EXPLORER_URL, DEFAULT_TOKEN_ADDRESS, ExplorerConfig
from ..core.models import RawTransfer
from .registry import is_valid_address

logger = logging.getLogger(__name__)

NO_TRANSACTIONS_MESSAGE = "No transactions found"


class ExplorerError(Exception):
    """Raised when the explorer cannot be reached or returns an error."""


def create_session() -> requests.Session:
    """Create an HTTP session with JSON headers."""
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": "yieldrecon/0.1",
            "Accept": "application/json",
        }
    )
    return session


class ExplorerClient:
    """Read-only client for token transfer history."""

    def __init__(
        self,
        base_url: str = DEFAULT_EXPLORER_URL,
        token_address: str = DEFAULT_TOKEN_ADDRESS,
        timeout: int = 30,
        session: requests.Session | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Explorer API URL
            token_address: Token contract whose transfers are fetched
            timeout: Request timeout in seconds
            session: HTTP session (default: a new session)
        """
        self.base_url = base_url
        self.token_address = token_address
        self.timeout = timeout
        self.session = session or create_session()

    @classmethod
    def from_config(cls, config: ExplorerConfig, session: requests.Session | None = None) -> "ExplorerClient":
        """Create a client from explorer configuration."""
        return cls(
            base_url=config.base_url,
            token_address=config.token_address,
            timeout=config.timeout,
            session=session,
        )

    def fetch_transfers(
        self, wallet_address: str, start_block: int = 0, end_block: int = 99999999
    ) -> list[RawTransfer]:
        """
        Fetch all token transfers touching a wallet, newest first.

        Args:
            wallet_address: Wallet to query
            start_block: First block to include
            end_block: Last block to include

        Returns:
            List of RawTransfer (empty when the wallet has no history)

        Raises:
            ValueError: If the wallet address is malformed
            ExplorerError: On HTTP failure, timeout, or an API error response
        """
        if not is_valid_address(wallet_address):
            raise ValueError(f"Invalid wallet address: {wallet_address!r}")

        params = {
            "module": "account",
            "action": "tokentx",
            "address": wallet_address,
            "contractaddress": self.token_address,
            "startblock": str(start_block),
            "endblock": str(end_block),
            "sort": "desc",
        }

        logger.debug("Fetching transfers for %s from %s", wallet_address, self.base_url)

        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.Timeout as e:
            logger.error("Explorer request timed out after %ss", self.timeout)
            raise ExplorerError(f"Explorer request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            logger.error("Explorer request failed: %s", e)
            raise ExplorerError(f"Explorer request failed: {e}") from e
        except ValueError as e:
            logger.error("Explorer returned invalid JSON: %s", e)
            raise ExplorerError("Explorer returned invalid JSON") from e

        return self._parse_response(data)

    def _parse_response(self, data: Any) -> list[RawTransfer]:
        """Convert an explorer response body to RawTransfers."""
        if not isinstance(data, dict):
            raise ExplorerError("Unexpected explorer response")

        status = str(data.get("status", ""))
        message = data.get("message", "")
        result = data.get("result")

        if status == "1" and isinstance(result, list):
            logger.info("Fetched %d token transfers", len(result))
            return [RawTransfer.from_dict(entry) for entry in result if isinstance(entry, dict)]

        if status == "0" and message == NO_TRANSACTIONS_MESSAGE:
            logger.info("No transactions found")
            return []

        logger.error("Explorer API error: status=%s message=%s", status, message)
        raise ExplorerError(f"Explorer API error: {message or status} ({result})")
