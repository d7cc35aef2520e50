#!/usr/bin/env python3
"""
Address Registry

Known vault, protocol and exchange addresses used to give transfers meaning.
All lookups are case-insensitive; addresses are stored lower-cased.
"""

import re
from dataclasses import dataclass

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$")

BASESCAN_URL = "https://basescan.org"


@dataclass(frozen=True)
class VaultInfo:
    """A yield-bearing vault the wallet deposits into and withdraws from."""

    name: str
    address: str
    curator: str | None = None


DEFAULT_VAULTS: tuple[VaultInfo, ...] = (
    VaultInfo(
        name="Steakhouse High Yield",
        address="0xbeeff7aE5E00Aae3Db302e4B0d8C883810a58100",
        curator="Steakhouse Financial",
    ),
    VaultInfo(
        name="Re7 USDC",
        address="0x618495ccC4e751178C4914b1E939C0fe0FB07b9b",
        curator="Re7 Capital",
    ),
    VaultInfo(
        name="Steakhouse Prime",
        address="0xbeef0e0834849aCC03f0089F01f4F1Eeb06873C9",
        curator="Steakhouse Financial",
    ),
)

# Lending protocol core contracts (never user-facing counterparties)
PROTOCOL_ADDRESSES: tuple[str, ...] = (
    "0xBBBBBbbBBb9cC5e90e3b3Af64bdAF62C37EEFFCb",  # Morpho Blue
    "0x4095F064B8d3c3548A3bebfd0Bbfd04750E30077",  # Bundler
)

# Prefixes covering whole families of protocol market contracts
INTERNAL_ADDRESS_PREFIXES: tuple[str, ...] = (
    "0xbeef",  # curated vault contracts
    "0xbbbb",  # Morpho Blue core
    "0x616a4e",  # Steakhouse Prime underlying market
    "0xc1256a",  # Steakhouse High Yield underlying market
)

# Exchange hot wallets, matched by prefix
KNOWN_ADDRESS_LABELS: dict[str, str] = {
    "0x6269c30f": "Coinbase",
    "0x40ebc1ac": "Coinbase",
    "0xd4e76fab": "Coinbase",
    "0x3154cf16": "Coinbase",
    "0x9858e47b": "Coinbase",
    "0xa9d1e08c": "Coinbase",
}


def normalize_address(address: str | None) -> str:
    """Lower-case and strip an address; None becomes the empty string."""
    return (address or "").strip().lower()


def is_valid_address(address: str | None) -> bool:
    """Check for a 0x-prefixed 20-byte hex address (any case)."""
    return bool(ADDRESS_PATTERN.match(normalize_address(address)))


def vault_map(vaults: tuple[VaultInfo, ...] | list[VaultInfo] = DEFAULT_VAULTS) -> dict[str, str]:
    """Build a lower-cased address -> vault name mapping."""
    return {normalize_address(vault.address): vault.name for vault in vaults}


def shorten_address(address: str, chars: int = 4) -> str:
    """Shorten an address for display: 0x1234...cdef."""
    if not address or len(address) < 10:
        return address
    return f"{address[:chars + 2]}...{address[-chars:]}"


def shorten_tx_hash(tx_hash: str, chars: int = 6) -> str:
    """Shorten a transaction hash for display."""
    if not tx_hash or len(tx_hash) < 14:
        return tx_hash
    return f"{tx_hash[:chars + 2]}...{tx_hash[-chars:]}"


def address_label(address: str | None) -> str:
    """Friendly name for a known exchange address, else the shortened address."""
    if not address:
        return "Unknown"
    lower = normalize_address(address)
    for prefix, name in KNOWN_ADDRESS_LABELS.items():
        if lower.startswith(prefix):
            return name
    return shorten_address(address)


def is_known_address(address: str | None) -> bool:
    """Check if an address belongs to a known exchange or service."""
    lower = normalize_address(address)
    return bool(lower) and any(lower.startswith(prefix) for prefix in KNOWN_ADDRESS_LABELS)


def tx_url(tx_hash: str) -> str:
    """Block explorer URL for a transaction."""
    return f"{BASESCAN_URL}/tx/{tx_hash}"


def address_url(address: str) -> str:
    """Block explorer URL for an address."""
    return f"{BASESCAN_URL}/address/{address}"
