#!/usr/bin/env python3
"""
Transfer Classification Module

Maps raw token transfers to typed wallet transactions using a fixed, ordered
list of rules evaluated against an immutable address context. The first rule
whose predicate matches decides the outcome; rule order alone resolves any
ambiguity, so the classification of a transfer depends only on the transfer
and the context.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

from ..core.currency import USDC_DECIMALS, parse_base_units
from ..core.dates import utc_from_timestamp
from ..core.models import ClassificationResult, RawTransfer, Transaction, TransactionType
from ..core.money import Money
from .registry import (
    DEFAULT_VAULTS,
    INTERNAL_ADDRESS_PREFIXES,
    PROTOCOL_ADDRESSES,
    VaultInfo,
    normalize_address,
    vault_map,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddressContext:
    """
    Addresses that give a wallet's transfers their meaning.

    All addresses are stored lower-cased. The internal set always contains the
    vaults and the treasury; `internal_prefixes` covers whole families of
    protocol contracts that are never external counterparties.
    """

    wallet: str
    treasury: str
    vaults: Mapping[str, str] = field(default_factory=dict)
    internal_addresses: frozenset[str] = frozenset()
    internal_prefixes: tuple[str, ...] = INTERNAL_ADDRESS_PREFIXES
    other_owned_address: str | None = None

    @classmethod
    def create(
        cls,
        wallet: str,
        treasury: str,
        vaults: Iterable[VaultInfo] = DEFAULT_VAULTS,
        protocol_addresses: Iterable[str] = PROTOCOL_ADDRESSES,
        internal_prefixes: Iterable[str] = INTERNAL_ADDRESS_PREFIXES,
        other_owned_address: str | None = None,
    ) -> "AddressContext":
        """
        Build a normalized context.

        Args:
            wallet: The wallet whose history is classified
            treasury: Fee-collecting address
            vaults: Vault registry entries
            protocol_addresses: Additional protocol contracts treated as internal
            internal_prefixes: Address prefixes treated as internal
            other_owned_address: Another address owned by the same holder

        Returns:
            AddressContext with lower-cased addresses
        """
        vault_names = vault_map(tuple(vaults))
        treasury = normalize_address(treasury)
        internal = set(vault_names) | {treasury}
        internal.update(normalize_address(address) for address in protocol_addresses)

        return cls(
            wallet=normalize_address(wallet),
            treasury=treasury,
            vaults=vault_names,
            internal_addresses=frozenset(internal),
            internal_prefixes=tuple(normalize_address(prefix) for prefix in internal_prefixes),
            other_owned_address=normalize_address(other_owned_address) or None,
        )

    def is_vault(self, address: str) -> bool:
        """Check if an address is a registered vault."""
        return address in self.vaults

    def vault_name(self, address: str) -> str | None:
        """Resolve a vault's display name."""
        return self.vaults.get(address)

    def is_internal(self, address: str) -> bool:
        """
        Check if an address is protocol-internal or owned by the same holder.

        Transfers between the wallet and internal addresses are noise, not
        external cash flow.
        """
        if address in self.internal_addresses:
            return True
        if self.other_owned_address and address == self.other_owned_address:
            return True
        return any(address.startswith(prefix) for prefix in self.internal_prefixes)


RulePredicate = Callable[[str, str, AddressContext], bool]


@dataclass(frozen=True)
class ClassificationRule:
    """A named predicate and the transaction type it assigns (None drops)."""

    name: str
    matches: RulePredicate
    outcome: TransactionType | None


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name="fee_to_treasury",
        matches=lambda src, dst, ctx: src == ctx.wallet and dst == ctx.treasury,
        outcome=TransactionType.FEE,
    ),
    # Treasury refunds count as incoming cash so every money movement is accounted for
    ClassificationRule(
        name="receive_from_treasury",
        matches=lambda src, dst, ctx: dst == ctx.wallet and src == ctx.treasury,
        outcome=TransactionType.RECEIVE,
    ),
    ClassificationRule(
        name="withdraw_from_vault",
        matches=lambda src, dst, ctx: dst == ctx.wallet and ctx.is_vault(src),
        outcome=TransactionType.WITHDRAW,
    ),
    ClassificationRule(
        name="deposit_to_vault",
        matches=lambda src, dst, ctx: src == ctx.wallet and ctx.is_vault(dst),
        outcome=TransactionType.DEPOSIT,
    ),
    ClassificationRule(
        name="external_receive",
        matches=lambda src, dst, ctx: dst == ctx.wallet and not ctx.is_internal(src),
        outcome=TransactionType.RECEIVE,
    ),
    ClassificationRule(
        name="external_send",
        matches=lambda src, dst, ctx: src == ctx.wallet and not ctx.is_internal(dst),
        outcome=TransactionType.SEND,
    ),
    ClassificationRule(
        name="internal_noise",
        matches=lambda src, dst, ctx: True,
        outcome=None,
    ),
)


def match_rule(
    from_address: str,
    to_address: str,
    context: AddressContext,
    rules: tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
) -> ClassificationRule | None:
    """
    Find the first rule matching a transfer's direction and counterparties.

    Args:
        from_address: Sender (any case)
        to_address: Recipient (any case)
        context: Address context
        rules: Ordered rules (default: CLASSIFICATION_RULES)

    Returns:
        The first matching rule, or None if no rule matches
    """
    src = normalize_address(from_address)
    dst = normalize_address(to_address)
    for rule in rules:
        if rule.matches(src, dst, context):
            return rule
    return None


class TransferClassifier:
    """Classifies raw transfers for a single wallet."""

    def __init__(
        self,
        context: AddressContext,
        decimals: int = USDC_DECIMALS,
        rules: tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
    ):
        """
        Initialize the classifier.

        Args:
            context: Address context for the wallet
            decimals: Token decimals used to convert base units
            rules: Ordered classification rules
        """
        self.context = context
        self.decimals = decimals
        self.rules = rules

    def classify(self, transfer: RawTransfer, index: int = 0) -> Transaction | None:
        """
        Classify one transfer.

        Args:
            transfer: Raw transfer from the explorer
            index: Position in the fetched list (part of the transaction id)

        Returns:
            Transaction, or None when the transfer is dropped (zero value,
            unparsable, or internal noise)
        """
        try:
            units = parse_base_units(transfer.value)
        except ValueError:
            logger.debug("Dropping transfer %s: unparsable value %r", transfer.tx_hash, transfer.value)
            return None

        if units == 0:
            return None

        try:
            timestamp = utc_from_timestamp(int(str(transfer.timestamp).strip()))
        except (ValueError, OverflowError, OSError):
            logger.debug("Dropping transfer %s: unparsable timestamp %r", transfer.tx_hash, transfer.timestamp)
            return None

        src = normalize_address(transfer.from_address)
        dst = normalize_address(transfer.to_address)
        if not src or not dst:
            logger.debug("Dropping transfer %s: missing address", transfer.tx_hash)
            return None

        rule = match_rule(src, dst, self.context, self.rules)
        if rule is None or rule.outcome is None:
            return None

        vault_address = None
        if rule.outcome == TransactionType.WITHDRAW:
            vault_address = src
        elif rule.outcome == TransactionType.DEPOSIT:
            vault_address = dst

        return Transaction(
            id=f"{transfer.tx_hash}-{src}-{dst}-{transfer.value}-{index}",
            type=rule.outcome,
            amount=Money.from_base_units(units, self.decimals),
            amount_raw=str(transfer.value),
            timestamp=timestamp,
            tx_hash=transfer.tx_hash,
            from_address=transfer.from_address,
            to_address=transfer.to_address,
            vault_name=self.context.vault_name(vault_address) if vault_address else None,
            vault_address=vault_address,
        )

    def classify_all(self, transfers: list[RawTransfer]) -> ClassificationResult:
        """
        Classify a list of transfers, preserving input order.

        Returns:
            ClassificationResult with transactions and raw/skipped counts
        """
        transactions = []
        for index, transfer in enumerate(transfers):
            transaction = self.classify(transfer, index)
            if transaction is not None:
                transactions.append(transaction)

        result = ClassificationResult(
            transactions=transactions,
            raw_transfer_count=len(transfers),
            skipped_count=len(transfers) - len(transactions),
        )

        logger.info(
            "Classified %d of %d transfers (%d skipped)",
            result.classified_count,
            result.raw_transfer_count,
            result.skipped_count,
        )
        return result


def classify_transfers(
    transfers: list[RawTransfer], context: AddressContext, decimals: int = USDC_DECIMALS
) -> ClassificationResult:
    """Convenience wrapper around TransferClassifier.classify_all()."""
    return TransferClassifier(context, decimals).classify_all(transfers)
