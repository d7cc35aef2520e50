#!/usr/bin/env python3
"""Tests for transfer classification rules."""

import random

import pytest

from tests.fixtures.synthetic_data import (
    BASE_TIMESTAMP,
    EXTERNAL,
    MORPHO_BLUE,
    OTHER_OWNED,
    TREASURY,
    VAULT,
    VAULT_NAME,
    WALLET,
    make_transfer,
)
from yieldrecon.core.models import RawTransfer, TransactionType
from yieldrecon.core.money import Money
from yieldrecon.history.classifier import (
    CLASSIFICATION_RULES,
    AddressContext,
    ClassificationRule,
    TransferClassifier,
    classify_transfers,
    match_rule,
)


@pytest.fixture
def classifier(address_context):
    return TransferClassifier(address_context)


@pytest.mark.unit
@pytest.mark.classifier
class TestClassificationRules:
    """Test each rule in priority order."""

    def test_external_receive(self, classifier):
        """A transfer in from an unknown address is a receive."""
        tx = classifier.classify(make_transfer(EXTERNAL, WALLET, "100"))

        assert tx is not None
        assert tx.type == TransactionType.RECEIVE
        assert tx.amount == Money.from_dollars("100.00")
        assert tx.vault_name is None

    def test_deposit_to_vault(self, classifier):
        """A transfer out to a vault is a deposit with the vault name."""
        tx = classifier.classify(make_transfer(WALLET, VAULT, "40"))

        assert tx is not None
        assert tx.type == TransactionType.DEPOSIT
        assert tx.amount == Money.from_dollars("40.00")
        assert tx.vault_name == VAULT_NAME
        assert tx.vault_address == VAULT.lower()

    def test_withdraw_from_vault(self, classifier):
        """A transfer in from a vault is a withdrawal; the vault is the sender."""
        tx = classifier.classify(make_transfer(VAULT, WALLET, "45"))

        assert tx is not None
        assert tx.type == TransactionType.WITHDRAW
        assert tx.vault_address == VAULT.lower()
        assert tx.vault_name == VAULT_NAME

    def test_fee_to_treasury(self, classifier):
        """A transfer out to the treasury is a fee."""
        tx = classifier.classify(make_transfer(WALLET, TREASURY, "0.75"))

        assert tx is not None
        assert tx.type == TransactionType.FEE
        assert tx.amount == Money.from_dollars("0.75")

    def test_treasury_refund_is_receive(self, classifier):
        """Money from the treasury counts as a receive."""
        tx = classifier.classify(make_transfer(TREASURY, WALLET, "2"))

        assert tx is not None
        assert tx.type == TransactionType.RECEIVE

    def test_external_send(self, classifier):
        """A transfer out to an unknown address is a send."""
        tx = classifier.classify(make_transfer(WALLET, EXTERNAL, "10"))

        assert tx is not None
        assert tx.type == TransactionType.SEND

    @pytest.mark.parametrize(
        "from_address,to_address",
        [
            (MORPHO_BLUE, VAULT),
            (VAULT, MORPHO_BLUE),
            (MORPHO_BLUE, WALLET),
            (WALLET, MORPHO_BLUE),
            (EXTERNAL, VAULT),
            (EXTERNAL, TREASURY),
        ],
        ids=[
            "protocol_to_vault",
            "vault_to_protocol",
            "protocol_to_wallet",
            "wallet_to_protocol",
            "third_party_to_vault",
            "third_party_to_treasury",
        ],
    )
    def test_internal_noise_dropped(self, classifier, from_address, to_address):
        """Protocol-internal and unrelated transfers produce no transaction."""
        assert classifier.classify(make_transfer(from_address, to_address, "5")) is None

    def test_addresses_are_case_insensitive(self, classifier):
        """Mixed-case explorer addresses match lower-cased context addresses."""
        tx = classifier.classify(make_transfer(VAULT.upper(), WALLET.upper(), "1"))

        assert tx is not None
        assert tx.type == TransactionType.WITHDRAW

    def test_other_owned_address_is_internal(self):
        """Transfers to another address of the same holder are not sends."""
        context = AddressContext.create(wallet=WALLET, treasury=TREASURY, other_owned_address=OTHER_OWNED)
        classifier = TransferClassifier(context)

        assert classifier.classify(make_transfer(WALLET, OTHER_OWNED, "10")) is None
        assert classifier.classify(make_transfer(OTHER_OWNED, WALLET, "10")) is None

    def test_rule_order_decides_overlap(self):
        """When the treasury is also registered as a vault, the fee rule wins."""
        context = AddressContext.create(wallet=WALLET, treasury=VAULT)

        rule = match_rule(WALLET, VAULT, context)

        assert rule is not None
        assert rule.name == "fee_to_treasury"

    def test_every_direction_matches_some_rule(self, address_context):
        """The rule list is total: the final rule catches everything."""
        addresses = [WALLET, TREASURY, VAULT, EXTERNAL, MORPHO_BLUE]
        for src in addresses:
            for dst in addresses:
                assert match_rule(src, dst, address_context) is not None

        assert CLASSIFICATION_RULES[-1].outcome is None

    def test_custom_rules(self, address_context):
        """Rules can be replaced for testing in isolation."""
        only_sends = (ClassificationRule("all_sends", lambda src, dst, ctx: True, TransactionType.SEND),)
        classifier = TransferClassifier(address_context, rules=only_sends)

        tx = classifier.classify(make_transfer(EXTERNAL, VAULT, "1"))

        assert tx is not None
        assert tx.type == TransactionType.SEND


@pytest.mark.unit
@pytest.mark.classifier
class TestMalformedTransfers:
    """Test transfers that are dropped before rule evaluation."""

    @pytest.mark.parametrize(
        "value,timestamp",
        [("0", BASE_TIMESTAMP), ("abc", BASE_TIMESTAMP), ("1.5", BASE_TIMESTAMP), ("100", "not-a-time"), ("100", "")],
        ids=["zero", "non_numeric", "fractional", "bad_timestamp", "empty_timestamp"],
    )
    def test_dropped(self, classifier, value, timestamp):
        """Zero and unparsable transfers are skipped."""
        transfer = RawTransfer(
            tx_hash="0xbad", from_address=EXTERNAL, to_address=WALLET, value=value, timestamp=timestamp
        )
        assert classifier.classify(transfer) is None

    def test_missing_address(self, classifier):
        """Transfers without a counterparty are skipped."""
        transfer = RawTransfer(tx_hash="0xbad", from_address="", to_address=WALLET, value="100", timestamp="1")
        assert classifier.classify(transfer) is None


@pytest.mark.unit
@pytest.mark.classifier
class TestClassifyAll:
    """Test batch classification."""

    def test_counts(self, address_context, sample_history):
        """Raw transfers are either classified or skipped."""
        result = classify_transfers(sample_history, address_context)

        assert result.raw_transfer_count == 6
        assert result.classified_count == 5
        assert result.skipped_count == 1
        assert [tx.type for tx in result.transactions] == [
            TransactionType.RECEIVE,
            TransactionType.DEPOSIT,
            TransactionType.WITHDRAW,
            TransactionType.FEE,
            TransactionType.SEND,
        ]

    def test_count_identity_with_noise(self, address_context):
        """Ten transfers, seven classified, three dropped."""
        transfers = [make_transfer(EXTERNAL, WALLET, "1", BASE_TIMESTAMP + i, f"0x{i:02x}") for i in range(7)]
        transfers += [make_transfer(MORPHO_BLUE, VAULT, "1", BASE_TIMESTAMP + i, f"0xn{i}") for i in range(3)]

        result = classify_transfers(transfers, address_context)

        assert result.raw_transfer_count == 10
        assert result.classified_count == 7
        assert result.skipped_count == 3

    def test_ids_are_unique_for_identical_transfers(self, classifier):
        """Two identical transfers in one transaction get distinct ids."""
        transfer = make_transfer(WALLET, TREASURY, "0.5", BASE_TIMESTAMP, "0xsame")

        result = classifier.classify_all([transfer, transfer])

        assert len({tx.id for tx in result.transactions}) == 2

    def test_classification_independent_of_order(self, address_context, sample_history):
        """Each transfer's type depends only on the transfer and the context."""
        expected = {
            (t.tx_hash, t.from_address, t.to_address): tx.type
            for t in sample_history
            if (tx := TransferClassifier(address_context).classify(t)) is not None
        }

        shuffled = list(sample_history)
        random.Random(7).shuffle(shuffled)
        result = classify_transfers(shuffled, address_context)

        for tx in result.transactions:
            assert expected[(tx.tx_hash, tx.from_address, tx.to_address)] == tx.type

    def test_other_decimals(self, address_context):
        """Token decimals are configurable."""
        transfer = RawTransfer(
            tx_hash="0x01", from_address=EXTERNAL, to_address=WALLET, value="1" + "0" * 18, timestamp="1"
        )

        tx = TransferClassifier(address_context, decimals=18).classify(transfer)

        assert tx is not None
        assert tx.amount == Money.from_dollars(1)
