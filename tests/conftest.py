"""Shared pytest fixtures: keys, an in-memory ledger and the two checkout tokens."""

from __future__ import annotations

from typing import Iterator

import pytest
from cryptography.hazmat.primitives.asymmetric import ed25519

from couponpay.application.merchant.config import MerchantConfig
from couponpay.crypto.keys import generate_private_key, public_key_b64
from couponpay.domain.shared import LedgerClientFactory
from tests.fixtures import InMemoryLedger, InMemoryPaymentAttemptRecorder

VALUE_DECIMALS = 6
LOYALTY_DECIMALS = 0


@pytest.fixture
def merchant_key() -> ed25519.Ed25519PrivateKey:
    return generate_private_key()


@pytest.fixture
def buyer_key() -> ed25519.Ed25519PrivateKey:
    return generate_private_key()


@pytest.fixture
def merchant_public_key(merchant_key: ed25519.Ed25519PrivateKey) -> str:
    return public_key_b64(merchant_key)


@pytest.fixture
def buyer_public_key(buyer_key: ed25519.Ed25519PrivateKey) -> str:
    return public_key_b64(buyer_key)


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def value_token(ledger: InMemoryLedger) -> str:
    return ledger.create_token(VALUE_DECIMALS)


@pytest.fixture
def loyalty_token(ledger: InMemoryLedger) -> str:
    return ledger.create_token(LOYALTY_DECIMALS)


@pytest.fixture
def funded_ledger(
    ledger: InMemoryLedger,
    value_token: str,
    loyalty_token: str,
    merchant_public_key: str,
    buyer_public_key: str,
) -> InMemoryLedger:
    """Buyer holds 10,000 value tokens, merchant holds 100 coupons and an empty value account."""
    ledger.fund(buyer_public_key, value_token, 10_000 * 10**VALUE_DECIMALS)
    ledger.fund(merchant_public_key, value_token, 0)
    ledger.fund(merchant_public_key, loyalty_token, 100)
    return ledger


@pytest.fixture
def ledger_client_factory(funded_ledger: InMemoryLedger) -> LedgerClientFactory:
    return lambda: funded_ledger


@pytest.fixture
def merchant_config(
    merchant_key: ed25519.Ed25519PrivateKey, value_token: str, loyalty_token: str
) -> MerchantConfig:
    return MerchantConfig(
        merchant_private_key=merchant_key,
        value_token=value_token,
        loyalty_token=loyalty_token,
        holding_account_poll_interval=0,
    )


@pytest.fixture
def attempt_recorder() -> Iterator[InMemoryPaymentAttemptRecorder]:
    recorder = InMemoryPaymentAttemptRecorder()
    yield recorder
    recorder.clear()
