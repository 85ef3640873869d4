"""Pytest fixtures for use case tests."""

from __future__ import annotations

from decimal import Decimal

import pytest
from cryptography.hazmat.primitives.asymmetric import ed25519

from couponpay.application.checkout.settlement_validators import ExpectedSettlement
from couponpay.application.merchant.config import MerchantConfig
from couponpay.application.merchant.use_cases.payment_request import (
    PaymentRequestService,
)
from couponpay.domain.shared import LedgerClientFactory
from tests.fixtures import InMemoryLedger, InMemoryPaymentAttemptRecorder
from tests.use_cases.helpers import BuyerActor


@pytest.fixture
def payment_request_service(
    ledger_client_factory: LedgerClientFactory,
    merchant_config: MerchantConfig,
    attempt_recorder: InMemoryPaymentAttemptRecorder,
) -> PaymentRequestService:
    return PaymentRequestService(
        ledger_client_factory, merchant_config, attempt_recorder
    )


@pytest.fixture
def buyer(
    buyer_key: ed25519.Ed25519PrivateKey, funded_ledger: InMemoryLedger
) -> BuyerActor:
    return BuyerActor(buyer_key, funded_ledger)


@pytest.fixture
def expected_single_day(merchant_public_key: str, value_token: str) -> ExpectedSettlement:
    """What the checkout page expects for a cart of one single-day trip."""
    return ExpectedSettlement(
        recipient=merchant_public_key, amount=Decimal("595"), token=value_token
    )
