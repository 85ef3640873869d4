"""Dependencies for the merchant API."""

from __future__ import annotations

from functools import lru_cache

from ...application.merchant.dtos import MakeTransactionGetResponseDTO
from ...application.merchant.use_cases.payment_request import PaymentRequestService
from ...domain.merchant.attempt_recorder import PaymentAttemptRecorder
from ...domain.shared import LedgerClientFactory
from ...envs.merchant_env import Settings, get_settings
from ...infrastructure.ledger.ledger_client import AsyncLedgerClient
from ...infrastructure.merchant.attempt_recorder_impl import (
    LoggingPaymentAttemptRecorder,
)


@lru_cache()
def get_settings_dependency() -> Settings:
    return get_settings()


def get_ledger_client_factory() -> LedgerClientFactory:
    settings = get_settings_dependency()
    return lambda: AsyncLedgerClient(settings.ledger_rpc_url)


@lru_cache()
def get_attempt_recorder() -> PaymentAttemptRecorder:
    return LoggingPaymentAttemptRecorder()


def get_payment_request_service() -> PaymentRequestService:
    settings = get_settings_dependency()
    return PaymentRequestService(
        get_ledger_client_factory(),
        settings.to_merchant_config(),
        get_attempt_recorder(),
    )


def get_transaction_request_metadata() -> MakeTransactionGetResponseDTO:
    settings = get_settings_dependency()
    return MakeTransactionGetResponseDTO(
        label=settings.merchant_label, icon=settings.merchant_icon_url
    )
