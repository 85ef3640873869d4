"""Unit tests for merchant transaction-request API routes."""

import unittest
from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from couponpay.api.merchant_api.dependencies import (
    get_payment_request_service,
    get_transaction_request_metadata,
)
from couponpay.api.merchant_api.routers.transactions import router
from couponpay.application.merchant.dtos import (
    MakeTransactionGetResponseDTO,
    MakeTransactionOutputDTO,
)
from couponpay.domain.errors import (
    InvalidPublicKeyError,
    MerchantMisconfiguredError,
    MissingBuyerIdentityError,
    MissingReferenceError,
    ZeroAmountError,
)

PATH = "/api/v1/merchant/transaction-requests"
LABEL = "GUIDE-X Solana"
ICON = "https://guidex-image-storage.nyc3.digitaloceanspaces.com/crypto/trout-crypto-key.svg"


class TestTransactionsRouter(unittest.TestCase):
    """Test cases for transaction-request router."""

    def setUp(self):
        """Set up test fixtures."""
        self.app = FastAPI()
        self.app.include_router(router, prefix="/api/v1/merchant")

        self.mock_service = AsyncMock()
        self.app.dependency_overrides[get_payment_request_service] = (
            lambda: self.mock_service
        )
        self.app.dependency_overrides[get_transaction_request_metadata] = (
            lambda: MakeTransactionGetResponseDTO(label=LABEL, icon=ICON)
        )

        self.client = TestClient(self.app)

    def tearDown(self):
        """Clean up after tests."""
        self.app.dependency_overrides.clear()

    def test_get_metadata(self):
        response = self.client.get(PATH)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"label": LABEL, "icon": ICON},
        )
        self.mock_service.build_payment_request.assert_not_called()

    def test_post_success(self):
        self.mock_service.build_payment_request.return_value = (
            MakeTransactionOutputDTO(transaction="dHg=", message="Thanks")
        )

        response = self.client.post(
            f"{PATH}?single-day=1&two-days=2&reference=ref",
            json={"account": "buyer"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"transaction": "dHg=", "message": "Thanks"})
        self.mock_service.build_payment_request.assert_awaited_once_with(
            {"single-day": "1", "two-days": "2"}, "buyer", "ref"
        )

    def test_post_without_body_passes_no_account(self):
        self.mock_service.build_payment_request.side_effect = (
            MissingBuyerIdentityError()
        )

        response = self.client.post(f"{PATH}?single-day=1&reference=ref")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "No account provided"})
        self.mock_service.build_payment_request.assert_awaited_once_with(
            {"single-day": "1"}, None, "ref"
        )

    def test_client_errors_map_to_400(self):
        cases = [
            (ZeroAmountError(), "Cant checkout with charge of 0"),
            (MissingReferenceError(), "No reference provided"),
            (MissingBuyerIdentityError(), "No account provided"),
            (InvalidPublicKeyError(), "Invalid public key"),
        ]
        for error, message in cases:
            with self.subTest(message=message):
                self.mock_service.build_payment_request.side_effect = error

                response = self.client.post(PATH, json={"account": "buyer"})

                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json(), {"error": message})

    def test_missing_merchant_key_maps_to_500(self):
        self.mock_service.build_payment_request.side_effect = (
            MerchantMisconfiguredError()
        )

        response = self.client.post(f"{PATH}?single-day=1&reference=ref", json={})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Shop private key not available"})

    def test_unexpected_failure_is_generic_500(self):
        self.mock_service.build_payment_request.side_effect = RuntimeError(
            "ledger exploded"
        )

        response = self.client.post(
            f"{PATH}?single-day=1&reference=ref", json={"account": "buyer"}
        )

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "error creating transaction"})


if __name__ == "__main__":
    unittest.main()
