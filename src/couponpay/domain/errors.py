"""Domain-specific exceptions."""

from __future__ import annotations

from typing import Any, Optional


class PaymentRequestError(ValueError):
    """Raised when a payment request cannot be built from the caller's input."""


class ZeroAmountError(PaymentRequestError):
    """Raised when the cart prices to zero."""

    def __init__(self) -> None:
        super().__init__("Cant checkout with charge of 0")


class MissingReferenceError(PaymentRequestError):
    """Raised when no reference accompanies the payment request."""

    def __init__(self) -> None:
        super().__init__("No reference provided")


class MissingBuyerIdentityError(PaymentRequestError):
    """Raised when no buyer account accompanies the payment request."""

    def __init__(self) -> None:
        super().__init__("No account provided")


class InvalidPublicKeyError(PaymentRequestError):
    """Raised when a reference or buyer account is not a valid public key."""

    def __init__(self) -> None:
        super().__init__("Invalid public key")


class MerchantMisconfiguredError(Exception):
    """Raised when the merchant signing credential is not configured."""

    def __init__(self) -> None:
        super().__init__("Shop private key not available")


class LedgerError(Exception):
    """Base class for failures talking to the ledger."""


class LedgerRpcError(LedgerError):
    """Raised when the ledger node answers a JSON-RPC call with an error."""

    def __init__(self, method: str, code: int, message: str, data: Any = None):
        super().__init__(f"{method} failed ({code}): {message}")
        self.method = method
        self.code = code
        self.message = message
        self.data = data


class HoldingAccountUnavailableError(LedgerError):
    """Raised when a freshly created holding account never becomes visible."""


class MerchantRequestError(Exception):
    """Raised by the merchant API client for non-successful responses."""

    def __init__(self, status_code: int, error: Optional[str]):
        super().__init__(f"Merchant API returned {status_code}: {error}")
        self.status_code = status_code
        self.error = error
