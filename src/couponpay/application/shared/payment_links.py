"""Payment links that wallets scan (usually rendered as QR codes).

Two forms:

- transfer request: ``couponpay:<recipient>?amount=..&spl-token=..&reference=..``
  where the wallet builds the transfer itself;
- transaction request: ``couponpay:<url-encoded https link>`` where the
  wallet fetches a ready-made transaction from the merchant API.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from urllib.parse import parse_qs, quote, unquote, urlencode, urlparse

from pydantic import BaseModel, field_validator

from ...crypto.keys import is_valid_public_key

URL_SCHEME = "couponpay"


class TransferRequest(BaseModel):
    recipient: str
    amount: Optional[Decimal] = None
    token: Optional[str] = None
    reference: Optional[str] = None
    label: Optional[str] = None
    message: Optional[str] = None

    @field_validator("recipient")
    @classmethod
    def validate_recipient(cls, v: str) -> str:
        if not is_valid_public_key(v):
            raise ValueError("Recipient must be a public key")
        return v

    @field_validator("token", "reference")
    @classmethod
    def validate_optional_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_public_key(v):
            raise ValueError("Must be a public key")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and (not v.is_finite() or v < 0):
            raise ValueError("Amount must be a non-negative number")
        return v


class TransactionRequest(BaseModel):
    link: str

    @field_validator("link")
    @classmethod
    def validate_link(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme != "https":
            raise ValueError("Transaction request link must use https")
        if not parsed.netloc:
            raise ValueError("Transaction request link must include a host")
        return v


def encode_transfer_request_url(request: TransferRequest) -> str:
    params: list[tuple[str, str]] = []
    if request.amount is not None:
        params.append(("amount", format(request.amount.normalize(), "f")))
    if request.token is not None:
        params.append(("spl-token", request.token))
    if request.reference is not None:
        params.append(("reference", request.reference))
    if request.label is not None:
        params.append(("label", request.label))
    if request.message is not None:
        params.append(("message", request.message))
    url = f"{URL_SCHEME}:{quote(request.recipient, safe='')}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return url


def encode_transaction_request_url(request: TransactionRequest) -> str:
    return f"{URL_SCHEME}:{quote(request.link, safe='')}"


def parse_payment_url(url: str) -> Union[TransferRequest, TransactionRequest]:
    """Parse either link form.

    Raises:
        ValueError: for a wrong scheme or malformed fields.
    """
    scheme, sep, rest = url.partition(":")
    if not sep or scheme != URL_SCHEME:
        raise ValueError(f"Payment URL must start with {URL_SCHEME}:")

    target, _, query = rest.partition("?")
    target = unquote(target)
    if target.startswith("https://") or target.startswith("http://"):
        return TransactionRequest(link=target)

    fields = {key: values[0] for key, values in parse_qs(query).items()}
    amount: Optional[Decimal] = None
    if "amount" in fields:
        try:
            amount = Decimal(fields["amount"])
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {fields['amount']}") from e
    return TransferRequest(
        recipient=target,
        amount=amount,
        token=fields.get("spl-token"),
        reference=fields.get("reference"),
        label=fields.get("label"),
        message=fields.get("message"),
    )
