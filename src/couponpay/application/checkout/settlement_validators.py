"""Finding and validating the on-ledger transaction for a reference.

`validate_transfer` is pure; `lookup_settlement` adds the two ledger reads.
Both return a tagged result instead of raising, so "not there yet" and
"there but wrong" cannot be confused by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from pydantic import BaseModel, ValidationError, field_validator

from ...crypto.keys import decode_public_key_bytes, derive_holding_address
from ...domain.ledger.entities import Commitment, ConfirmedTransaction
from ...domain.ledger.transaction import Transaction
from ...domain.shared import LedgerClientProtocol
from ..merchant.pricing import to_base_units


class ExpectedSettlement(BaseModel):
    """What the original request asked for."""

    recipient: str
    amount: Decimal
    token: str

    @field_validator("recipient", "token")
    @classmethod
    def validate_public_key(cls, v: str) -> str:
        decode_public_key_bytes(v)
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Expected amount must be positive")
        return v


class SettlementRecord(BaseModel):
    """The ledger transaction observed to satisfy a reference."""

    signature: str
    recipient: str
    token: str
    amount: Decimal


@dataclass(frozen=True)
class NotFound:
    """No transaction for the reference is visible yet."""


@dataclass(frozen=True)
class Invalid:
    """A transaction references the key but does not match the request."""

    reason: str


@dataclass(frozen=True)
class Found:
    record: SettlementRecord


SettlementLookup = Union[NotFound, Invalid, Found]


def validate_transfer(
    confirmed: ConfirmedTransaction,
    expected: ExpectedSettlement,
    reference: str,
    decimals: int,
) -> Union[Invalid, Found]:
    """Check recipient, token and amount of a confirmed transaction. Pure function."""
    meta = confirmed.meta
    if meta is None:
        return Invalid("Transaction metadata missing")
    if meta.err is not None:
        return Invalid(f"Transaction failed on ledger: {meta.err}")

    try:
        transaction = Transaction.from_base64(confirmed.transaction)
    except (ValueError, KeyError, TypeError, ValidationError):
        return Invalid("Transaction could not be decoded")
    if reference not in transaction.referenced_keys():
        return Invalid("Reference not found in transaction")

    try:
        expected_units = to_base_units(expected.amount, decimals)
    except ValueError as e:
        return Invalid(str(e))

    recipient_address = derive_holding_address(expected.recipient, expected.token)
    post = {b.address: b for b in meta.post_token_balances}
    pre = {b.address: b for b in meta.pre_token_balances}

    post_balance = post.get(recipient_address)
    if post_balance is None:
        received = [
            b.token
            for b in meta.post_token_balances
            if b.owner == expected.recipient and b.token != expected.token
        ]
        if received:
            return Invalid(
                f"Recipient received token {received[0]}, expected {expected.token}"
            )
        return Invalid("Recipient not found")
    if post_balance.owner != expected.recipient:
        return Invalid("Recipient holding account has a different owner")
    if post_balance.token != expected.token:
        return Invalid(
            f"Recipient received token {post_balance.token}, expected {expected.token}"
        )

    pre_balance = pre.get(recipient_address)
    pre_amount = pre_balance.amount if pre_balance is not None else 0
    delta = post_balance.amount - pre_amount
    if delta != expected_units:
        return Invalid(
            f"Amount not transferred: expected {expected_units} units, got {delta}"
        )

    return Found(
        SettlementRecord(
            signature=confirmed.signature,
            recipient=expected.recipient,
            token=expected.token,
            amount=Decimal(delta).scaleb(-decimals),
        )
    )


async def lookup_settlement(
    ledger: LedgerClientProtocol,
    reference: str,
    expected: ExpectedSettlement,
    commitment: Commitment = "confirmed",
    limit: int = 1000,
) -> SettlementLookup:
    """Find the oldest transaction referencing `reference` and validate it.

    Ledger failures propagate as exceptions; only the outcome of a successful
    query is encoded in the result.
    """
    signatures = await ledger.get_signatures_for_key(reference, limit, commitment)
    if not signatures:
        return NotFound()
    oldest = signatures[-1]

    confirmed = await ledger.get_transaction(oldest.signature, commitment)
    if confirmed is None:
        # Signature indexed but the body is not served at this commitment yet
        return NotFound()

    token_meta = await ledger.get_token_metadata(expected.token)
    return validate_transfer(confirmed, expected, reference, token_meta.decimals)
