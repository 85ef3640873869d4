"""Buyer-side signing: what a wallet does with a merchant-built transaction."""

from __future__ import annotations

import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ed25519

from ...crypto.keys import public_key_b64
from ...domain.ledger.transaction import Transaction
from ...domain.shared import LedgerClientProtocol

logger = logging.getLogger(__name__)


def sign_payment_transaction(
    transaction_b64: str, buyer_private_key: ed25519.Ed25519PrivateKey
) -> Transaction:
    """Verify the merchant's partial signature and add the buyer's.

    Raises:
        ValueError: if the buyer is not the fee payer or other signatures are missing.
        InvalidSignature: if a signature already present does not verify.
    """
    transaction = Transaction.from_base64(transaction_b64)
    buyer = public_key_b64(buyer_private_key)
    if transaction.fee_payer != buyer:
        raise ValueError("Transaction fee payer is not this buyer")

    missing = transaction.missing_signers()
    if missing != [buyer]:
        raise ValueError(f"Unexpected missing signers: {missing}")
    if not transaction.verify_signatures(require_all_signatures=False):
        raise InvalidSignature("Merchant signature does not cover this transaction")

    transaction.partial_sign(buyer_private_key)
    return transaction


async def sign_and_submit(
    ledger: LedgerClientProtocol,
    transaction_b64: str,
    buyer_private_key: ed25519.Ed25519PrivateKey,
) -> str:
    """Sign as the buyer and submit exactly once; returns the ledger signature."""
    transaction = sign_payment_transaction(transaction_b64, buyer_private_key)
    signature = await ledger.send_transaction(transaction.to_base64())
    logger.info("Submitted payment transaction %s", signature)
    return signature
