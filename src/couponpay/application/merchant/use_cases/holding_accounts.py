"""Get-or-create for per-owner token holding accounts."""

from __future__ import annotations

import asyncio
import logging

from cryptography.hazmat.primitives.asymmetric import ed25519

from ....crypto.keys import derive_holding_address, public_key_b64
from ....domain.errors import HoldingAccountUnavailableError, LedgerError
from ....domain.ledger.entities import Commitment, HoldingAccount
from ....domain.ledger.instructions import create_holding_account_instruction
from ....domain.ledger.transaction import Transaction
from ....domain.shared import LedgerClientProtocol

logger = logging.getLogger(__name__)


async def ensure_holding_account(
    ledger: LedgerClientProtocol,
    payer: ed25519.Ed25519PrivateKey,
    token: str,
    owner: str,
    *,
    commitment: Commitment = "confirmed",
    checkpoint_commitment: Commitment = "finalized",
    poll_attempts: int = 20,
    poll_interval: float = 0.5,
) -> HoldingAccount:
    """Return `owner`'s holding account for `token`, creating it at `payer`'s expense.

    Creation is submitted and then polled until the account is visible at
    `commitment`, so instructions built afterwards can target it. A rejected
    creation is only logged, since a concurrent request for the same owner
    may have created the account first.

    Raises:
        HoldingAccountUnavailableError: if the account does not appear within
            the polling budget.
    """
    address = derive_holding_address(owner, token)
    account = await ledger.get_holding_account(address, commitment)
    if account is not None:
        return account

    payer_public_key = public_key_b64(payer)
    logger.info("Creating holding account %s for owner %s", address, owner)
    checkpoint = await ledger.get_latest_checkpoint(checkpoint_commitment)
    transaction = Transaction(
        fee_payer=payer_public_key, recent_checkpoint=checkpoint.hash
    )
    transaction.add(
        create_holding_account_instruction(payer_public_key, address, owner, token)
    )
    transaction.partial_sign(payer)
    try:
        await ledger.send_transaction(transaction.to_base64())
    except LedgerError as e:
        # A concurrent request may have created it first
        logger.warning("Holding account creation for %s failed: %s", address, e)

    for _ in range(poll_attempts):
        account = await ledger.get_holding_account(address, commitment)
        if account is not None:
            return account
        await asyncio.sleep(poll_interval)
    raise HoldingAccountUnavailableError(
        f"Holding account {address} not visible after creation"
    )
