"""Builders and decoders for the token program instructions used at checkout."""

from __future__ import annotations

from pydantic import BaseModel

from ...crypto.keys import derive_program_id
from .entities import AccountMeta, Instruction

TOKEN_PROGRAM_ID = derive_program_id("token")
HOLDING_ACCOUNT_PROGRAM_ID = derive_program_id("holding-account")

TRANSFER_CHECKED = "transfer_checked"
CREATE_HOLDING_ACCOUNT = "create_holding_account"


class TransferChecked(BaseModel):
    """Decoded view of a transfer_checked instruction."""

    source: str
    token: str
    destination: str
    owner: str
    amount: int
    decimals: int
    extra_keys: list[AccountMeta]


def create_transfer_checked_instruction(
    source: str,
    token: str,
    destination: str,
    owner: str,
    amount: int,
    decimals: int,
) -> Instruction:
    """Build a transfer of `amount` ledger units of `token` from source to destination.

    The owner of the source account must sign. Decimals are carried so the
    ledger can reject a transfer built against the wrong precision.
    """
    if amount <= 0:
        raise ValueError("Transfer amount must be positive")
    if decimals < 0:
        raise ValueError("Decimals cannot be negative")
    return Instruction(
        program_id=TOKEN_PROGRAM_ID,
        keys=[
            AccountMeta(public_key=source, is_signer=False, is_writable=True),
            AccountMeta(public_key=token, is_signer=False, is_writable=False),
            AccountMeta(public_key=destination, is_signer=False, is_writable=True),
            AccountMeta(public_key=owner, is_signer=True, is_writable=False),
        ],
        data={"type": TRANSFER_CHECKED, "amount": amount, "decimals": decimals},
    )


def create_holding_account_instruction(
    payer: str, holding_address: str, owner: str, token: str
) -> Instruction:
    return Instruction(
        program_id=HOLDING_ACCOUNT_PROGRAM_ID,
        keys=[
            AccountMeta(public_key=payer, is_signer=True, is_writable=True),
            AccountMeta(public_key=holding_address, is_signer=False, is_writable=True),
            AccountMeta(public_key=owner, is_signer=False, is_writable=False),
            AccountMeta(public_key=token, is_signer=False, is_writable=False),
        ],
        data={"type": CREATE_HOLDING_ACCOUNT},
    )


def append_reference(instruction: Instruction, reference: str) -> Instruction:
    """Tag an instruction with a read-only, non-signing reference key."""
    instruction.keys.append(
        AccountMeta(public_key=reference, is_signer=False, is_writable=False)
    )
    return instruction


def decode_transfer_checked(instruction: Instruction) -> TransferChecked:
    if (
        instruction.program_id != TOKEN_PROGRAM_ID
        or instruction.data.get("type") != TRANSFER_CHECKED
    ):
        raise ValueError("Instruction is not a transfer_checked instruction")
    if len(instruction.keys) < 4:
        raise ValueError("transfer_checked instruction is missing keys")
    source, token, destination, owner = instruction.keys[:4]
    return TransferChecked(
        source=source.public_key,
        token=token.public_key,
        destination=destination.public_key,
        owner=owner.public_key,
        amount=int(instruction.data["amount"]),
        decimals=int(instruction.data["decimals"]),
        extra_keys=list(instruction.keys[4:]),
    )
