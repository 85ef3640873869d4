"""Ledger domain entities as returned by (or sent to) a ledger node."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Commitment = Literal["processed", "confirmed", "finalized"]


class AccountMeta(BaseModel):
    """One key participating in an instruction, with its signer/writable flags."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    public_key: str
    is_signer: bool
    is_writable: bool


class Instruction(BaseModel):
    """A single ledger instruction: target program, participating keys and data."""

    model_config = ConfigDict(extra="forbid")

    program_id: str
    keys: list[AccountMeta]
    data: dict[str, Any] = Field(default_factory=dict)


class TokenMetadata(BaseModel):
    """Token (mint) metadata; decimals scale human amounts into ledger units."""

    token: str
    decimals: int = Field(..., ge=0)
    supply: int = 0


class HoldingAccount(BaseModel):
    """Per-owner, per-token account holding a token balance."""

    address: str
    token: str
    owner: str
    amount: int = 0


class Checkpoint(BaseModel):
    """A recent ledger checkpoint; transactions bound to it expire after last_valid_height."""

    hash: str
    last_valid_height: int


class SignatureInfo(BaseModel):
    signature: str
    slot: int
    err: Optional[Any] = None
    confirmation_status: Optional[Commitment] = None


class TokenBalance(BaseModel):
    address: str
    token: str
    owner: str
    amount: int


class TransactionMeta(BaseModel):
    err: Optional[Any] = None
    pre_token_balances: list[TokenBalance] = Field(default_factory=list)
    post_token_balances: list[TokenBalance] = Field(default_factory=list)


class ConfirmedTransaction(BaseModel):
    """A transaction as recorded by the ledger, with execution metadata."""

    signature: str
    slot: int
    transaction: str  # base64 wire bytes
    meta: Optional[TransactionMeta] = None
