"""Ledger transaction: ordered instructions bound to a checkpoint, plus signatures."""

from __future__ import annotations

import base64
import json
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ed25519
from pydantic import BaseModel, Field

from ...crypto.keys import (
    json_to_bytes,
    load_public_key_from_b64,
    public_key_b64,
    sign_bytes,
    verify_signature_bytes,
)
from .entities import Instruction


class SignaturePair(BaseModel):
    public_key: str
    signature: Optional[str] = None


class Transaction(BaseModel):
    """An unsigned, partially signed or fully signed ledger transaction.

    Signatures cover `message_bytes()`, so changing the fee payer, the
    checkpoint or any instruction after signing invalidates every signature
    already present.
    """

    fee_payer: Optional[str] = None
    recent_checkpoint: Optional[str] = None
    instructions: list[Instruction] = Field(default_factory=list)
    signatures: list[SignaturePair] = Field(default_factory=list)

    def add(self, *instructions: Instruction) -> "Transaction":
        for instruction in instructions:
            self.instructions.append(instruction.model_copy(deep=True))
        return self

    def required_signers(self) -> list[str]:
        """Fee payer first, then every signing key in instruction order."""
        signers: list[str] = []
        if self.fee_payer:
            signers.append(self.fee_payer)
        for instruction in self.instructions:
            for meta in instruction.keys:
                if meta.is_signer and meta.public_key not in signers:
                    signers.append(meta.public_key)
        return signers

    def referenced_keys(self) -> set[str]:
        return {meta.public_key for ix in self.instructions for meta in ix.keys}

    def _message(self) -> dict:
        if not self.fee_payer:
            raise ValueError("Transaction fee payer required")
        if not self.recent_checkpoint:
            raise ValueError("Transaction recent checkpoint required")
        if not self.instructions:
            raise ValueError("Transaction has no instructions")
        return {
            "fee_payer": self.fee_payer,
            "recent_checkpoint": self.recent_checkpoint,
            "instructions": [ix.model_dump() for ix in self.instructions],
        }

    def message_bytes(self) -> bytes:
        return json_to_bytes(self._message())

    def _compile_signatures(self) -> list[SignaturePair]:
        existing = {pair.public_key: pair.signature for pair in self.signatures}
        return [
            SignaturePair(public_key=key, signature=existing.get(key))
            for key in self.required_signers()
        ]

    def partial_sign(self, *private_keys: ed25519.Ed25519PrivateKey) -> None:
        """Add signatures for the given keys, leaving other required slots empty."""
        message = self.message_bytes()
        compiled = self._compile_signatures()
        by_key = {pair.public_key: pair for pair in compiled}
        for private_key in private_keys:
            signer = public_key_b64(private_key)
            pair = by_key.get(signer)
            if pair is None:
                raise ValueError(f"Unknown signer: {signer}")
            pair.signature = sign_bytes(private_key, message)
        self.signatures = compiled

    @property
    def signature(self) -> Optional[str]:
        """The fee payer's signature, which identifies the transaction on the ledger."""
        if not self.fee_payer:
            return None
        for pair in self.signatures:
            if pair.public_key == self.fee_payer:
                return pair.signature
        return None

    def missing_signers(self) -> list[str]:
        return [
            pair.public_key
            for pair in self._compile_signatures()
            if pair.signature is None
        ]

    def verify_signatures(self, require_all_signatures: bool = True) -> bool:
        try:
            self._check_signatures(require_all_signatures)
        except (InvalidSignature, ValueError):
            return False
        return True

    def _check_signatures(self, require_all_signatures: bool) -> list[SignaturePair]:
        message = self.message_bytes()
        compiled = self._compile_signatures()
        missing = [pair.public_key for pair in compiled if pair.signature is None]
        if require_all_signatures and missing:
            raise ValueError(f"Missing signature for public key(s): {missing}")
        for pair in compiled:
            if pair.signature is None:
                continue
            verify_signature_bytes(
                load_public_key_from_b64(pair.public_key), message, pair.signature
            )
        return compiled

    def serialize(
        self, require_all_signatures: bool = True, verify_signatures: bool = True
    ) -> bytes:
        """Encode the transaction for transport.

        Raises:
            ValueError: if signatures are missing and `require_all_signatures` is set.
            InvalidSignature: if a present signature does not cover the message.
        """
        if verify_signatures:
            compiled = self._check_signatures(require_all_signatures)
        else:
            compiled = self._compile_signatures()
            if require_all_signatures and any(p.signature is None for p in compiled):
                raise ValueError("Transaction is missing signatures")
        return json_to_bytes(
            {
                "message": self._message(),
                "signatures": [pair.model_dump() for pair in compiled],
            }
        )

    @classmethod
    def deserialize(cls, data: bytes) -> "Transaction":
        decoded = json.loads(data.decode("utf-8"))
        if not isinstance(decoded, dict) or not isinstance(decoded.get("message"), dict):
            raise ValueError("Transaction payload must be an object with a message")
        message = decoded["message"]
        return cls(
            fee_payer=message["fee_payer"],
            recent_checkpoint=message["recent_checkpoint"],
            instructions=[
                Instruction.model_validate(ix) for ix in message["instructions"]
            ],
            signatures=[
                SignaturePair.model_validate(pair) for pair in decoded["signatures"]
            ],
        )

    def to_base64(
        self, require_all_signatures: bool = True, verify_signatures: bool = True
    ) -> str:
        raw = self.serialize(
            require_all_signatures=require_all_signatures,
            verify_signatures=verify_signatures,
        )
        return base64.b64encode(raw).decode("utf-8")

    @classmethod
    def from_base64(cls, value: str) -> "Transaction":
        return cls.deserialize(base64.b64decode(value, validate=True))
