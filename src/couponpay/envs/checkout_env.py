from __future__ import annotations

import os
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from ..crypto.keys import decode_public_key_bytes, load_private_key_from_pem
from ..domain.ledger.entities import Commitment


class Settings(BaseModel):
    merchant_base_url: str
    ledger_rpc_url: str
    # Without a buyer key the CLI can only print transfer links
    buyer_private_key_pem: Optional[str] = None
    merchant_public_key: str
    value_token: str
    # Needed only to show the coupon book
    loyalty_token: Optional[str] = None
    settlement_poll_interval: float = Field(default=0.5, ge=0)
    settlement_max_attempts: Optional[int] = Field(default=None, gt=0)
    settlement_commitment: Commitment = "confirmed"

    @field_validator("buyer_private_key_pem")
    @classmethod
    def validate_buyer_private_key_pem(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        try:
            load_private_key_from_pem(v)
        except Exception as e:
            raise ValueError(f"Invalid buyer private key PEM: {e}") from e
        return v

    @field_validator("merchant_public_key", "value_token")
    @classmethod
    def validate_public_key(cls, v: str) -> str:
        decode_public_key_bytes(v)
        return v

    @field_validator("loyalty_token")
    @classmethod
    def validate_loyalty_token(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        decode_public_key_bytes(v)
        return v

    @field_validator("merchant_base_url", "ledger_rpc_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v:
            raise ValueError("Base URL cannot be empty")
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"}:
            raise ValueError("Base URL must start with http:// or https://")
        if not parsed.netloc:
            raise ValueError("Base URL must include a host")
        return v


def get_settings() -> Settings:
    merchant_base_url = os.environ.get("MERCHANT_BASE_URL")
    ledger_rpc_url = os.environ.get("LEDGER_RPC_URL")
    merchant_public_key = os.environ.get("MERCHANT_PUBLIC_KEY")
    value_token = os.environ.get("VALUE_TOKEN")
    if not (merchant_base_url and ledger_rpc_url and merchant_public_key and value_token):
        raise ValueError(
            "MERCHANT_BASE_URL, LEDGER_RPC_URL, MERCHANT_PUBLIC_KEY, "
            "and VALUE_TOKEN are required"
        )

    poll_interval_str = os.environ.get("SETTLEMENT_POLL_INTERVAL")
    max_attempts_str = os.environ.get("SETTLEMENT_MAX_ATTEMPTS")

    return Settings(
        merchant_base_url=merchant_base_url,
        ledger_rpc_url=ledger_rpc_url,
        buyer_private_key_pem=os.environ.get("BUYER_PRIVATE_KEY_PEM"),
        merchant_public_key=merchant_public_key,
        value_token=value_token,
        loyalty_token=os.environ.get("LOYALTY_TOKEN"),
        settlement_poll_interval=float(poll_interval_str)
        if poll_interval_str
        else 0.5,
        settlement_max_attempts=int(max_attempts_str) if max_attempts_str else None,
        settlement_commitment=os.environ.get("SETTLEMENT_COMMITMENT", "confirmed"),
    )
