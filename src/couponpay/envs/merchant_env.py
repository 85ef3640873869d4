from __future__ import annotations

import os
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

from ..application.merchant.config import MerchantConfig
from ..crypto.keys import decode_public_key_bytes, load_private_key_from_pem
from ..domain.ledger.entities import Commitment

DEFAULT_MERCHANT_LABEL = "GUIDE-X Solana"
DEFAULT_MERCHANT_ICON_URL = (
    "https://guidex-image-storage.nyc3.digitaloceanspaces.com/crypto/trout-crypto-key.svg"
)


class Settings(BaseModel):
    api_host: str
    api_port: int
    api_debug: bool
    api_workers: int = 1
    api_cors_origins: list[str]

    app_name: str
    app_version: str

    ledger_rpc_url: str
    # Absent key is reported per request, so the server still starts
    shop_private_key_pem: Optional[str] = None
    value_token: str
    loyalty_token: str

    merchant_label: str
    merchant_icon_url: str
    merchant_confirmation_message: str = "Thanks for your order! 🎣"
    ledger_checkpoint_commitment: Commitment = "finalized"

    @field_validator("shop_private_key_pem")
    @classmethod
    def validate_shop_private_key_pem(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        try:
            load_private_key_from_pem(v)
        except Exception as e:
            raise ValueError(f"Invalid shop private key PEM: {e}") from e
        return v

    @field_validator("value_token", "loyalty_token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        if not v:
            raise ValueError("Token cannot be empty")
        try:
            decode_public_key_bytes(v)
        except ValueError as e:
            raise ValueError(f"Invalid token public key: {e}") from e
        return v

    @field_validator("ledger_rpc_url", "merchant_icon_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v:
            raise ValueError("URL cannot be empty")
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"}:
            raise ValueError("URL must start with http:// or https://")
        if not parsed.netloc:
            raise ValueError("URL must include a host")
        return v

    def to_merchant_config(self) -> MerchantConfig:
        return MerchantConfig(
            merchant_private_key=load_private_key_from_pem(self.shop_private_key_pem)
            if self.shop_private_key_pem
            else None,
            value_token=self.value_token,
            loyalty_token=self.loyalty_token,
            confirmation_message=self.merchant_confirmation_message,
            checkpoint_commitment=self.ledger_checkpoint_commitment,
        )


def get_settings() -> Settings:
    api_debug_str = os.environ.get("MERCHANT_API_DEBUG")
    api_cors_origins_str = os.environ.get("MERCHANT_API_CORS_ORIGINS")
    api_port_str = os.environ.get("MERCHANT_API_PORT")
    api_workers_str = os.environ.get("MERCHANT_API_WORKERS")

    optional = {
        "merchant_confirmation_message": os.environ.get(
            "MERCHANT_CONFIRMATION_MESSAGE"
        ),
        "ledger_checkpoint_commitment": os.environ.get("LEDGER_CHECKPOINT_COMMITMENT"),
        "api_workers": int(api_workers_str) if api_workers_str else None,
    }

    return Settings(
        api_host=os.environ.get("MERCHANT_API_HOST", "0.0.0.0"),
        api_port=int(api_port_str) if api_port_str is not None else 8000,
        api_debug=api_debug_str.lower() == "true"
        if api_debug_str is not None
        else False,
        api_cors_origins=api_cors_origins_str.split(",")
        if api_cors_origins_str is not None
        else ["*"],
        app_name=os.environ.get("MERCHANT_APP_NAME", "CouponPay"),
        app_version=os.environ.get("MERCHANT_APP_VERSION", "0.1.0"),
        ledger_rpc_url=os.environ.get("LEDGER_RPC_URL"),
        shop_private_key_pem=os.environ.get("SHOP_PRIVATE_KEY_PEM"),
        value_token=os.environ.get("VALUE_TOKEN"),
        loyalty_token=os.environ.get("LOYALTY_TOKEN"),
        merchant_label=os.environ.get("MERCHANT_LABEL", DEFAULT_MERCHANT_LABEL),
        merchant_icon_url=os.environ.get("MERCHANT_ICON_URL", DEFAULT_MERCHANT_ICON_URL),
        **{key: value for key, value in optional.items() if value is not None},
    )
