"""Data Transfer Objects for the merchant transaction-request boundary.

Shared by the FastAPI routes and by `MerchantClientAsync`, so both sides of
the wire validate the same shapes.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class MakeTransactionInputDTO(BaseModel):
    """Buyer's public key, posted by the wallet."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"account": "3q2+7w6tvu8AAQIDBAUGBwgJCgsMDQ4PEBESExQVFhc="}
        }
    )

    # Optional so an absent account maps to "No account provided", not a 422.
    account: Optional[str] = None


class MakeTransactionOutputDTO(BaseModel):
    """Partially signed transaction (base64) plus a message for the wallet."""

    transaction: str
    message: str


class MakeTransactionGetResponseDTO(BaseModel):
    """Display metadata for wallets."""

    label: str
    icon: str


class ErrorOutputDTO(BaseModel):
    error: str
