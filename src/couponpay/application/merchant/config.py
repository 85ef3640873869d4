from __future__ import annotations

from typing import Optional

from cryptography.hazmat.primitives.asymmetric import ed25519
from pydantic import BaseModel, ConfigDict, Field

from ...domain.ledger.entities import Commitment


class MerchantConfig(BaseModel):
    """Configuration injected into the payment request builder.

    `merchant_private_key` is optional so that a missing credential is
    reported per request as a server misconfiguration.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    merchant_private_key: Optional[ed25519.Ed25519PrivateKey] = None
    value_token: str
    loyalty_token: str
    loyalty_reward_tokens: int = Field(default=1, gt=0)
    confirmation_message: str = "Thanks for your order! 🎣"
    checkpoint_commitment: Commitment = "finalized"
    account_commitment: Commitment = "confirmed"
    holding_account_poll_attempts: int = Field(default=20, gt=0)
    holding_account_poll_interval: float = Field(default=0.5, ge=0)
