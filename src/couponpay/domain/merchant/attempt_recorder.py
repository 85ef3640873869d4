"""Payment attempt recording interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer


class PaymentAttempt(BaseModel):
    """A payment request handed to a buyer, keyed by its reference."""

    reference: str
    buyer: str
    amount: Decimal
    transaction_b64: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> str:
        return str(value)

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()


class PaymentAttemptRecorder(ABC):
    """Sink for built payment requests, e.g. for an audit trail."""

    @abstractmethod
    async def record(self, attempt: PaymentAttempt) -> None:
        pass
