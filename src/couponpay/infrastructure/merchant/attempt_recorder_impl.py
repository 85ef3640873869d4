from __future__ import annotations

import logging

from ...domain.merchant.attempt_recorder import PaymentAttempt, PaymentAttemptRecorder

logger = logging.getLogger(__name__)


class LoggingPaymentAttemptRecorder(PaymentAttemptRecorder):
    """Writes each payment attempt to the log; nothing is persisted."""

    async def record(self, attempt: PaymentAttempt) -> None:
        logger.info(
            "Payment request built: reference=%s buyer=%s amount=%s",
            attempt.reference,
            attempt.buyer,
            attempt.amount,
        )
