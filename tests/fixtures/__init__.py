"""Test fixtures for in-memory implementations."""

from .in_memory_attempt_recorder import InMemoryPaymentAttemptRecorder
from .in_memory_ledger import InMemoryLedger

__all__ = [
    "InMemoryLedger",
    "InMemoryPaymentAttemptRecorder",
]
