"""Test helpers for use case-based testing."""

from .buyer_actor import BuyerActor

__all__ = [
    "BuyerActor",
]
