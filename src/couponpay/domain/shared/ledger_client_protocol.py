"""Protocol interface for ledger client implementations.

Services depend on this protocol rather than a concrete JSON-RPC client so
tests can substitute an in-memory ledger.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, Type, TYPE_CHECKING
from types import TracebackType

if TYPE_CHECKING:
    from ..ledger.entities import (
        Checkpoint,
        Commitment,
        ConfirmedTransaction,
        HoldingAccount,
        SignatureInfo,
        TokenMetadata,
    )


class LedgerClientProtocol(Protocol):
    """Read and submit operations the checkout protocol needs from a ledger node."""

    async def get_token_metadata(self, token: str) -> "TokenMetadata":
        """Fetch token metadata (decimals, supply).

        Raises:
            LedgerError: if the token does not exist
        """
        ...

    async def get_holding_account(
        self, address: str, commitment: "Commitment" = "confirmed"
    ) -> Optional["HoldingAccount"]:
        """Return the holding account at `address`, or None if it does not exist."""
        ...

    async def get_latest_checkpoint(
        self, commitment: "Commitment" = "finalized"
    ) -> "Checkpoint":
        """Return a recent checkpoint to bind new transactions to."""
        ...

    async def get_signatures_for_key(
        self,
        key: str,
        limit: int = 1000,
        commitment: "Commitment" = "confirmed",
    ) -> list["SignatureInfo"]:
        """Signatures of transactions referencing `key`, newest first."""
        ...

    async def get_transaction(
        self, signature: str, commitment: "Commitment" = "confirmed"
    ) -> Optional["ConfirmedTransaction"]:
        """Fetch a transaction by signature, or None if not visible at `commitment`."""
        ...

    async def send_transaction(self, transaction_b64: str) -> str:
        """Submit a fully signed transaction and return its signature."""
        ...

    async def aclose(self) -> None:
        ...

    async def __aenter__(self: "LedgerClientProtocol") -> "LedgerClientProtocol":
        ...

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        ...


# Factory type for creating ledger clients
# Each use opens its own client with `async with factory() as ledger:`
LedgerClientFactory = Callable[[], LedgerClientProtocol]
