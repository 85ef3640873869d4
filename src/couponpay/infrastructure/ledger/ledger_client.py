"""JSON-RPC client for a ledger node."""

from __future__ import annotations

import itertools
from typing import Any, Optional, Type
from types import TracebackType

import httpx

from ...domain.errors import LedgerError, LedgerRpcError
from ...domain.ledger.entities import (
    Checkpoint,
    Commitment,
    ConfirmedTransaction,
    HoldingAccount,
    SignatureInfo,
    TokenMetadata,
)
from ...middleware.timing import log_timing
from ..http.http_client import AsyncHttpClient


class AsyncLedgerClient:
    """Asynchronous JSON-RPC 2.0 client implementing `LedgerClientProtocol`.

    Results are validated into ledger entities so a misbehaving node surfaces
    as a pydantic ValidationError rather than as a KeyError deep in a use case.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(rpc_url, timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    async def _call(self, method: str, *params: Any) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        resp = await self._http.post("", json=payload)
        body = resp.json()
        error = body.get("error")
        if error is not None:
            raise LedgerRpcError(
                method,
                int(error.get("code", 0)),
                str(error.get("message", "")),
                error.get("data"),
            )
        return body.get("result")

    @log_timing("L_get_token_metadata")
    async def get_token_metadata(self, token: str) -> TokenMetadata:
        result = await self._call("getTokenMetadata", token)
        if result is None:
            raise LedgerError(f"Token {token} not found")
        return TokenMetadata.model_validate(result)

    @log_timing("L_get_holding_account")
    async def get_holding_account(
        self, address: str, commitment: Commitment = "confirmed"
    ) -> Optional[HoldingAccount]:
        result = await self._call(
            "getHoldingAccount", address, {"commitment": commitment}
        )
        if result is None:
            return None
        return HoldingAccount.model_validate(result)

    @log_timing("L_get_latest_checkpoint")
    async def get_latest_checkpoint(
        self, commitment: Commitment = "finalized"
    ) -> Checkpoint:
        result = await self._call("getLatestCheckpoint", {"commitment": commitment})
        return Checkpoint.model_validate(result)

    @log_timing("L_get_signatures_for_key")
    async def get_signatures_for_key(
        self,
        key: str,
        limit: int = 1000,
        commitment: Commitment = "confirmed",
    ) -> list[SignatureInfo]:
        result = await self._call(
            "getSignaturesForKey", key, {"limit": limit, "commitment": commitment}
        )
        return [SignatureInfo.model_validate(item) for item in result or []]

    @log_timing("L_get_transaction")
    async def get_transaction(
        self, signature: str, commitment: Commitment = "confirmed"
    ) -> Optional[ConfirmedTransaction]:
        result = await self._call(
            "getTransaction", signature, {"commitment": commitment}
        )
        if result is None:
            return None
        return ConfirmedTransaction.model_validate(result)

    @log_timing("L_send_transaction")
    async def send_transaction(self, transaction_b64: str) -> str:
        result = await self._call("sendTransaction", transaction_b64)
        return str(result)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AsyncLedgerClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
