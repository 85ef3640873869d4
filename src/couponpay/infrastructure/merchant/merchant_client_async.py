from __future__ import annotations

from typing import Mapping, NoReturn, Optional, Type
from types import TracebackType

import httpx

from ...application.merchant.dtos import (
    ErrorOutputDTO,
    MakeTransactionGetResponseDTO,
    MakeTransactionInputDTO,
    MakeTransactionOutputDTO,
)
from ...domain.errors import MerchantRequestError
from ..http.http_client import AsyncHttpClient

TRANSACTION_REQUESTS_PATH = "/merchant/transaction-requests"


class MerchantClientAsync:
    """Asynchronous client for the merchant transaction-request API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        # base_url is expected to already contain the API prefix (e.g. /api/v1)
        self._http = AsyncHttpClient(base_url, timeout=timeout, transport=transport)

    @staticmethod
    def _raise_for_error(e: httpx.HTTPStatusError) -> NoReturn:
        error: Optional[str]
        try:
            error = ErrorOutputDTO.model_validate(e.response.json()).error
        except ValueError:
            error = e.response.text or None
        raise MerchantRequestError(e.response.status_code, error) from e

    async def get_metadata(self) -> MakeTransactionGetResponseDTO:
        """Fetch the label and icon wallets display for this merchant."""
        try:
            resp = await self._http.get(TRANSACTION_REQUESTS_PATH)
        except httpx.HTTPStatusError as e:
            self._raise_for_error(e)
        return MakeTransactionGetResponseDTO.model_validate(resp.json())

    async def make_transaction(
        self,
        cart: Mapping[str, int],
        reference: str,
        account: str,
    ) -> MakeTransactionOutputDTO:
        """Ask the merchant to build a payment transaction for ``cart``.

        Cart quantities and the reference travel as query parameters; the
        buyer's account is the JSON body, as wallets send it.

        Raises:
            MerchantRequestError: for any non-successful response.
        """
        params = {item: str(quantity) for item, quantity in cart.items()}
        params["reference"] = reference
        body = MakeTransactionInputDTO(account=account)
        try:
            resp = await self._http.post(
                TRANSACTION_REQUESTS_PATH, json=body.model_dump(), params=params
            )
        except httpx.HTTPStatusError as e:
            self._raise_for_error(e)
        return MakeTransactionOutputDTO.model_validate(resp.json())

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "MerchantClientAsync":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()
