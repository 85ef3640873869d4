"""Transaction-request API routes (Merchant).

Wallets first GET the merchant's label and icon, then POST the buyer's
account to receive a partially signed payment transaction. Failures are
answered with an ``{"error": ...}`` body, which is what wallets display.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram

from ....application.merchant.dtos import (
    ErrorOutputDTO,
    MakeTransactionGetResponseDTO,
    MakeTransactionInputDTO,
    MakeTransactionOutputDTO,
)
from ....application.merchant.use_cases.payment_request import PaymentRequestService
from ....domain.errors import MerchantMisconfiguredError, PaymentRequestError
from ..dependencies import get_payment_request_service, get_transaction_request_metadata

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transaction-requests", tags=["transaction-requests"])

transaction_requests_total = Counter(
    "transaction_requests_total",
    "Total transaction requests processed",
    ["status"],
)
transaction_request_duration_milliseconds = Histogram(
    "transaction_request_duration_milliseconds",
    "Wall time to build a payment transaction (ms)",
    ["status"],
)


def _observe(outcome: str, start_time: float) -> None:
    transaction_requests_total.labels(status=outcome).inc()
    elapsed = (time.perf_counter() - start_time) * 1000
    transaction_request_duration_milliseconds.labels(status=outcome).observe(elapsed)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorOutputDTO(error=message).model_dump()
    )


@router.get("", response_model=MakeTransactionGetResponseDTO)
async def get_transaction_request_metadata_route(
    metadata: MakeTransactionGetResponseDTO = Depends(
        get_transaction_request_metadata
    ),
) -> MakeTransactionGetResponseDTO:
    """Label and icon shown by the wallet before it posts the account."""
    return metadata


@router.post(
    "",
    response_model=MakeTransactionOutputDTO,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorOutputDTO},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorOutputDTO},
    },
)
async def make_transaction(
    request: Request,
    body: Optional[MakeTransactionInputDTO] = None,
    service: PaymentRequestService = Depends(get_payment_request_service),
):
    """Build a payment transaction for the cart given in the query string."""
    start_time = time.perf_counter()
    params = request.query_params
    reference = params.get("reference")
    cart = {key: value for key, value in params.items() if key != "reference"}
    account = body.account if body is not None else None
    try:
        result = await service.build_payment_request(cart, account, reference)
        _observe("success", start_time)
        return result
    except PaymentRequestError as e:
        _observe("client_error", start_time)
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except MerchantMisconfiguredError as e:
        logger.error("Merchant misconfigured: %s", e)
        _observe("server_error", start_time)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    except Exception as e:
        logger.exception("Internal server error while creating transaction: %s", e)
        _observe("server_error", start_time)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "error creating transaction"
        )
