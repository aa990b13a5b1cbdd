"""
Payment endpoints - initiation, gateway webhook, status polling
"""

import json
import logging
from typing import Any, Callable, Dict, List
from fastapi import APIRouter, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.routing import APIRoute

from stkpay.api.dependencies import get_lifecycle_manager
from stkpay.infrastructure.logging_config import trace_id_context
from stkpay.schemas.payments import (
    PayErrorResponse,
    PayRequest,
    PayResponse,
    StatusErrorResponse,
    StatusNotFoundResponse,
    StatusResponse,
)
from stkpay.services.exceptions import (
    DuplicateTransaction,
    GatewayRejected,
    GatewayUnavailable,
    InvalidPaymentRequest,
    StoreUnavailable,
    TransactionNotFound,
)
from stkpay.services.payment_service import PaymentLifecycleManager
from stkpay.utils.metrics import (
    record_payment_initiation,
    record_webhook_processed,
    record_webhook_received,
)

logger = logging.getLogger(__name__)

def _pay_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=PayErrorResponse(error=message).model_dump(),
    )


def _validation_message(errors: List[Dict[str, Any]]) -> str:
    """'phone: Field required; amount: Input should be a valid decimal'"""
    parts = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid payment request"


class PayRoute(APIRoute):
    """
    Route class for /pay: request validation failures answer
    400 {success: false, error} like every other initiation failure,
    instead of the generic validation envelope.
    """

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()

        async def pay_route_handler(request: Request) -> Response:
            try:
                return await handler(request)
            except RequestValidationError as e:
                message = _validation_message(e.errors())
                logger.warning(f"Invalid payment request: {message}")
                record_payment_initiation("invalid")
                return _pay_error(status.HTTP_400_BAD_REQUEST, message)

        return pay_route_handler


router = APIRouter()
pay_router = APIRouter(route_class=PayRoute)


@pay_router.post(
    "/pay",
    response_model=PayResponse,
    responses={
        400: {"model": PayErrorResponse, "description": "Gateway rejected the push or invalid input"},
        500: {"model": PayErrorResponse, "description": "Gateway or database unavailable"},
    },
    summary="Initiate STK push",
    description="Send a push-payment prompt to the payer's phone and record a pending transaction.",
)
async def initiate_payment(
    body: PayRequest,
    manager: PaymentLifecycleManager = Depends(get_lifecycle_manager),
):
    try:
        transaction_id = await manager.initiate(body.phone, body.amount)
    except InvalidPaymentRequest as e:
        record_payment_initiation("invalid")
        return _pay_error(status.HTTP_400_BAD_REQUEST, e.message)
    except GatewayRejected as e:
        record_payment_initiation("rejected")
        return _pay_error(status.HTTP_400_BAD_REQUEST, e.message)
    except GatewayUnavailable as e:
        record_payment_initiation("gateway_unavailable")
        return _pay_error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message)
    except (StoreUnavailable, DuplicateTransaction) as e:
        logger.error(f"Failed to persist transaction: code={e.code}, details={e.details}")
        record_payment_initiation("store_error")
        return _pay_error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message)

    record_payment_initiation("accepted")
    return PayResponse(transaction_id=transaction_id)


@router.post(
    "/webhook",
    response_class=PlainTextResponse,
    summary="Gateway webhook",
    description=(
        "Receive payment outcome events from the gateway. Always acknowledged with 200 OK "
        "unless the event could not be stored."
    ),
)
async def gateway_webhook(
    request: Request,
    manager: PaymentLifecycleManager = Depends(get_lifecycle_manager),
) -> PlainTextResponse:
    record_webhook_received()
    trace_id = trace_id_context.get()

    body_bytes = await request.body()
    try:
        event = json.loads(body_bytes) if body_bytes else None
    except ValueError:
        logger.warning(f"Webhook body is not JSON: trace_id={trace_id}, length={len(body_bytes)}")
        event = None

    logger.debug("Raw webhook", extra={"payload": event})

    try:
        outcome = manager.reconcile(event)
    except Exception as e:
        logger.error(f"Webhook internal error: trace_id={trace_id}, error={str(e)}", exc_info=True)
        record_webhook_processed("error")
        return PlainTextResponse("Webhook Error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    record_webhook_processed(outcome.value)
    return PlainTextResponse("OK", status_code=status.HTTP_200_OK)


@router.get(
    "/status/{transaction_id}",
    response_model=StatusResponse,
    responses={
        404: {"model": StatusNotFoundResponse},
        500: {"model": StatusErrorResponse},
    },
    summary="Transaction status",
)
async def get_payment_status(
    transaction_id: str,
    manager: PaymentLifecycleManager = Depends(get_lifecycle_manager),
):
    try:
        transaction_status = manager.get_status(transaction_id)
    except TransactionNotFound:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=StatusNotFoundResponse().model_dump(),
        )
    except StoreUnavailable as e:
        logger.error(f"Status check error: transaction_id={transaction_id}, details={e.details}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=StatusErrorResponse().model_dump(),
        )

    return StatusResponse(status=transaction_status.value)
