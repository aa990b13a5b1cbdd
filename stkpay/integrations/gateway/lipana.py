"""
Lipana HTTP client - STK push initiation over the gateway REST API
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from stkpay.integrations.gateway.base import GatewayPushResult, PaymentGateway
from stkpay.services.exceptions import GatewayUnavailable
from stkpay.services.payload_lookup import find_message, find_transaction_id

logger = logging.getLogger(__name__)


class LipanaGateway(PaymentGateway):
    def __init__(
        self,
        api_key: str,
        base_url: str,
        initiate_path: str = "/transactions/push-stk",
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            logger.warning("GATEWAY_API_KEY is empty; gateway requests will be rejected")
        self.base_url = base_url.rstrip("/")
        self.initiate_path = initiate_path
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_seconds,
            headers={
                "x-api-key": api_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            transport=transport,
        )

    async def initiate_stk_push(self, phone: str, amount: Decimal) -> GatewayPushResult:
        payload: Dict[str, Any] = {
            "phone": phone,
            "amount": _json_amount(amount),
        }

        try:
            response = await self._client.post(self.initiate_path, json=payload)
        except httpx.TimeoutException as e:
            logger.error(f"Gateway timeout: url={self.base_url}{self.initiate_path}, error={e}")
            raise GatewayUnavailable("Payment gateway timed out", {"error": str(e)}) from e
        except httpx.TransportError as e:
            logger.error(f"Gateway unreachable: url={self.base_url}{self.initiate_path}, error={e}")
            raise GatewayUnavailable(details={"error": str(e)}) from e

        # Error payloads are parsed too: their message is surfaced to the caller
        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {"message": response.text}
        if not isinstance(data, dict):
            data = {"data": data}

        transaction_id = find_transaction_id(data) if response.is_success else None
        message = find_message(data)
        if not transaction_id and not message and response.is_error:
            message = f"Gateway responded with HTTP {response.status_code}"

        logger.info(
            "Gateway push response",
            extra={
                "status_code": response.status_code,
                "gateway_transaction_id": transaction_id,
                "gateway_message": message,
            },
        )
        return GatewayPushResult(
            transaction_id=transaction_id,
            message=message,
            status_code=response.status_code,
            raw=data,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def _json_amount(amount: Decimal) -> Any:
    """Whole amounts go out as integers (M-Pesa only charges whole units)"""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)
