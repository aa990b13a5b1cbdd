"""
HTTP client for the payment API (/pay and /status)
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

import httpx


class CheckoutApiError(Exception):
    """Any failed call to the payment API: transport error, non-2xx, or unexpected body"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class CheckoutApiClient:
    def __init__(
        self,
        base_url: str,
        api_prefix: str = "/api",
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + api_prefix,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def pay(self, phone: str, amount: Union[Decimal, float, int]) -> str:
        """Initiate a payment; returns the transaction id"""
        body = await self._request("POST", "/pay", json={"phone": phone, "amount": _json_number(amount)})
        transaction_id = body.get("transactionId")
        if not body.get("success") or not transaction_id:
            raise CheckoutApiError(body.get("error") or "Payment was not initiated")
        return transaction_id

    async def status(self, transaction_id: str) -> str:
        """Current status string (pending, success, failed)"""
        body = await self._request("GET", f"/status/{quote(transaction_id, safe='')}")
        status = body.get("status")
        if not isinstance(status, str):
            raise CheckoutApiError("Status response without a status field")
        return status

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise CheckoutApiError(f"{method} {path} failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = None
            if isinstance(body, dict):
                message = body.get("error") or body.get("message")
            raise CheckoutApiError(
                message if isinstance(message, str) else f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if not isinstance(body, dict):
            raise CheckoutApiError(f"{method} {path} returned a non-JSON body", status_code=response.status_code)
        return body

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CheckoutApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def _json_number(amount: Union[Decimal, float, int]) -> Union[int, float]:
    if isinstance(amount, Decimal):
        return int(amount) if amount == amount.to_integral_value() else float(amount)
    return amount
