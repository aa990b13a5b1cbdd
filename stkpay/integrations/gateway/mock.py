"""
Mock gateway - no network calls

Used with GATEWAY_MODE=mock for local development. Every accepted push gets
an identifier of the form ``MOCK-<hex>``; a phone listed in ``reject_phones``
is refused the way the live gateway refuses an invalid MSISDN.
"""

import logging
import uuid
from decimal import Decimal
from typing import Iterable, List, Optional

from stkpay.integrations.gateway.base import GatewayPushResult, PaymentGateway

logger = logging.getLogger(__name__)


class MockGateway(PaymentGateway):
    def __init__(self, reject_phones: Optional[Iterable[str]] = None):
        self._reject_phones = set(reject_phones or ())
        self.pushes: List[GatewayPushResult] = []
        logger.info("[GATEWAY MOCK] Client initialised")

    async def initiate_stk_push(self, phone: str, amount: Decimal) -> GatewayPushResult:
        logger.info("[GATEWAY MOCK] STK push phone=%s amount=%s", phone, amount)
        if phone in self._reject_phones:
            result = GatewayPushResult(
                transaction_id=None,
                message="Invalid phone number",
                status_code=400,
                raw={"success": False, "message": "Invalid phone number"},
            )
        else:
            transaction_id = f"MOCK-{uuid.uuid4().hex[:12].upper()}"
            result = GatewayPushResult(
                transaction_id=transaction_id,
                message="STK push sent",
                status_code=200,
                raw={"transactionId": transaction_id, "status": "pending"},
            )
        self.pushes.append(result)
        return result
