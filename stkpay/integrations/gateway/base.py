"""
Payment gateway interface
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass
class GatewayPushResult:
    """
    Outcome of a push-payment request as reported by the gateway.

    ``transaction_id`` is None when the gateway did not accept the request;
    ``message`` then carries the gateway's explanation when it gave one.
    """
    transaction_id: Optional[str]
    message: Optional[str] = None
    status_code: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def accepted(self) -> bool:
        return bool(self.transaction_id)


class PaymentGateway(ABC):
    """Every gateway client must implement this interface"""

    @abstractmethod
    async def initiate_stk_push(self, phone: str, amount: Decimal) -> GatewayPushResult:
        """
        Send a push-payment prompt to ``phone``.

        Raises GatewayUnavailable when the gateway cannot be reached. A
        reachable gateway that refuses the request yields a result without
        a transaction_id instead of raising.
        """

    async def aclose(self) -> None:
        """Release network resources (called at application shutdown)"""
