"""
Transaction Lifecycle Manager - initiation, webhook reconciliation, status queries
"""

import enum
import logging
from decimal import Decimal
from typing import Any, FrozenSet

from stkpay.core.transactions.models import TransactionStatus
from stkpay.core.transactions.store import TerminalUpdate, TransactionStore
from stkpay.integrations.gateway.base import PaymentGateway
from stkpay.services.exceptions import (
    GatewayRejected,
    InvalidPaymentRequest,
    MalformedEvent,
    TransactionNotFound,
)
from stkpay.services.payload_lookup import find_event_name, find_reference, find_transaction_id

logger = logging.getLogger(__name__)

SUCCESS_EVENTS: FrozenSet[str] = frozenset({"payment.success", "transaction.success"})
FAILURE_EVENTS: FrozenSet[str] = frozenset({"payment.failed", "transaction.failed", "transaction.timeout"})


class ReconcileOutcome(str, enum.Enum):
    """What reconcile() did with a webhook event"""
    UPDATED = "updated"
    ALREADY_TERMINAL = "already_terminal"
    NOT_FOUND = "not_found"
    IGNORED_MALFORMED = "ignored_malformed"
    IGNORED_UNKNOWN_EVENT = "ignored_unknown_event"


class PaymentLifecycleManager:
    """
    Owns the lifecycle of a PaymentTransaction.

    - initiate(): gateway push first, then a PENDING record (never a record
      for a rejected push)
    - reconcile(): applies a gateway webhook event as a guarded terminal write
    - get_status(): current status of a record
    """

    def __init__(self, gateway: PaymentGateway, store: TransactionStore):
        self.gateway = gateway
        self.store = store

    async def initiate(self, phone: str, amount: Decimal) -> str:
        """
        Send the push prompt and persist a PENDING transaction.

        Returns the gateway-issued transaction id.

        Raises:
            InvalidPaymentRequest: blank phone or non-positive amount
            GatewayUnavailable: gateway unreachable or timed out
            GatewayRejected: gateway answered without a transaction id
            StoreUnavailable / DuplicateTransaction: persistence failed
        """
        phone = (phone or "").strip()
        if not phone:
            raise InvalidPaymentRequest("phone is required")
        if amount is None or amount <= 0:
            raise InvalidPaymentRequest("amount must be greater than zero")

        logger.info(f"Initiating payment: phone={phone}, amount={amount}")
        result = await self.gateway.initiate_stk_push(phone, amount)

        if not result.accepted:
            logger.error(
                f"Gateway rejected push: phone={phone}, status_code={result.status_code}, "
                f"message={result.message}"
            )
            raise GatewayRejected(result.message, {"status_code": result.status_code})

        self.store.create_pending(result.transaction_id, phone, amount)
        logger.info(f"Transaction saved: transaction_id={result.transaction_id}, status=pending")
        return result.transaction_id

    def reconcile(self, event: Any) -> ReconcileOutcome:
        """
        Apply a gateway webhook event.

        Unparseable or unrelated events are logged and ignored; only store
        failures propagate (as StoreUnavailable).
        """
        transaction_id = find_transaction_id(event)
        if not transaction_id:
            error = MalformedEvent("Webhook received without a transaction id")
            logger.warning(f"{error.message}; ignoring", extra={"error_code": error.code})
            return ReconcileOutcome.IGNORED_MALFORMED

        event_name = find_event_name(event)
        logger.info(f"Processing webhook: transaction_id={transaction_id}, event={event_name}")

        if event_name in SUCCESS_EVENTS:
            reference = find_reference(event)
            update = self.store.apply_terminal(transaction_id, TransactionStatus.SUCCESS, reference)
        elif event_name in FAILURE_EVENTS:
            update = self.store.apply_terminal(transaction_id, TransactionStatus.FAILED)
        else:
            logger.info(f"Ignoring webhook event: transaction_id={transaction_id}, event={event_name}")
            return ReconcileOutcome.IGNORED_UNKNOWN_EVENT

        if update == TerminalUpdate.NOT_FOUND:
            logger.warning(f"Webhook for unknown transaction: transaction_id={transaction_id}, event={event_name}")
            return ReconcileOutcome.NOT_FOUND
        if update == TerminalUpdate.ALREADY_TERMINAL:
            logger.info(f"Transaction already terminal: transaction_id={transaction_id}, event={event_name}")
            return ReconcileOutcome.ALREADY_TERMINAL

        logger.info(f"Transaction updated: transaction_id={transaction_id}, event={event_name}")
        return ReconcileOutcome.UPDATED

    def get_status(self, transaction_id: str) -> TransactionStatus:
        """Raises TransactionNotFound or StoreUnavailable"""
        transaction = self.store.get(transaction_id)
        if transaction is None:
            raise TransactionNotFound(transaction_id)
        return transaction.status
