"""
Transaction store - persistence of PaymentTransaction rows

All database errors leave this module as StoreUnavailable (or
DuplicateTransaction for a unique-key clash) so callers never see
SQLAlchemy exceptions.
"""

import enum
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from stkpay.core.transactions.models import PaymentTransaction, TransactionStatus
from stkpay.services.exceptions import DuplicateTransaction, StoreUnavailable

logger = logging.getLogger(__name__)


class TerminalUpdate(str, enum.Enum):
    """Result of a guarded terminal write"""
    UPDATED = "updated"
    ALREADY_TERMINAL = "already_terminal"
    NOT_FOUND = "not_found"


class TransactionStore:
    """Repository over a single SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def create_pending(self, transaction_id: str, phone: str, amount: Decimal) -> PaymentTransaction:
        """Insert a new PENDING transaction and commit"""
        transaction = PaymentTransaction(
            transaction_id=transaction_id,
            phone=phone,
            amount=amount,
            status=TransactionStatus.PENDING,
        )
        try:
            self.db.add(transaction)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Duplicate transaction insert: transaction_id={transaction_id}, error={e}")
            raise DuplicateTransaction(transaction_id) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailable(details={"operation": "create", "error": str(e)}) from e
        return transaction

    def get(self, transaction_id: str) -> Optional[PaymentTransaction]:
        try:
            return self.db.execute(
                select(PaymentTransaction).where(PaymentTransaction.transaction_id == transaction_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailable(details={"operation": "get", "error": str(e)}) from e

    def apply_terminal(
        self,
        transaction_id: str,
        status: TransactionStatus,
        gateway_reference: Optional[str] = None,
    ) -> TerminalUpdate:
        """
        Move a PENDING transaction to a terminal status.

        The write is a single UPDATE guarded by ``status = PENDING``, so the
        first terminal event wins and later ones are no-ops.
        """
        if not status.is_terminal:
            raise ValueError(f"{status} is not a terminal status")

        values = {"status": status}
        if status == TransactionStatus.SUCCESS:
            values["gateway_reference"] = gateway_reference

        try:
            result = self.db.execute(
                update(PaymentTransaction)
                .where(
                    PaymentTransaction.transaction_id == transaction_id,
                    PaymentTransaction.status == TransactionStatus.PENDING,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailable(details={"operation": "update", "error": str(e)}) from e

        if result.rowcount:
            return TerminalUpdate.UPDATED
        if self.get(transaction_id) is None:
            return TerminalUpdate.NOT_FOUND
        return TerminalUpdate.ALREADY_TERMINAL
