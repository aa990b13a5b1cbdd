"""
Payment transaction model - one row per push-payment prompt accepted by the gateway
"""

from sqlalchemy import Column, String, Numeric, Enum as SQLEnum
import enum
from stkpay.core.common.base_model import BaseModel


class TransactionStatus(str, enum.Enum):
    """Transaction status enum - PENDING is the only initial value"""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionStatus.SUCCESS, TransactionStatus.FAILED)


class PaymentTransaction(BaseModel):
    """
    Payment transaction keyed by the gateway-issued identifier

    - transaction_id, phone, amount are captured at creation and never change
    - status moves PENDING -> SUCCESS | FAILED once, never back
    - gateway_reference is only set together with SUCCESS
    """

    __tablename__ = "payment_transactions"

    transaction_id = Column(String(128), nullable=False, unique=True, index=True)
    phone = Column(String(32), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(
        SQLEnum(
            TransactionStatus,
            name="payment_transaction_status",
            values_callable=lambda statuses: [s.value for s in statuses],
            create_constraint=True,
        ),
        nullable=False,
        default=TransactionStatus.PENDING,
        index=True,
    )
    gateway_reference = Column(String(128), nullable=True)

    def __repr__(self) -> str:
        return f"<PaymentTransaction {self.transaction_id} {self.amount} {self.status.value if self.status else None}>"
