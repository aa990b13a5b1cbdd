from stkpay.core.transactions.models import PaymentTransaction, TransactionStatus
from stkpay.core.transactions.store import TerminalUpdate, TransactionStore

__all__ = [
    "PaymentTransaction",
    "TransactionStatus",
    "TerminalUpdate",
    "TransactionStore",
]
