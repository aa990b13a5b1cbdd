"""
Payment lifecycle exceptions
"""

from typing import Any, Dict, Optional


class PaymentError(Exception):
    """Base class for payment lifecycle errors"""

    code = "PAYMENT_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidPaymentRequest(PaymentError):
    """Raised when phone is blank or amount is not positive"""

    code = "INVALID_REQUEST"


class GatewayUnavailable(PaymentError):
    """Raised when the gateway cannot be reached (network error or timeout)"""

    code = "GATEWAY_UNAVAILABLE"

    def __init__(self, message: str = "Payment gateway is unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class GatewayRejected(PaymentError):
    """Raised when the gateway answered without a usable transaction identifier"""

    code = "GATEWAY_REJECTED"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or "Failed to initiate payment.", details)


class TransactionNotFound(PaymentError):
    """Raised when no transaction matches the requested identifier"""

    code = "NOT_FOUND"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__("Transaction not found", {"transaction_id": transaction_id})


class DuplicateTransaction(PaymentError):
    """Raised when a record already exists for a gateway identifier"""

    code = "DUPLICATE_TRANSACTION"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} already exists", {"transaction_id": transaction_id})


class StoreUnavailable(PaymentError):
    """Raised when the transaction store cannot be reached"""

    code = "STORE_UNAVAILABLE"

    def __init__(self, message: str = "Database error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class MalformedEvent(PaymentError):
    """Webhook payload without a locatable transaction identifier (logged, never escalated)"""

    code = "MALFORMED_EVENT"
