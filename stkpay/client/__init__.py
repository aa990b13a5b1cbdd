"""
Storefront client - initiates a payment and polls until it settles
"""

from stkpay.client.api_client import CheckoutApiClient, CheckoutApiError
from stkpay.client.poller import CheckoutState, PaymentPoller

__all__ = [
    "CheckoutApiClient",
    "CheckoutApiError",
    "CheckoutState",
    "PaymentPoller",
]
