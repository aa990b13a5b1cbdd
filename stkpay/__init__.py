"""
stkpay - mobile-money push payments with webhook reconciliation and status polling
"""

__version__ = "1.0.0"
