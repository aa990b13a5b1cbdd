"""
API routes - storefront and gateway facing
"""

from typing import Optional
from fastapi import APIRouter
from stkpay.infrastructure.settings import get_settings
from stkpay.api.v1.payments import pay_router, router as payments_router


def build_router(prefix: Optional[str] = None) -> APIRouter:
    """Payment routes mounted under API_PREFIX"""
    if prefix is None:
        prefix = get_settings().API_PREFIX
    router = APIRouter(prefix=prefix, tags=["payments"])
    router.include_router(pay_router)
    router.include_router(payments_router)
    return router
