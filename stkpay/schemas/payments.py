"""
Payment API schemas
"""

from decimal import Decimal
from typing import Literal
from pydantic import BaseModel, Field


class PayRequest(BaseModel):
    """Push-payment initiation request"""
    phone: str = Field(..., description="Payer phone number, e.g. +254700000000")
    amount: Decimal = Field(..., description="Amount to collect")

    class Config:
        json_schema_extra = {
            "example": {
                "phone": "+254700000000",
                "amount": 100,
            }
        }


class PayResponse(BaseModel):
    """Accepted initiation"""
    success: Literal[True] = True
    transaction_id: str = Field(..., alias="transactionId", description="Gateway-issued transaction id")

    class Config:
        populate_by_name = True


class PayErrorResponse(BaseModel):
    """Failed initiation"""
    success: Literal[False] = False
    error: str = Field(..., description="Gateway message or failure reason")


class StatusResponse(BaseModel):
    """Current transaction status"""
    status: Literal["pending", "success", "failed"]


class StatusNotFoundResponse(BaseModel):
    status: Literal["unknown"] = "unknown"
    message: str = "Transaction not found"


class StatusErrorResponse(BaseModel):
    error: str = "Database error"
