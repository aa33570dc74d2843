"""
Pydantic schemas for API requests and responses
"""

from typing import Optional
from pydantic import BaseModel, Field


class CardCredentials(BaseModel):
    card_number: str
    pin: str


class TechnicianCredentials(BaseModel):
    username: str
    password: str


class AmountRequest(CardCredentials):
    amount: str = Field(..., description="Decimal amount as string")


class TransferRequest(AmountRequest):
    target_card: str


class ChangePinRequest(CardCredentials):
    new_pin: str
    confirm_pin: Optional[str] = None


class EmergencyRequest(BaseModel):
    type: str = Field(..., description="Stuck Card, Stolen Card or Cash Jam")
    card_number: Optional[str] = None


class SetStateRequest(TechnicianCredentials):
    state: str = Field(..., description="ATM state (active, on_maintenance, need_maintenance)")


class RefillRequest(TechnicianCredentials):
    amount: str = Field(..., description="Decimal amount as string")


class OperationResponse(BaseModel):
    success: bool
    message: str
    balance: Optional[str] = None
    state: Optional[str] = None
    cash_stock: Optional[str] = None
    name: Optional[str] = None
