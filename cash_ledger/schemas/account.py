"""
Pydantic schemas for cash accounts and denomination counts.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, StrictInt

from cash_ledger.models.denomination import MAX_QUANTITY


# --- Cash Account Schemas ---

class CashAccountCreate(BaseModel):
    """Request to create a cash account. Balance always starts at zero."""
    name: str = Field(min_length=1, max_length=100)


class CashAccountUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class CashAccountResponse(BaseModel):
    id: int
    name: str
    balance: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountBalanceResponse(BaseModel):
    account_id: int
    name: str
    balance: Decimal


# --- Denomination Schemas ---

class DenominationCountResponse(BaseModel):
    id: int
    account_id: int
    denomination_value: Decimal
    quantity: int
    subtotal: Decimal

    model_config = {"from_attributes": True}


class CashAccountDetailResponse(CashAccountResponse):
    """Account with its physical count rows eagerly loaded."""
    denominations: list[DenominationCountResponse]


class DenominationQuantityUpdate(BaseModel):
    """Set the counted quantity for one face value."""
    denomination_value: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    # Strict: true and 2.0 are not counts. Sign is checked by the service.
    quantity: StrictInt = Field(le=MAX_QUANTITY)


class DenominationCreate(BaseModel):
    denomination_value: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
