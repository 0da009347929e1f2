"""
Pydantic schemas for income and outcome operations.

The category is accepted as a plain string: the ledger matches
it case-insensitively against the closed enumeration for the
transaction kind and reports InvalidCategory itself.
"""

import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class TransactionCreate(BaseModel):
    account_id: int
    period_id: int = Field(gt=0)
    date: datetime.date
    amount: Decimal = Field(gt=0, max_digits=15, decimal_places=2)
    category: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=255)
    counterparty_id: int | None = Field(default=None, gt=0)


class TransactionUpdate(BaseModel):
    """
    Partial update of a transaction.

    Exactly the mutable fields; None means "leave unchanged".
    """
    account_id: int | None = None
    period_id: int | None = Field(default=None, gt=0)
    date: datetime.date | None = None
    amount: Decimal | None = Field(
        default=None, gt=0, max_digits=15, decimal_places=2
    )
    category: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=255)
    counterparty_id: int | None = Field(default=None, gt=0)


class BulkTransactionCreate(BaseModel):
    items: list[TransactionCreate] = Field(min_length=1)


class TransactionResponse(BaseModel):
    id: int
    account_id: int
    period_id: int
    date: datetime.date
    amount: Decimal
    category: str
    description: str | None
    counterparty_id: int | None

    model_config = {"from_attributes": True}

    @field_validator("category", mode="before")
    @classmethod
    def category_value(cls, v):
        return getattr(v, "value", v)


class AccountBalance(BaseModel):
    account_id: int
    balance: Decimal


class TransactionMutationResponse(BaseModel):
    """
    Result of a money-affecting write.

    ``balances`` are read back after commit for every account the
    write touched, confirming the mutation was applied.
    """
    transaction: TransactionResponse | None
    balances: list[AccountBalance]


class BulkMutationResponse(BaseModel):
    transactions: list[TransactionResponse]
    balances: list[AccountBalance]
