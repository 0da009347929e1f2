"""
Pydantic schemas for reconciliation, resync and period reports.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel


class ReconciliationResponse(BaseModel):
    account_id: int
    physical_total: Decimal
    system_total: Decimal
    drift: Decimal
    balanced: bool
    status: str

    model_config = {"from_attributes": True}


class ResyncRequest(BaseModel):
    """Resync one account, or every account when account_id is omitted."""
    account_id: int | None = None


class ResyncResultResponse(BaseModel):
    account_id: int
    old_balance: Decimal
    new_balance: Decimal
    corrected: bool

    model_config = {"from_attributes": True}


class PeriodAggregateResponse(BaseModel):
    period_id: int
    total_income: Decimal
    total_outcome: Decimal
    net_balance: Decimal
    computed_at: datetime

    model_config = {"from_attributes": True}


class SummaryFilter(BaseModel):
    period_id: int | None = None
    start: date | None = None
    end: date | None = None


class AccountSummaryResponse(BaseModel):
    account_id: int
    name: str
    balance: Decimal
    total_income: Decimal
    total_outcome: Decimal
    net: Decimal
    incomes_by_source: dict[str, Decimal]
    outcomes_by_category: dict[str, Decimal]
    history_drift: Decimal

    model_config = {"from_attributes": True}
