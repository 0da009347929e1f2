"""
Report endpoints: weekly aggregates and the account summary.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cash_ledger.models.base import get_db, unit_of_work
from cash_ledger.services.report_service import ReportService
from cash_ledger.schemas.reconciliation import (
    AccountSummaryResponse,
    PeriodAggregateResponse,
    SummaryFilter,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post(
    "/periods/{period_id}",
    response_model=PeriodAggregateResponse,
)
def compute_period(
    period_id: int,
    db: Session = Depends(get_db),
):
    """Recompute and store the totals of one week."""
    with unit_of_work(db):
        aggregate = ReportService(db).compute_period_aggregate(period_id)
    return aggregate


@router.get(
    "/periods/{period_id}",
    response_model=PeriodAggregateResponse,
)
def get_period(
    period_id: int,
    db: Session = Depends(get_db),
):
    return ReportService(db).get_period_aggregate(period_id)


@router.get("/periods", response_model=list[PeriodAggregateResponse])
def list_periods(db: Session = Depends(get_db)):
    return ReportService(db).list_period_aggregates()


@router.get("/summary", response_model=list[AccountSummaryResponse])
def account_summary(
    filters: SummaryFilter = Depends(),
    db: Session = Depends(get_db),
):
    """
    Per-account totals, breakdowns and history drift.

    period_id, start and end narrow the totals; history_drift
    always covers the full ledger.
    """
    summaries = ReportService(db).account_summaries(
        period_id=filters.period_id,
        start=filters.start,
        end=filters.end,
    )
    return [AccountSummaryResponse.model_validate(s) for s in summaries]
