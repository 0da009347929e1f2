"""
Report service: weekly aggregates and the per-account summary.

Reports only read the ledger. The one thing written here is the
materialized PeriodAggregate row, which is always recomputed
from scratch and never edited by hand.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cash_ledger.exceptions import PeriodAggregateNotFound
from cash_ledger.models.enums import TransactionKind
from cash_ledger.models.period_aggregate import PeriodAggregate
from cash_ledger.models.transaction import CATEGORY_COLUMNS, TRANSACTION_MODELS
from cash_ledger.money import ZERO, stored
from cash_ledger.services.account_service import AccountService
from cash_ledger.services.reconciliation_service import ledger_totals

logger = logging.getLogger(__name__)


@dataclass
class AccountSummary:
    account_id: int
    name: str
    balance: Decimal
    total_income: Decimal = ZERO
    total_outcome: Decimal = ZERO
    incomes_by_source: dict[str, Decimal] = field(default_factory=dict)
    outcomes_by_category: dict[str, Decimal] = field(default_factory=dict)
    history_drift: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.total_income - self.total_outcome


class ReportService:

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountService(db)

    # --- Period aggregates ---

    def compute_period_aggregate(self, period_id: int) -> PeriodAggregate:
        """
        Recompute the totals of one week and store them.

        Creates the aggregate row on first use and overwrites it
        afterwards. Weeks without transactions aggregate to zero.
        """
        total_income = self._period_total(TransactionKind.INCOME, period_id)
        total_outcome = self._period_total(TransactionKind.OUTCOME, period_id)

        aggregate = self.db.execute(
            select(PeriodAggregate)
            .where(PeriodAggregate.period_id == period_id)
            .with_for_update()
        ).scalar_one_or_none()
        if not aggregate:
            aggregate = PeriodAggregate(period_id=period_id)
            self.db.add(aggregate)

        aggregate.total_income = total_income
        aggregate.total_outcome = total_outcome
        aggregate.net_balance = total_income - total_outcome
        aggregate.computed_at = datetime.utcnow()
        self.db.flush()

        logger.info(
            "Period %s aggregated: income %s, outcome %s",
            period_id, total_income, total_outcome,
        )
        return aggregate

    def get_period_aggregate(self, period_id: int) -> PeriodAggregate:
        aggregate = self.db.execute(
            select(PeriodAggregate).where(PeriodAggregate.period_id == period_id)
        ).scalar_one_or_none()
        if not aggregate:
            raise PeriodAggregateNotFound(period_id)
        return aggregate

    def list_period_aggregates(self) -> list[PeriodAggregate]:
        aggregates = self.db.execute(
            select(PeriodAggregate).order_by(PeriodAggregate.period_id)
        ).scalars().all()
        return list(aggregates)

    # --- Account summary ---

    def account_summaries(
        self,
        period_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[AccountSummary]:
        """
        Totals and category breakdowns for every cash account.

        The filters (week, date range inclusive) narrow the totals
        only. history_drift always compares the stored balance with
        the full ledger, so a non-zero value means a resync is due.
        """
        summaries = {
            account.id: AccountSummary(
                account_id=account.id,
                name=account.name,
                balance=stored(account.balance),
            )
            for account in self.accounts.list_accounts()
        }

        for kind in TransactionKind:
            for account_id, category, total in self._breakdown(
                kind, period_id, start, end
            ):
                summary = summaries.get(account_id)
                if summary is None:
                    continue
                amount = stored(total)
                label = getattr(category, "value", category)
                if kind is TransactionKind.INCOME:
                    summary.total_income += amount
                    summary.incomes_by_source[label] = amount
                else:
                    summary.total_outcome += amount
                    summary.outcomes_by_category[label] = amount

        replayed = ledger_totals(self.db)
        for summary in summaries.values():
            summary.history_drift = (
                summary.balance - replayed.get(summary.account_id, ZERO)
            )

        return list(summaries.values())

    def _period_total(self, kind: TransactionKind, period_id: int) -> Decimal:
        model = TRANSACTION_MODELS[kind]
        total = self.db.execute(
            select(func.sum(model.amount)).where(model.period_id == period_id)
        ).scalar()
        return stored(total)

    def _breakdown(self, kind, period_id, start, end):
        model = TRANSACTION_MODELS[kind]
        category = getattr(model, CATEGORY_COLUMNS[kind])

        query = (
            select(model.account_id, category, func.sum(model.amount))
            .group_by(model.account_id, category)
        )
        if period_id is not None:
            query = query.where(model.period_id == period_id)
        if start is not None:
            query = query.where(model.date >= start)
        if end is not None:
            query = query.where(model.date <= end)

        return self.db.execute(query).all()
