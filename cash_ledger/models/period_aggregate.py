"""
Period aggregate model.

Materialized totals for one week, recomputed from the ledger
on demand. Rows are only ever written by ReportService.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Integer, DateTime, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from cash_ledger.models.base import Base


class PeriodAggregate(Base):
    __tablename__ = "period_aggregates"

    id: Mapped[int] = mapped_column(primary_key=True)
    period_id: Mapped[int] = mapped_column(
        Integer, unique=True, nullable=False
    )
    total_income: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    total_outcome: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    net_balance: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    computed_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<PeriodAggregate period={self.period_id} net={self.net_balance}>"
