"""
Cash account model.

A cash account ("caja") is a named pool of money with a running
balance. The balance is only ever written by the ledger services
(incremental deltas) and by the administrative resync. It always
equals the sum of its incomes minus the sum of its outcomes.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cash_ledger.models.base import Base


class CashAccount(Base):
    __tablename__ = "cash_accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    # One-way: count rows refer to the account by id only
    denominations: Mapped[list["DenominationCount"]] = relationship(
        order_by="DenominationCount.denomination_value.desc()",
        viewonly=True,
    )

    def __repr__(self) -> str:
        return f"<CashAccount {self.name} ({self.balance})>"
