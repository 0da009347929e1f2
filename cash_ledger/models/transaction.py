"""
Income and outcome models.

Both kinds share one shape: a dated, positive amount against a
cash account, tagged with an opaque period (week) id and a
category from a closed enumeration. Income adds money to the
account, outcome takes it away. The sign lives in
TransactionKind, never in the stored amount.
"""

import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Date, Integer, Numeric, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from cash_ledger.models.base import Base
from cash_ledger.models.enums import (
    IncomeSource,
    OutcomeCategory,
    TransactionKind,
)


class LedgerRowMixin:
    """Columns common to incomes and outcomes."""

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("cash_accounts.id"), nullable=False, index=True
    )
    # Week reference; existence is checked outside the ledger
    period_id: Mapped[int] = mapped_column(
        Integer, nullable=False, index=True
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False
    )
    description: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )


class Income(LedgerRowMixin, Base):
    __tablename__ = "incomes"

    kind = TransactionKind.INCOME

    source: Mapped[IncomeSource] = mapped_column(
        SAEnum(
            IncomeSource,
            name="income_source_enum",
            values_callable=lambda e: [m.value for m in e],
            create_constraint=True,
        ),
        nullable=False,
    )
    # Person who gave the money (required for tithes)
    counterparty_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True, index=True
    )

    @property
    def category(self) -> IncomeSource:
        return self.source

    def __repr__(self) -> str:
        return f"<Income {self.source.value} {self.amount} -> {self.account_id}>"


class Outcome(LedgerRowMixin, Base):
    __tablename__ = "outcomes"

    kind = TransactionKind.OUTCOME

    category: Mapped[OutcomeCategory] = mapped_column(
        SAEnum(
            OutcomeCategory,
            name="outcome_category_enum",
            values_callable=lambda e: [m.value for m in e],
            create_constraint=True,
        ),
        nullable=False,
    )

    @property
    def counterparty_id(self) -> None:
        return None

    def __repr__(self) -> str:
        return (
            f"<Outcome {self.category.value} {self.amount} <- {self.account_id}>"
        )


TRANSACTION_MODELS: dict[TransactionKind, type] = {
    TransactionKind.INCOME: Income,
    TransactionKind.OUTCOME: Outcome,
}

# Column holding the category for each kind
CATEGORY_COLUMNS: dict[TransactionKind, str] = {
    TransactionKind.INCOME: "source",
    TransactionKind.OUTCOME: "category",
}
