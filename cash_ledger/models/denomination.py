"""
Denomination count model.

A physical tally of currency units per face value, entered by
hand during a cash count. It is compared against, but never
linked to, the account balance.
"""

from decimal import Decimal

from sqlalchemy import Integer, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cash_ledger.models.base import Base


# Numeric(10, 2) face values and a 32-bit signed INTEGER quantity
DENOMINATION_INTEGER_DIGITS = 8
MAX_QUANTITY = 2**31 - 1

# Euro notes and coins, seeded for every new cash account
DEFAULT_DENOMINATIONS: tuple[Decimal, ...] = tuple(
    Decimal(value) for value in (
        "500.00", "200.00", "100.00", "50.00", "20.00", "10.00", "5.00",
        "2.00", "1.00", "0.50", "0.20", "0.10", "0.05", "0.02", "0.01",
    )
)


class DenominationCount(Base):
    __tablename__ = "denomination_counts"
    __table_args__ = (
        UniqueConstraint(
            "account_id", "denomination_value",
            name="uq_denomination_per_account",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("cash_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    denomination_value: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False
    )
    quantity: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    @property
    def subtotal(self) -> Decimal:
        return (Decimal(self.denomination_value) * self.quantity).quantize(
            Decimal("0.01")
        )

    def __repr__(self) -> str:
        return (
            f"<DenominationCount account={self.account_id} "
            f"{self.denomination_value} x {self.quantity}>"
        )
