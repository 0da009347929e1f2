"""
Shared enumerations for database models.

Python enums mapped to database enums ensure that only valid
categories are stored. Incoming category strings are matched
against these with normalize_category().
"""

import enum

from cash_ledger.exceptions import InvalidCategory


class TransactionKind(str, enum.Enum):
    """Which side of the ledger a transaction sits on."""
    INCOME = "income"
    OUTCOME = "outcome"

    @property
    def sign(self) -> int:
        return 1 if self is TransactionKind.INCOME else -1


class IncomeSource(str, enum.Enum):
    """Where an income came from."""
    TITHE = "Tithe"
    OFFERING = "Offering"
    FIRST_FRUITS = "First Fruits"
    DONATION = "Donation"
    EVENT = "Event"
    CAFETERIA = "Cafeteria"
    OTHER = "Other"


class OutcomeCategory(str, enum.Enum):
    """Expense classification."""
    FIXED = "Fixed"
    VARIABLE = "Variable"
    OTHER = "Other"


CATEGORY_ENUMS: dict[TransactionKind, type[enum.Enum]] = {
    TransactionKind.INCOME: IncomeSource,
    TransactionKind.OUTCOME: OutcomeCategory,
}


def normalize_category(kind: TransactionKind, value) -> enum.Enum:
    """
    Match a submitted category case-insensitively.

    Returns the enum member, or raises InvalidCategory. Unknown
    categories are never created on the fly.
    """
    enum_cls = CATEGORY_ENUMS[kind]
    if isinstance(value, enum_cls):
        return value

    candidate = str(value).strip().lower() if value is not None else ""
    for member in enum_cls:
        if member.value.lower() == candidate:
            return member

    raise InvalidCategory(
        kind.value, str(value), [member.value for member in enum_cls]
    )
