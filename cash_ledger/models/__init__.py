"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from cash_ledger.models.base import Base
from cash_ledger.models.enums import (
    TransactionKind,
    IncomeSource,
    OutcomeCategory,
)
from cash_ledger.models.cash_account import CashAccount
from cash_ledger.models.denomination import DenominationCount
from cash_ledger.models.transaction import Income, Outcome
from cash_ledger.models.period_aggregate import PeriodAggregate

__all__ = [
    "Base",
    "TransactionKind",
    "IncomeSource",
    "OutcomeCategory",
    "CashAccount",
    "DenominationCount",
    "Income",
    "Outcome",
    "PeriodAggregate",
]
