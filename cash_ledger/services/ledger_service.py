"""
Ledger service: incomes and outcomes against cash accounts.

This service enforces the fundamental rules:
1. Every create, update and delete changes the owning account's
   balance in the same unit of work as the row itself
2. Categories belong to the closed enumeration of their kind
3. Amounts are positive, cent-precision Decimals
4. A tithe names the person who gave it

Income adds its amount to the account balance, outcome
subtracts it. No other service writes incomes or outcomes one
by one; BulkLedgerWriter handles batches with the same rules.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from cash_ledger.exceptions import (
    MissingCounterparty,
    TransactionNotFound,
    ValidationError,
)
from cash_ledger.models.enums import (
    IncomeSource,
    TransactionKind,
    normalize_category,
)
from cash_ledger.models.transaction import (
    CATEGORY_COLUMNS,
    TRANSACTION_MODELS,
    Income,
)
from cash_ledger.money import positive_money, stored
from cash_ledger.schemas.transaction import TransactionCreate, TransactionUpdate
from cash_ledger.services.account_service import AccountService

logger = logging.getLogger(__name__)


def check_counterparty(kind: TransactionKind, category, counterparty_id) -> None:
    """Tithes need a counterparty; outcomes never take one."""
    if kind is TransactionKind.OUTCOME:
        if counterparty_id is not None:
            raise ValidationError(
                "Outcomes do not take a counterparty_id",
                entity=kind.value,
                field="counterparty_id",
            )
        return

    if category is IncomeSource.TITHE and counterparty_id is None:
        raise MissingCounterparty(category.value)


def build_transaction(kind: TransactionKind, request: TransactionCreate):
    """
    Validate a create request and build the (unsaved) row.

    Raises a ValidationError subclass naming the offending field.
    Account existence is checked by the caller.
    """
    category = normalize_category(kind, request.category)
    amount = positive_money(request.amount, entity=kind.value)
    check_counterparty(kind, category, request.counterparty_id)

    fields = {
        "account_id": request.account_id,
        "period_id": request.period_id,
        "date": request.date,
        "amount": amount,
        "description": request.description,
        CATEGORY_COLUMNS[kind]: category,
    }
    if kind is TransactionKind.INCOME:
        fields["counterparty_id"] = request.counterparty_id

    return TRANSACTION_MODELS[kind](**fields)


class LedgerService:
    """
    Single-transaction ledger writes and reads.

    The caller owns the unit of work: run every write method
    inside unit_of_work() so the row and the balance commit or
    roll back together.
    """

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountService(db)

    def create_transaction(self, kind, request: TransactionCreate):
        """
        Record an income or outcome and move the account balance.

        Validation and the account lookup happen before anything
        is written. The account row is then locked, its balance
        moved by +amount (income) or -amount (outcome), and the
        transaction row inserted.
        """
        kind = TransactionKind(kind)
        row = build_transaction(kind, request)
        self.accounts.get_account(row.account_id)

        new_balance = self.accounts.apply_delta(
            row.account_id, kind.sign * row.amount
        )
        self.db.add(row)
        self.db.flush()

        logger.info(
            "Created %s %s of %s on cash account %s (balance %s)",
            kind.value, row.id, row.amount, row.account_id, new_balance,
        )
        return row

    def update_transaction(
        self, kind, transaction_id: int, request: TransactionUpdate
    ):
        """
        Update a transaction, correcting balances when money moves.

        If neither the amount nor the account changes only the
        descriptive fields are written. Otherwise the old effect is
        reversed and the new one applied. Both account rows are
        locked once and both new balances are computed from that
        single read, so the same-account case nets out to
        balance - old + new.
        """
        kind = TransactionKind(kind)
        row = self.lock_transaction(kind, transaction_id)

        old_account_id = row.account_id
        old_amount = stored(row.amount)

        new_account_id = (
            request.account_id if request.account_id is not None
            else old_account_id
        )
        new_amount = (
            positive_money(request.amount, entity=kind.value)
            if request.amount is not None else old_amount
        )
        category = (
            normalize_category(kind, request.category)
            if request.category is not None else row.category
        )
        counterparty_id = (
            request.counterparty_id if request.counterparty_id is not None
            else row.counterparty_id
        )
        check_counterparty(kind, category, counterparty_id)

        if new_account_id != old_account_id:
            self.accounts.get_account(new_account_id)

        if new_amount != old_amount or new_account_id != old_account_id:
            deltas: dict[int, Decimal] = defaultdict(Decimal)
            deltas[old_account_id] -= kind.sign * old_amount
            deltas[new_account_id] += kind.sign * new_amount
            self.accounts.apply_deltas(dict(deltas))

        row.account_id = new_account_id
        row.amount = new_amount
        setattr(row, CATEGORY_COLUMNS[kind], category)
        if request.period_id is not None:
            row.period_id = request.period_id
        if request.date is not None:
            row.date = request.date
        if request.description is not None:
            row.description = request.description
        if isinstance(row, Income):
            row.counterparty_id = counterparty_id

        self.db.flush()
        logger.info("Updated %s %s", kind.value, transaction_id)
        return row

    def delete_transaction(self, kind, transaction_id: int) -> None:
        """
        Remove a transaction and reverse its effect on the balance.

        Deleting an unknown (or already deleted) transaction raises
        TransactionNotFound rather than silently succeeding.
        """
        kind = TransactionKind(kind)
        row = self.lock_transaction(kind, transaction_id)
        account_id = row.account_id

        new_balance = self.accounts.apply_delta(
            account_id, -kind.sign * stored(row.amount)
        )
        self.db.delete(row)
        self.db.flush()

        logger.info(
            "Deleted %s %s from cash account %s (balance %s)",
            kind.value, transaction_id, account_id, new_balance,
        )

    def get_transaction(self, kind, transaction_id: int):
        kind = TransactionKind(kind)
        row = self.db.get(TRANSACTION_MODELS[kind], transaction_id)
        if not row:
            raise TransactionNotFound(kind.value, transaction_id)
        return row

    def list_transactions(
        self,
        kind,
        account_id: int | None = None,
        period_id: int | None = None,
        on_date: date | None = None,
        counterparty_id: int | None = None,
    ) -> list:
        """
        List transactions of one kind, oldest first.

        Filters combine: by account, by week, by day, and (incomes
        only) by counterparty, e.g. all tithes of one person.
        """
        kind = TransactionKind(kind)
        model = TRANSACTION_MODELS[kind]

        if counterparty_id is not None and kind is not TransactionKind.INCOME:
            return []

        query = select(model)
        if account_id is not None:
            query = query.where(model.account_id == account_id)
        if period_id is not None:
            query = query.where(model.period_id == period_id)
        if on_date is not None:
            query = query.where(model.date == on_date)
        if counterparty_id is not None:
            query = query.where(model.counterparty_id == counterparty_id)

        rows = self.db.execute(
            query.order_by(model.date, model.id)
        ).scalars().all()
        return list(rows)

    def lock_transaction(self, kind: TransactionKind, transaction_id: int):
        """
        Lock one transaction row for the rest of the unit of work.

        The row is re-read under the lock, so its account_id and
        amount are the values a concurrent writer can no longer move.
        """
        model = TRANSACTION_MODELS[kind]
        row = self.db.execute(
            select(model)
            .where(model.id == transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not row:
            raise TransactionNotFound(kind.value, transaction_id)
        return row
