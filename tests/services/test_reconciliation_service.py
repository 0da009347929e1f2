"""
Tests for the ReconciliationService.

Tests cover:
- Drift between the physical count and the system balance
- The balanced threshold
- Privileged resync: authorization, correction, idempotence
"""

import datetime
from decimal import Decimal

import pytest
from sqlalchemy import update

from cash_ledger.exceptions import AccountNotFound, NotAuthorized
from cash_ledger.models.base import unit_of_work
from cash_ledger.models.cash_account import CashAccount
from cash_ledger.models.enums import TransactionKind
from cash_ledger.services.account_service import AccountService
from cash_ledger.services.authorization import (
    AllowAll,
    DenyAll,
    TokenAuthorizer,
)
from cash_ledger.services.denomination_service import DenominationService
from cash_ledger.services.ledger_service import LedgerService
from cash_ledger.services.reconciliation_service import ReconciliationService
from cash_ledger.schemas.transaction import TransactionCreate


def add_income(db_session, account_id, amount):
    with unit_of_work(db_session):
        LedgerService(db_session).create_transaction(
            TransactionKind.INCOME,
            TransactionCreate(
                account_id=account_id,
                period_id=1,
                date=datetime.date(2024, 3, 3),
                amount=Decimal(amount),
                category="Offering",
            ),
        )


def count(db_session, account_id, value, quantity):
    with unit_of_work(db_session):
        DenominationService(db_session).set_quantity(
            account_id, Decimal(value), quantity
        )


def corrupt_balance(db_session, account_id, value):
    """Write a balance behind the ledger's back."""
    with unit_of_work(db_session):
        db_session.execute(
            update(CashAccount)
            .where(CashAccount.id == account_id)
            .values(balance=Decimal(value))
        )


class TestGetReconciliation:

    def test_counted_cash_short_of_system(self, db_session, make_account):
        account_id = make_account("General")
        add_income(db_session, account_id, "125.00")
        count(db_session, account_id, "100.00", 1)
        count(db_session, account_id, "20.00", 1)

        result = ReconciliationService(db_session).get_reconciliation(
            account_id
        )

        assert result.physical_total == Decimal("120.00")
        assert result.system_total == Decimal("125.00")
        assert result.drift == Decimal("-5.00")
        assert result.balanced is False
        assert result.status == "unbalanced"

    def test_balanced_after_count_fixed(self, db_session, make_account):
        account_id = make_account("General")
        add_income(db_session, account_id, "125.00")
        count(db_session, account_id, "100.00", 1)
        count(db_session, account_id, "20.00", 1)
        count(db_session, account_id, "5.00", 1)

        result = ReconciliationService(db_session).get_reconciliation(
            account_id
        )

        assert result.drift == Decimal("0.00")
        assert result.balanced is True
        assert result.status == "balanced"

    def test_coins_add_up_exactly(self, db_session, make_account):
        account_id = make_account("General")
        add_income(db_session, account_id, "0.30")
        count(db_session, account_id, "0.10", 3)

        result = ReconciliationService(db_session).get_reconciliation(
            account_id
        )

        assert result.physical_total == Decimal("0.30")
        assert result.balanced is True

    def test_empty_account_is_balanced(self, db_session, make_account):
        account_id = make_account("General")

        result = ReconciliationService(db_session).get_reconciliation(
            account_id
        )
        assert result.balanced is True

    def test_report_does_not_correct(self, db_session, make_account):
        account_id = make_account("General")
        add_income(db_session, account_id, "10.00")

        ReconciliationService(db_session).get_reconciliation(account_id)

        assert AccountService(db_session).get_balance(account_id) == Decimal(
            "10.00"
        )

    def test_unknown_account(self, db_session):
        with pytest.raises(AccountNotFound):
            ReconciliationService(db_session).get_reconciliation(999)


class TestResync:

    def test_requires_authorization(self, db_session, make_account):
        account_id = make_account("General")
        corrupt_balance(db_session, account_id, "99.99")

        with pytest.raises(NotAuthorized):
            with unit_of_work(db_session):
                ReconciliationService(db_session).resync_balance(DenyAll())

        assert AccountService(db_session).get_balance(account_id) == Decimal(
            "99.99"
        )

    def test_wrong_token_rejected(self, db_session):
        authorizer = TokenAuthorizer("secret", "guess")

        with pytest.raises(NotAuthorized):
            ReconciliationService(db_session).resync_balance(authorizer)

    def test_empty_admin_token_disables_resync(self, db_session):
        with pytest.raises(NotAuthorized):
            ReconciliationService(db_session).resync_balance(
                TokenAuthorizer("", "")
            )

    def test_resync_restores_ledger_balance(self, db_session, make_account):
        account_id = make_account("General")
        add_income(db_session, account_id, "40.00")
        corrupt_balance(db_session, account_id, "55.00")

        with unit_of_work(db_session):
            results = ReconciliationService(db_session).resync_balance(
                TokenAuthorizer("secret", "secret"), account_id=account_id
            )

        assert len(results) == 1
        assert results[0].old_balance == Decimal("55.00")
        assert results[0].new_balance == Decimal("40.00")
        assert results[0].corrected is True
        assert AccountService(db_session).get_balance(account_id) == Decimal(
            "40.00"
        )

    def test_resync_all_accounts(self, db_session, make_account):
        general = make_account("General")
        youth = make_account("Youth")
        add_income(db_session, general, "10.00")
        corrupt_balance(db_session, youth, "3.00")

        with unit_of_work(db_session):
            results = ReconciliationService(db_session).resync_balance(
                AllowAll()
            )

        by_id = {r.account_id: r for r in results}
        assert by_id[general].corrected is False
        assert by_id[youth].new_balance == Decimal("0.00")

    def test_resync_is_idempotent(self, db_session, make_account):
        account_id = make_account("General")
        add_income(db_session, account_id, "12.34")
        corrupt_balance(db_session, account_id, "0.00")
        service = ReconciliationService(db_session)

        with unit_of_work(db_session):
            service.resync_balance(AllowAll())
        with unit_of_work(db_session):
            second = service.resync_balance(AllowAll())

        assert [r.corrected for r in second] == [False]
        assert AccountService(db_session).get_balance(account_id) == Decimal(
            "12.34"
        )

    def test_resync_unknown_account(self, db_session):
        with pytest.raises(AccountNotFound):
            with unit_of_work(db_session):
                ReconciliationService(db_session).resync_balance(
                    AllowAll(), account_id=999
                )
