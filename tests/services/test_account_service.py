"""
Tests for the AccountService.

Tests cover:
- Account creation seeds the default denomination set
- Name uniqueness on create and rename
- Not-found errors naming the field
- Delta application under lock, only inside a unit of work
"""

from decimal import Decimal

import pytest

from cash_ledger.exceptions import (
    AccountNotFound,
    DuplicateAccountName,
    InvalidAmount,
)
from cash_ledger.models.denomination import DEFAULT_DENOMINATIONS
from cash_ledger.models.base import unit_of_work
from cash_ledger.services.account_service import AccountService
from cash_ledger.schemas.account import CashAccountCreate, CashAccountUpdate


def create(service, name="General"):
    return service.create_account(CashAccountCreate(name=name))


class TestCreateAccount:

    def test_create_account_starts_at_zero(self, db_session):
        service = AccountService(db_session)
        account = create(service)
        db_session.commit()

        assert account.id is not None
        assert account.name == "General"
        assert service.get_balance(account.id) == Decimal("0.00")

    def test_create_account_seeds_default_denominations(self, db_session):
        service = AccountService(db_session)
        account = create(service)
        db_session.commit()

        loaded = service.get_account(account.id, with_denominations=True)
        values = [Decimal(d.denomination_value) for d in loaded.denominations]

        assert values == sorted(DEFAULT_DENOMINATIONS, reverse=True)
        assert all(d.quantity == 0 for d in loaded.denominations)

    def test_name_is_stripped(self, db_session):
        service = AccountService(db_session)
        account = create(service, "  Youth  ")
        assert account.name == "Youth"

    def test_duplicate_name_rejected(self, db_session):
        service = AccountService(db_session)
        create(service)
        db_session.commit()

        with pytest.raises(DuplicateAccountName) as exc_info:
            create(service)
        assert exc_info.value.field == "name"


class TestRenameAccount:

    def test_rename_succeeds(self, db_session):
        service = AccountService(db_session)
        account = create(service)
        db_session.commit()

        service.rename_account(account.id, CashAccountUpdate(name="Main"))
        db_session.commit()

        assert service.get_account(account.id).name == "Main"

    def test_rename_to_existing_name_rejected(self, db_session):
        service = AccountService(db_session)
        create(service, "General")
        other = create(service, "Youth")
        db_session.commit()

        with pytest.raises(DuplicateAccountName):
            service.rename_account(other.id, CashAccountUpdate(name="General"))

    def test_rename_to_own_name_is_allowed(self, db_session):
        service = AccountService(db_session)
        account = create(service)
        db_session.commit()

        renamed = service.rename_account(
            account.id, CashAccountUpdate(name="General")
        )
        assert renamed.name == "General"


class TestLookups:

    def test_unknown_account_raises(self, db_session):
        service = AccountService(db_session)

        with pytest.raises(AccountNotFound) as exc_info:
            service.get_account(999)
        assert exc_info.value.entity == "cash_account"
        assert exc_info.value.field == "account_id"

    def test_list_accounts_in_id_order(self, db_session):
        service = AccountService(db_session)
        first = create(service, "General")
        second = create(service, "Youth")
        db_session.commit()

        assert [a.id for a in service.list_accounts()] == [first.id, second.id]

    def test_existing_ids(self, db_session):
        service = AccountService(db_session)
        account = create(service)
        db_session.commit()

        assert service.existing_ids([account.id, 999]) == {account.id}
        assert service.existing_ids([]) == set()


class TestApplyDelta:

    def test_apply_delta_moves_balance(self, db_session, make_account):
        account_id = make_account("General")
        service = AccountService(db_session)

        with unit_of_work(db_session):
            new_balance = service.apply_delta(account_id, Decimal("12.50"))

        assert new_balance == Decimal("12.50")
        assert service.get_balance(account_id) == Decimal("12.50")

    def test_apply_deltas_returns_every_new_balance(
        self, db_session, make_account
    ):
        general = make_account("General")
        youth = make_account("Youth")
        service = AccountService(db_session)

        with unit_of_work(db_session):
            balances = service.apply_deltas({
                youth: Decimal("-3.00"),
                general: Decimal("10.00"),
            })

        assert balances == {
            general: Decimal("10.00"),
            youth: Decimal("-3.00"),
        }

    def test_apply_delta_unknown_account(self, db_session, make_account):
        make_account("General")
        service = AccountService(db_session)

        with pytest.raises(AccountNotFound):
            with unit_of_work(db_session):
                service.apply_delta(999, Decimal("1.00"))

    def test_apply_delta_outside_unit_of_work_rejected(self, db_session):
        service = AccountService(db_session)

        with pytest.raises(RuntimeError, match="unit of work"):
            service.apply_delta(1, Decimal("1.00"))

    def test_open_read_transaction_is_not_a_unit_of_work(
        self, db_session, make_account
    ):
        account_id = make_account("General")
        service = AccountService(db_session)
        service.get_balance(account_id)
        assert db_session.in_transaction()

        with pytest.raises(RuntimeError, match="unit of work"):
            service.apply_delta(account_id, Decimal("1.00"))

        db_session.rollback()
        assert service.get_balance(account_id) == Decimal("0.00")

    def test_unit_of_work_flag_cleared_on_exit(self, db_session, make_account):
        account_id = make_account("General")
        service = AccountService(db_session)

        with pytest.raises(AccountNotFound):
            with unit_of_work(db_session):
                service.apply_delta(999, Decimal("1.00"))

        with pytest.raises(RuntimeError):
            service.apply_delta(account_id, Decimal("1.00"))

    def test_balance_beyond_column_rejected(self, db_session, make_account):
        account_id = make_account("General")
        service = AccountService(db_session)
        with unit_of_work(db_session):
            service.apply_delta(account_id, Decimal("9999999999999.99"))

        with pytest.raises(InvalidAmount) as exc_info:
            with unit_of_work(db_session):
                service.apply_delta(account_id, Decimal("0.01"))

        assert exc_info.value.field == "balance"
        assert exc_info.value.entity == "cash_account"
        assert service.get_balance(account_id) == Decimal("9999999999999.99")

    def test_set_balance_returns_previous(self, db_session, make_account):
        account_id = make_account("General")
        service = AccountService(db_session)

        with unit_of_work(db_session):
            service.apply_delta(account_id, Decimal("5.00"))
        with unit_of_work(db_session):
            old = service.set_balance(account_id, Decimal("7.25"))

        assert old == Decimal("5.00")
        assert service.get_balance(account_id) == Decimal("7.25")
