"""
Account service: the cash account store.

Owns the durable balance of every cash account. Balances change
only through apply_delta/apply_deltas (ledger writes) and
set_balance (administrative resync), always inside the caller's
unit of work and always under a row lock taken before the read.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from cash_ledger.exceptions import AccountNotFound, DuplicateAccountName
from cash_ledger.models.base import in_unit_of_work
from cash_ledger.models.cash_account import CashAccount
from cash_ledger.models.denomination import (
    DenominationCount,
    DEFAULT_DENOMINATIONS,
)
from cash_ledger.money import ZERO, stored, to_money
from cash_ledger.schemas.account import CashAccountCreate, CashAccountUpdate

logger = logging.getLogger(__name__)


class AccountService:
    """
    Cash account operations.

    The service takes a database session as a constructor
    argument. The caller controls the transaction boundary.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_account(self, request: CashAccountCreate) -> CashAccount:
        """
        Create a cash account with a zero balance.

        The default denomination rows are written in the same unit
        of work, so an account is never visible without them.
        """
        name = request.name.strip()
        existing = self.db.execute(
            select(CashAccount).where(CashAccount.name == name)
        ).scalar_one_or_none()

        if existing:
            raise DuplicateAccountName(name)

        account = CashAccount(name=name, balance=ZERO)
        self.db.add(account)
        self.db.flush()

        self.db.add_all([
            DenominationCount(
                account_id=account.id,
                denomination_value=value,
                quantity=0,
            )
            for value in DEFAULT_DENOMINATIONS
        ])
        self.db.flush()

        logger.info("Created cash account %s (%s)", account.id, name)
        return account

    def rename_account(
        self, account_id: int, request: CashAccountUpdate
    ) -> CashAccount:
        account = self.get_account(account_id, field="id")
        name = request.name.strip()

        clash = self.db.execute(
            select(CashAccount).where(
                CashAccount.name == name, CashAccount.id != account_id
            )
        ).scalar_one_or_none()
        if clash:
            raise DuplicateAccountName(name)

        account.name = name
        self.db.flush()
        return account

    def get_account(
        self,
        account_id: int,
        with_denominations: bool = False,
        field: str = "account_id",
    ) -> CashAccount:
        """
        Get a cash account by ID.

        With with_denominations=True the physical count rows are
        loaded in the same call, for reconciliation screens.
        """
        query = select(CashAccount).where(CashAccount.id == account_id)
        if with_denominations:
            query = query.options(
                selectinload(CashAccount.denominations)
            ).execution_options(populate_existing=True)

        account = self.db.execute(query).scalar_one_or_none()
        if not account:
            raise AccountNotFound(account_id, field=field)
        return account

    def list_accounts(self) -> list[CashAccount]:
        accounts = self.db.execute(
            select(CashAccount).order_by(CashAccount.id)
        ).scalars().all()
        return list(accounts)

    def get_balance(self, account_id: int) -> Decimal:
        return stored(self.get_account(account_id).balance)

    def existing_ids(self, account_ids) -> set[int]:
        """Return which of the given ids belong to existing accounts."""
        ids = set(account_ids)
        if not ids:
            return set()
        found = self.db.execute(
            select(CashAccount.id).where(CashAccount.id.in_(ids))
        ).scalars().all()
        return set(found)

    # --- Balance mutation (only inside a unit of work) ---

    def lock_accounts(self, account_ids) -> dict[int, CashAccount]:
        """
        Lock the given account rows for the rest of the unit of work.

        Rows are locked in ascending id order so that two units of
        work touching the same accounts can never deadlock. The
        identity map is refreshed so the balances read here are the
        ones the lock protects.
        """
        ids = sorted(set(account_ids))
        if not ids:
            return {}

        accounts = self.db.execute(
            select(CashAccount)
            .where(CashAccount.id.in_(ids))
            .order_by(CashAccount.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()

        by_id = {account.id: account for account in accounts}
        missing = [account_id for account_id in ids if account_id not in by_id]
        if missing:
            raise AccountNotFound(missing[0])
        return by_id

    def apply_deltas(self, deltas: dict[int, Decimal]) -> dict[int, Decimal]:
        """
        Apply one signed delta per account and return the new balances.

        All accounts are locked first, then every new balance is
        computed from that single locked read, then written.
        """
        self._require_unit_of_work()

        locked = self.lock_accounts(deltas.keys())
        new_balances: dict[int, Decimal] = {}
        for account_id in sorted(deltas):
            account = locked[account_id]
            delta = to_money(deltas[account_id])
            new_balance = to_money(
                stored(account.balance) + delta,
                field="balance",
                entity="cash_account",
            )
            account.balance = new_balance
            new_balances[account_id] = new_balance
            logger.info(
                "Cash account %s balance %+.2f -> %s",
                account_id, delta, new_balance,
            )

        self.db.flush()
        return new_balances

    def apply_delta(self, account_id: int, delta: Decimal) -> Decimal:
        """Apply a signed delta to one account and return its new balance."""
        return self.apply_deltas({account_id: delta})[account_id]

    def set_balance(self, account_id: int, value: Decimal) -> Decimal:
        """
        Overwrite a balance. Used only by the administrative resync.

        Returns the previous balance.
        """
        self._require_unit_of_work()

        account = self.lock_accounts([account_id])[account_id]
        old_balance = stored(account.balance)
        account.balance = to_money(value, field="balance")
        self.db.flush()
        return old_balance

    def _require_unit_of_work(self) -> None:
        if not in_unit_of_work(self.db):
            raise RuntimeError(
                "Balance changes must run inside an open unit of work"
            )
