"""
Denomination service: the physical cash count per account.

Counts are entered by hand and only ever compared with the
account balance. Nothing here writes the balance.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from cash_ledger.exceptions import (
    DenominationNotFound,
    DuplicateDenomination,
    InvalidQuantity,
)
from cash_ledger.models.denomination import (
    DENOMINATION_INTEGER_DIGITS,
    MAX_QUANTITY,
    DenominationCount,
)
from cash_ledger.money import positive_money
from cash_ledger.services.account_service import AccountService

logger = logging.getLogger(__name__)


class DenominationService:

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountService(db)

    def set_quantity(
        self, account_id: int, denomination_value, quantity
    ) -> DenominationCount:
        """
        Record how many units of one face value were counted.

        The quantity must be an integer from 0 to MAX_QUANTITY;
        booleans and floats are rejected even when they look whole.
        The face value must already exist for the account.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantity(quantity, MAX_QUANTITY)
        if not 0 <= quantity <= MAX_QUANTITY:
            raise InvalidQuantity(quantity, MAX_QUANTITY)

        value = positive_money(
            denomination_value,
            field="denomination_value",
            entity="denomination_count",
            integer_digits=DENOMINATION_INTEGER_DIGITS,
        )
        self.accounts.get_account(account_id)

        count = self.db.execute(
            select(DenominationCount)
            .where(
                DenominationCount.account_id == account_id,
                DenominationCount.denomination_value == value,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not count:
            raise DenominationNotFound(account_id, value)

        count.quantity = quantity
        self.db.flush()

        logger.info(
            "Cash account %s counted %s x %s", account_id, quantity, value
        )
        return count

    def add_denomination(
        self, account_id: int, denomination_value
    ) -> DenominationCount:
        """Add a face value outside the default set, counted as zero."""
        value = positive_money(
            denomination_value,
            field="denomination_value",
            entity="denomination_count",
            integer_digits=DENOMINATION_INTEGER_DIGITS,
        )
        self.accounts.get_account(account_id)

        if self._find(account_id, value):
            raise DuplicateDenomination(account_id, value)

        count = DenominationCount(
            account_id=account_id, denomination_value=value, quantity=0
        )
        self.db.add(count)
        self.db.flush()

        logger.info("Cash account %s now counts %s notes", account_id, value)
        return count

    def list_counts(self, account_id: int) -> list[DenominationCount]:
        self.accounts.get_account(account_id)
        counts = self.db.execute(
            select(DenominationCount)
            .where(DenominationCount.account_id == account_id)
            .order_by(DenominationCount.denomination_value.desc())
        ).scalars().all()
        return list(counts)

    def _find(self, account_id: int, value: Decimal):
        return self.db.execute(
            select(DenominationCount).where(
                DenominationCount.account_id == account_id,
                DenominationCount.denomination_value == value,
            )
        ).scalar_one_or_none()
