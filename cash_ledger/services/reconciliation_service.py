"""
Reconciliation service: physical count against system balance.

get_reconciliation() only reports. The one write path is the
privileged resync_balance(), which replays the ledger and
overwrites stored balances.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cash_ledger.models.cash_account import CashAccount
from cash_ledger.models.transaction import Income, Outcome
from cash_ledger.money import RECONCILIATION_EPSILON, ZERO, money_sum, stored
from cash_ledger.services.account_service import AccountService
from cash_ledger.services.authorization import Authorizer

logger = logging.getLogger(__name__)

BALANCED = "balanced"
UNBALANCED = "unbalanced"

RESYNC_ACTION = "resync cash account balances"


@dataclass(frozen=True)
class ReconciliationResult:
    account_id: int
    physical_total: Decimal
    system_total: Decimal
    drift: Decimal

    @property
    def balanced(self) -> bool:
        return abs(self.drift) <= RECONCILIATION_EPSILON

    @property
    def status(self) -> str:
        return BALANCED if self.balanced else UNBALANCED


@dataclass(frozen=True)
class ResyncResult:
    account_id: int
    old_balance: Decimal
    new_balance: Decimal

    @property
    def corrected(self) -> bool:
        return self.old_balance != self.new_balance


def ledger_totals(db: Session, account_ids=None) -> dict[int, Decimal]:
    """
    Replay the ledger: sum(income) - sum(outcome) per account.

    Accounts without any transactions are absent from the result.
    """
    totals: dict[int, Decimal] = {}
    for model, sign in ((Income, 1), (Outcome, -1)):
        query = (
            select(model.account_id, func.sum(model.amount))
            .group_by(model.account_id)
        )
        if account_ids is not None:
            query = query.where(model.account_id.in_(list(account_ids)))

        for account_id, total in db.execute(query).all():
            totals[account_id] = (
                totals.get(account_id, ZERO) + sign * stored(total)
            )
    return totals


class ReconciliationService:

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountService(db)

    def get_reconciliation(self, account_id: int) -> ReconciliationResult:
        """
        Compare the counted cash with the stored balance.

        drift = physical - system. A drift within half a cent
        counts as balanced. Nothing is corrected here.
        """
        account = self.accounts.get_account(account_id, with_denominations=True)

        physical = money_sum(count.subtotal for count in account.denominations)
        system = stored(account.balance)
        result = ReconciliationResult(
            account_id=account.id,
            physical_total=physical,
            system_total=system,
            drift=physical - system,
        )

        if not result.balanced:
            logger.warning(
                "Cash account %s is unbalanced: counted %s, system %s "
                "(drift %s)",
                account.id, physical, system, result.drift,
            )
        return result

    def resync_balance(
        self, authorizer: Authorizer, account_id: int | None = None
    ) -> list[ResyncResult]:
        """
        Recompute stored balances from the ledger.

        Privileged: the authorizer must allow it. With an
        account_id only that account is resynced, otherwise all of
        them. The accounts are locked before the ledger is summed,
        so no write can slip in between the sum and the overwrite.
        Running it twice in a row changes nothing the second time.

        Must be called inside a unit of work.
        """
        authorizer.check(RESYNC_ACTION)

        if account_id is not None:
            ids = [self.accounts.get_account(account_id).id]
        else:
            ids = list(self.db.execute(
                select(CashAccount.id).order_by(CashAccount.id)
            ).scalars())

        self.accounts.lock_accounts(ids)
        totals = ledger_totals(self.db, ids)

        results = []
        for current_id in ids:
            new_balance = totals.get(current_id, ZERO)
            old_balance = self.accounts.set_balance(current_id, new_balance)
            result = ResyncResult(current_id, old_balance, new_balance)
            results.append(result)

            if result.corrected:
                logger.info(
                    "Resynced cash account %s: %s -> %s",
                    current_id, old_balance, new_balance,
                )

        logger.info("Resync checked %d cash account(s)", len(results))
        return results
