"""
Bulk ledger writer: many incomes or outcomes in one unit of work.

The whole batch is validated before anything is written. If any
item is bad the batch is rejected with one detail per failing
item and the store is left untouched. Otherwise each distinct
account is locked once and moved by the aggregated delta of its
items, and all rows are inserted in a single flush.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy.orm import Session

from cash_ledger.exceptions import PartialBatchRejected, ValidationError
from cash_ledger.models.enums import TransactionKind
from cash_ledger.schemas.transaction import TransactionCreate
from cash_ledger.services.account_service import AccountService
from cash_ledger.services.ledger_service import build_transaction

logger = logging.getLogger(__name__)


class BulkLedgerWriter:

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountService(db)

    def create_bulk(self, kind, items: list[TransactionCreate]) -> list:
        """
        Create every item or none of them.

        Returns the inserted rows in input order. Raises
        PartialBatchRejected listing every invalid item (index,
        field, code, message) when at least one fails validation.
        """
        kind = TransactionKind(kind)
        if not items:
            return []

        rows = []
        details = []
        for index, item in enumerate(items):
            try:
                rows.append(build_transaction(kind, item))
            except ValidationError as exc:
                rows.append(None)
                details.append(_detail(index, exc.field, exc.code, exc.message))

        known = self.accounts.existing_ids(
            row.account_id for row in rows if row is not None
        )
        for index, row in enumerate(rows):
            if row is not None and row.account_id not in known:
                details.append(_detail(
                    index, "account_id", "ACCOUNT_NOT_FOUND",
                    f"Cash account {row.account_id} not found",
                ))

        if details:
            details.sort(key=lambda detail: detail["index"])
            logger.warning(
                "Rejected bulk %s batch of %d: %d invalid item(s)",
                kind.value, len(items), len(details),
            )
            raise PartialBatchRejected(kind.value, details)

        deltas: dict[int, Decimal] = defaultdict(Decimal)
        for row in rows:
            deltas[row.account_id] += kind.sign * row.amount

        self.accounts.apply_deltas(dict(deltas))
        self.db.add_all(rows)
        self.db.flush()

        logger.info(
            "Created %d %s rows across %d cash account(s)",
            len(rows), kind.value, len(deltas),
        )
        return rows


def _detail(index: int, field, code: str, message: str) -> dict:
    return {"index": index, "field": field, "code": code, "message": message}
