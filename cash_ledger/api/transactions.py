"""
Income and outcome API endpoints.

Both kinds expose the same routes, so the router is built once
per TransactionKind: /incomes and /outcomes.

Every money-affecting write runs as one unit of work (retried
once on a concurrency conflict) and responds with the balance of
each touched account, read back after the commit.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cash_ledger.models.base import get_db, run_in_unit_of_work
from cash_ledger.models.enums import TransactionKind
from cash_ledger.services.account_service import AccountService
from cash_ledger.services.bulk_writer import BulkLedgerWriter
from cash_ledger.services.ledger_service import LedgerService
from cash_ledger.schemas.transaction import (
    AccountBalance,
    BulkMutationResponse,
    BulkTransactionCreate,
    TransactionCreate,
    TransactionMutationResponse,
    TransactionResponse,
    TransactionUpdate,
)


def confirmed_balances(db: Session, account_ids) -> list[AccountBalance]:
    service = AccountService(db)
    return [
        AccountBalance(
            account_id=account_id,
            balance=service.get_balance(account_id),
        )
        for account_id in sorted(set(account_ids))
    ]


def build_router(kind: TransactionKind) -> APIRouter:
    router = APIRouter(prefix=f"/{kind.value}s", tags=[kind.value.capitalize()])

    @router.post("", response_model=TransactionMutationResponse, status_code=201)
    def create_transaction(
        request: TransactionCreate,
        db: Session = Depends(get_db),
    ):
        row = run_in_unit_of_work(
            db, lambda s: LedgerService(s).create_transaction(kind, request)
        )
        return TransactionMutationResponse(
            transaction=TransactionResponse.model_validate(row),
            balances=confirmed_balances(db, [row.account_id]),
        )

    @router.post(
        "/bulk", response_model=BulkMutationResponse, status_code=201
    )
    def create_bulk(
        request: BulkTransactionCreate,
        db: Session = Depends(get_db),
    ):
        """
        Create a batch atomically.

        Any invalid item rejects the whole batch (400 with one
        detail per failing item) and nothing is written.
        """
        rows = run_in_unit_of_work(
            db, lambda s: BulkLedgerWriter(s).create_bulk(kind, request.items)
        )
        return BulkMutationResponse(
            transactions=[TransactionResponse.model_validate(r) for r in rows],
            balances=confirmed_balances(db, [r.account_id for r in rows]),
        )

    @router.get("", response_model=list[TransactionResponse])
    def list_transactions(
        account_id: int | None = None,
        period_id: int | None = None,
        on_date: date | None = Query(default=None, alias="date"),
        counterparty_id: int | None = None,
        db: Session = Depends(get_db),
    ):
        return LedgerService(db).list_transactions(
            kind,
            account_id=account_id,
            period_id=period_id,
            on_date=on_date,
            counterparty_id=counterparty_id,
        )

    @router.get("/{transaction_id}", response_model=TransactionResponse)
    def get_transaction(
        transaction_id: int,
        db: Session = Depends(get_db),
    ):
        return LedgerService(db).get_transaction(kind, transaction_id)

    @router.patch(
        "/{transaction_id}", response_model=TransactionMutationResponse
    )
    def update_transaction(
        transaction_id: int,
        request: TransactionUpdate,
        db: Session = Depends(get_db),
    ):
        """
        Partially update a transaction.

        When the amount or the account changes, the balances of
        both the old and the new account are returned.
        """
        def work(s: Session):
            service = LedgerService(s)
            old_account_id = service.lock_transaction(
                kind, transaction_id
            ).account_id
            row = service.update_transaction(kind, transaction_id, request)
            return row, {old_account_id, row.account_id}

        row, touched = run_in_unit_of_work(db, work)
        return TransactionMutationResponse(
            transaction=TransactionResponse.model_validate(row),
            balances=confirmed_balances(db, touched),
        )

    @router.delete(
        "/{transaction_id}", response_model=TransactionMutationResponse
    )
    def delete_transaction(
        transaction_id: int,
        db: Session = Depends(get_db),
    ):
        """Delete a transaction and reverse its effect on the balance."""
        def work(s: Session):
            service = LedgerService(s)
            account_id = service.lock_transaction(
                kind, transaction_id
            ).account_id
            service.delete_transaction(kind, transaction_id)
            return account_id

        account_id = run_in_unit_of_work(db, work)
        return TransactionMutationResponse(
            transaction=None,
            balances=confirmed_balances(db, [account_id]),
        )

    return router


income_router = build_router(TransactionKind.INCOME)
outcome_router = build_router(TransactionKind.OUTCOME)
