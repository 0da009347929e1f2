"""
Cash account API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cash_ledger.models.base import get_db, unit_of_work
from cash_ledger.money import stored
from cash_ledger.services.account_service import AccountService
from cash_ledger.schemas.account import (
    CashAccountCreate,
    CashAccountUpdate,
    CashAccountResponse,
    CashAccountDetailResponse,
    AccountBalanceResponse,
)

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("", response_model=CashAccountResponse, status_code=201)
def create_account(
    request: CashAccountCreate,
    db: Session = Depends(get_db),
):
    """
    Create a cash account.

    The balance starts at zero and the default denomination
    rows are created with it.
    """
    with unit_of_work(db):
        account = AccountService(db).create_account(request)
    return account


@router.get("", response_model=list[CashAccountResponse])
def list_accounts(db: Session = Depends(get_db)):
    return AccountService(db).list_accounts()


@router.get("/{account_id}", response_model=CashAccountDetailResponse)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """Get a cash account with its denomination counts."""
    return AccountService(db).get_account(
        account_id, with_denominations=True, field="id"
    )


@router.patch("/{account_id}", response_model=CashAccountResponse)
def rename_account(
    account_id: int,
    request: CashAccountUpdate,
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        account = AccountService(db).rename_account(account_id, request)
    return account


@router.get("/{account_id}/balance", response_model=AccountBalanceResponse)
def get_account_balance(
    account_id: int,
    db: Session = Depends(get_db),
):
    """Get the stored running balance of a cash account."""
    account = AccountService(db).get_account(account_id, field="id")
    return AccountBalanceResponse(
        account_id=account.id,
        name=account.name,
        balance=stored(account.balance),
    )
