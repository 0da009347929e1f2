"""
Denomination count API endpoints.

These record the physical cash count. They never change the
account balance; compare the two through /reconciliation.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cash_ledger.models.base import get_db, unit_of_work
from cash_ledger.services.denomination_service import DenominationService
from cash_ledger.schemas.account import (
    DenominationCountResponse,
    DenominationCreate,
    DenominationQuantityUpdate,
)

router = APIRouter(
    prefix="/accounts/{account_id}/denominations",
    tags=["Denominations"],
)


@router.get("", response_model=list[DenominationCountResponse])
def list_denominations(
    account_id: int,
    db: Session = Depends(get_db),
):
    """List the counted quantities, highest face value first."""
    return DenominationService(db).list_counts(account_id)


@router.put("", response_model=DenominationCountResponse)
def set_quantity(
    account_id: int,
    request: DenominationQuantityUpdate,
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        count = DenominationService(db).set_quantity(
            account_id, request.denomination_value, request.quantity
        )
    return count


@router.post("", response_model=DenominationCountResponse, status_code=201)
def add_denomination(
    account_id: int,
    request: DenominationCreate,
    db: Session = Depends(get_db),
):
    """Start counting a face value that is not in the default set."""
    with unit_of_work(db):
        count = DenominationService(db).add_denomination(
            account_id, request.denomination_value
        )
    return count
