"""
Reconciliation and administrative resync endpoints.
"""

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from cash_ledger.config import get_settings
from cash_ledger.models.base import get_db, run_in_unit_of_work
from cash_ledger.services.authorization import Authorizer, TokenAuthorizer
from cash_ledger.services.reconciliation_service import ReconciliationService
from cash_ledger.schemas.reconciliation import (
    ReconciliationResponse,
    ResyncRequest,
    ResyncResultResponse,
)

router = APIRouter(tags=["Reconciliation"])


def get_authorizer(
    x_admin_token: str | None = Header(default=None),
) -> Authorizer:
    """Privileged routes are allowed when X-Admin-Token matches ADMIN_TOKEN."""
    return TokenAuthorizer(get_settings().ADMIN_TOKEN, x_admin_token)


@router.get(
    "/accounts/{account_id}/reconciliation",
    response_model=ReconciliationResponse,
)
def get_reconciliation(
    account_id: int,
    db: Session = Depends(get_db),
):
    """
    Compare the counted cash with the system balance.

    Reports drift = physical - system. Never corrects anything.
    """
    result = ReconciliationService(db).get_reconciliation(account_id)
    return ReconciliationResponse.model_validate(result)


@router.post("/admin/resync", response_model=list[ResyncResultResponse])
def resync_balances(
    request: ResyncRequest | None = None,
    authorizer: Authorizer = Depends(get_authorizer),
    db: Session = Depends(get_db),
):
    """
    Recompute stored balances from the ledger.

    Resyncs one account when account_id is given, all of them
    otherwise. Requires the admin token.
    """
    account_id = request.account_id if request else None
    results = run_in_unit_of_work(
        db,
        lambda s: ReconciliationService(s).resync_balance(
            authorizer, account_id=account_id
        ),
    )
    return [ResyncResultResponse.model_validate(r) for r in results]
