"""
Account API endpoints.

The API layer is thin: it shapes requests and responses and
delegates everything else to AccountService. Ledger errors are
turned into HTTP responses by the handler registered in main.py.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from account_ledger.models.base import get_db
from account_ledger.models.enums import BalanceDirection
from account_ledger.services.account_service import AccountService
from account_ledger.schemas.account import (
    AccountCreate,
    AccountUpdate,
    AccountResponse,
    AccountStatistics,
    BalanceAdjustment,
    TotalBalanceResponse,
)

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    request: AccountCreate,
    db: Session = Depends(get_db),
):
    """Open a new account."""
    return AccountService(db).create_account(
        request.name, request.account_type, request.initial_balance
    )


@router.get("", response_model=list[AccountResponse])
def list_accounts(db: Session = Depends(get_db)):
    """List all accounts, ordered by name."""
    return AccountService(db).list_accounts()


@router.get("/statistics", response_model=AccountStatistics)
def get_account_statistics(db: Session = Depends(get_db)):
    """Account count and balance totals, overall and per type."""
    return AccountService(db).get_statistics()


@router.get("/balance", response_model=TotalBalanceResponse)
def get_total_balance(db: Session = Depends(get_db)):
    """Sum of all account balances."""
    return TotalBalanceResponse(
        total_balance=AccountService(db).get_total_balance()
    )


@router.get("/type/{account_type}", response_model=list[AccountResponse])
def get_accounts_by_type(
    account_type: str,
    db: Session = Depends(get_db),
):
    return AccountService(db).get_accounts_by_type(account_type)


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    return AccountService(db).get_account(account_id)


@router.put("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    request: AccountUpdate,
    db: Session = Depends(get_db),
):
    """Rename an account or change its type."""
    return AccountService(db).update_account(
        account_id, name=request.name, account_type=request.account_type
    )


@router.delete("/{account_id}")
def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """Delete an account. Refused while transactions reference it."""
    AccountService(db).delete_account(account_id)
    return {"deleted": True, "account_id": account_id}


@router.post("/{account_id}/credit", response_model=AccountResponse)
def credit_account(
    account_id: int,
    request: BalanceAdjustment,
    db: Session = Depends(get_db),
):
    return AccountService(db).adjust_balance(
        account_id, request.amount, BalanceDirection.CREDIT
    )


@router.post("/{account_id}/debit", response_model=AccountResponse)
def debit_account(
    account_id: int,
    request: BalanceAdjustment,
    db: Session = Depends(get_db),
):
    """Debit an account. Overdrafts are rejected."""
    return AccountService(db).adjust_balance(
        account_id, request.amount, BalanceDirection.DEBIT
    )
