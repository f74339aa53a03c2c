"""
Transaction API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from account_ledger.models.base import get_db
from account_ledger.services.transaction_service import TransactionService
from account_ledger.schemas.transaction import (
    TransactionCreate,
    TransferCreate,
    TransactionUpdate,
    TransactionResponse,
    TransactionStatistics,
)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


def _filters(
    account_id: int | None = None,
    transaction_type: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict:
    """Query-string filters, parsed and validated by the service."""
    return {
        "account_id": account_id,
        "transaction_type": transaction_type,
        "start_date": start_date,
        "end_date": end_date,
    }


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request: TransactionCreate,
    db: Session = Depends(get_db),
):
    """Record a debit, credit or transfer and apply it to balances."""
    return TransactionService(db).create_transaction(
        request.transaction_type,
        request.amount,
        request.account_id,
        description=request.description,
        destination_account_id=request.destination_account_id,
        transaction_date=request.transaction_date,
    )


@router.post("/transfer", response_model=TransactionResponse, status_code=201)
def create_transfer(
    request: TransferCreate,
    db: Session = Depends(get_db),
):
    """Transfer money between two accounts."""
    return TransactionService(db).create_transfer(
        request.amount,
        request.account_id,
        request.destination_account_id,
        description=request.description,
        transaction_date=request.transaction_date,
    )


@router.get("", response_model=list[TransactionResponse])
def list_transactions(
    filters: dict = Depends(_filters),
    db: Session = Depends(get_db),
):
    """List transactions, newest first."""
    return TransactionService(db).get_all_transactions(filters)


@router.get("/statistics", response_model=TransactionStatistics)
def get_transaction_statistics(
    filters: dict = Depends(_filters),
    db: Session = Depends(get_db),
):
    return TransactionService(db).get_statistics(filters)


@router.get(
    "/account/{account_id}",
    response_model=list[TransactionResponse],
)
def get_transactions_by_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """Transactions where the account is the source or the destination."""
    return TransactionService(db).get_transactions_by_account(account_id)


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
):
    return TransactionService(db).get_transaction(transaction_id)


@router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    request: TransactionUpdate,
    db: Session = Depends(get_db),
):
    """
    Amend a transaction.

    The old balance effect is reversed and the new one applied
    in the same database transaction.
    """
    return TransactionService(db).update_transaction(
        transaction_id,
        transaction_type=request.transaction_type,
        amount=request.amount,
        description=request.description,
        transaction_date=request.transaction_date,
        destination_account_id=request.destination_account_id,
    )


@router.delete("/{transaction_id}")
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
):
    """Reverse a transaction's effect and remove it."""
    TransactionService(db).delete_transaction(transaction_id)
    return {"deleted": True, "transaction_id": transaction_id}
