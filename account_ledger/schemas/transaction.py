"""
Pydantic schemas for transaction operations.

Request bodies stay permissive about dates and types; the
TransactionService parses and validates them so the same
rules apply whether a call comes over HTTP or from code.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from account_ledger.models.enums import TransactionType
from account_ledger.schemas.account import AccountResponse


# --- Request Schemas ---

class TransactionCreate(BaseModel):
    transaction_type: TransactionType
    amount: Decimal = Field(decimal_places=2)
    account_id: int
    destination_account_id: int | None = None
    description: str = ""
    transaction_date: datetime | None = None


class TransferCreate(BaseModel):
    amount: Decimal = Field(decimal_places=2)
    account_id: int
    destination_account_id: int
    description: str = ""
    transaction_date: datetime | None = None


class TransactionUpdate(BaseModel):
    """Partial update; unset fields keep their stored value."""
    transaction_type: TransactionType | None = None
    amount: Decimal | None = Field(default=None, decimal_places=2)
    description: str | None = None
    transaction_date: datetime | None = None
    destination_account_id: int | None = None


class TransactionFilters(BaseModel):
    """
    Filters for listing transactions and computing statistics.

    account_id matches the source account only. start_date and
    end_date are inclusive bounds on transaction_date and may be
    given as datetimes or ISO-8601 strings.
    """
    account_id: int | None = None
    transaction_type: TransactionType | str | None = None
    start_date: datetime | str | None = None
    end_date: datetime | str | None = None


# --- Response Schemas ---

class TransactionResponse(BaseModel):
    """A transaction with its source and destination accounts."""
    id: int
    transaction_type: TransactionType
    amount: Decimal
    description: str
    transaction_date: datetime
    account_id: int
    destination_account_id: int | None
    created_at: datetime
    updated_at: datetime
    account: AccountResponse
    destination_account: AccountResponse | None = None

    model_config = {"from_attributes": True}


class TransactionTypeTotals(BaseModel):
    count: int
    total_amount: Decimal


class TransactionStatistics(BaseModel):
    total_transactions: int
    total_amount: Decimal
    by_type: dict[TransactionType, TransactionTypeTotals]
