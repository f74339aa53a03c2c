"""
Pydantic schemas for account operations.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from account_ledger.models.enums import AccountType


# --- Request Schemas ---

class AccountCreate(BaseModel):
    """Request to open a new account."""
    name: str = Field(max_length=255)
    account_type: AccountType
    initial_balance: Decimal = Field(default=Decimal("0.00"), decimal_places=2)


class AccountUpdate(BaseModel):
    """Partial update; only the fields that are set are applied."""
    name: str | None = Field(default=None, max_length=255)
    account_type: AccountType | None = None


class BalanceAdjustment(BaseModel):
    """Direct credit or debit of an account balance."""
    amount: Decimal = Field(decimal_places=2)


# --- Response Schemas ---

class AccountResponse(BaseModel):
    id: int
    name: str
    account_type: AccountType
    balance: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TotalBalanceResponse(BaseModel):
    total_balance: Decimal


class AccountTypeStatistics(BaseModel):
    """Count and balance sum for one account type."""
    account_type: AccountType
    count: int
    total_balance: Decimal


class AccountStatistics(BaseModel):
    total_accounts: int
    total_balance: Decimal
    accounts_by_type: list[AccountTypeStatistics]
