"""
Database models package.

All models must be imported here so that they are registered
on Base.metadata before init_db() creates the tables.
"""

from account_ledger.models.base import Base
from account_ledger.models.enums import (
    AccountType,
    TransactionType,
    BalanceDirection,
)
from account_ledger.models.account import Account
from account_ledger.models.transaction import Transaction

__all__ = [
    "Base",
    "AccountType",
    "TransactionType",
    "BalanceDirection",
    "Account",
    "Transaction",
]
