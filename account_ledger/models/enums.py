"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored. An invalid account_type
or transaction_type is caught at the database level, not
just in Python validation.
"""

import enum


class AccountType(str, enum.Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CREDIT = "CREDIT"
    INVESTMENT = "INVESTMENT"


class TransactionType(str, enum.Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"
    TRANSFER = "TRANSFER"


class BalanceDirection(str, enum.Enum):
    """Direction of a single balance adjustment."""
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
