"""Business logic services."""

from account_ledger.services.account_service import AccountService
from account_ledger.services.transaction_service import TransactionService

__all__ = ["AccountService", "TransactionService"]
