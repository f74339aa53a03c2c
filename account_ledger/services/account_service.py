"""
Account service: the account directory.

Creates, reads, renames and deletes accounts, and reports
aggregates over them. adjust_balance() is the single choke
point for balance changes: direct credit/debit calls and the
TransactionService both go through it, so the no-overdraft
rule is enforced in exactly one place.
"""

import logging
from decimal import Decimal

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from account_ledger.exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    InsufficientFundsError,
)
from account_ledger.models.account import (
    Account,
    to_money,
    as_money,
    parse_account_type,
)
from account_ledger.models.base import unit_of_work
from account_ledger.models.enums import AccountType, BalanceDirection
from account_ledger.models.transaction import Transaction
from account_ledger.schemas.account import (
    AccountStatistics,
    AccountTypeStatistics,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class AccountService:

    def __init__(self, db: Session):
        self.db = db

    def create_account(
        self,
        name: str,
        account_type: AccountType | str,
        initial_balance: Decimal | int | str = ZERO,
    ) -> Account:
        """
        Open a new account.

        The name is stored trimmed. The initial balance defaults
        to zero and may not be negative.
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Account name is required")
        account_type = parse_account_type(account_type)
        balance = to_money(initial_balance, field="initial_balance")
        if balance < 0:
            raise ValidationError("initial_balance cannot be negative")

        with unit_of_work(self.db):
            account = Account(
                name=name.strip(),
                account_type=account_type,
                balance=balance,
            )
            self.db.add(account)
            self.db.flush()

        logger.info(
            "Created account %s (%s) with balance %s",
            account.id, account_type.value, balance,
        )
        return account

    def get_account(self, account_id: int) -> Account:
        """Get an account by ID."""
        account = self.db.get(Account, account_id)
        if not account:
            raise NotFoundError(f"Account {account_id} not found")
        return account

    def list_accounts(self) -> list[Account]:
        """All accounts, ordered by name."""
        accounts = self.db.execute(
            select(Account).order_by(Account.name, Account.id)
        ).scalars().all()
        return list(accounts)

    def update_account(
        self,
        account_id: int,
        name: str | None = None,
        account_type: AccountType | str | None = None,
    ) -> Account:
        """
        Rename an account and/or change its type.

        Fields left as None are not touched. A supplied name that
        is blank is rejected, not ignored.
        """
        with unit_of_work(self.db):
            account = self.get_account(account_id)
            if name is not None:
                account.update_name(name)
            if account_type is not None:
                account.update_type(account_type)
            self.db.flush()
        return account

    def delete_account(self, account_id: int) -> bool:
        """
        Delete an account that no transaction references.

        Raises ConflictError if the account is the source or the
        destination of any stored transaction.
        """
        with unit_of_work(self.db):
            account = self.get_account(account_id)

            references = self.db.execute(
                select(func.count(Transaction.id)).where(
                    or_(
                        Transaction.account_id == account_id,
                        Transaction.destination_account_id == account_id,
                    )
                )
            ).scalar_one()
            if references:
                raise ConflictError(
                    f"Account {account_id} has {references} transaction(s) "
                    f"and cannot be deleted"
                )

            self.db.delete(account)
            self.db.flush()

        logger.info("Deleted account %s", account_id)
        return True

    def lock_accounts(self, account_ids) -> dict[int, Account]:
        """
        Load accounts for update, locking rows in ascending id order.

        A consistent lock order means two transfers touching the
        same pair of accounts cannot deadlock. populate_existing()
        refreshes any copy already in the session, so the caller
        always works from the stored balance.
        """
        accounts = {}
        for account_id in sorted(set(account_ids)):
            accounts[account_id] = self._load_for_update(account_id)
        return accounts

    def adjust_balance(
        self,
        account_id: int,
        amount: Decimal | int | str,
        direction: BalanceDirection | str,
    ) -> Account:
        """
        Credit or debit an account.

        The amount must be strictly positive. A debit larger than
        the current balance raises InsufficientFundsError and
        leaves the balance untouched.
        """
        try:
            if not isinstance(direction, BalanceDirection):
                direction = BalanceDirection(str(direction).strip().upper())
        except ValueError:
            raise ValidationError(f"Invalid balance operation '{direction}'")

        with unit_of_work(self.db):
            account = self._load_for_update(account_id)
            if direction == BalanceDirection.CREDIT:
                account.credit(amount)
            else:
                try:
                    account.debit(amount)
                except InsufficientFundsError:
                    logger.warning(
                        "Rejected debit of %s from account %s (balance %s)",
                        amount, account_id, account.balance,
                    )
                    raise
            self.db.flush()
        return account

    def get_accounts_by_type(
        self, account_type: AccountType | str
    ) -> list[Account]:
        """All accounts of one type, ordered by name."""
        account_type = parse_account_type(account_type)
        accounts = self.db.execute(
            select(Account)
            .where(Account.account_type == account_type)
            .order_by(Account.name, Account.id)
        ).scalars().all()
        return list(accounts)

    def get_total_balance(self) -> Decimal:
        """Sum of every account balance."""
        total = self.db.execute(
            select(func.coalesce(func.sum(Account.balance), 0))
        ).scalar()
        return as_money(total)

    def account_exists(self, account_id: int) -> bool:
        count = self.db.execute(
            select(func.count(Account.id)).where(Account.id == account_id)
        ).scalar_one()
        return count > 0

    def get_statistics(self) -> AccountStatistics:
        """Account count and balance totals, overall and per type."""
        total_accounts = self.db.execute(
            select(func.count(Account.id))
        ).scalar_one()

        rows = self.db.execute(
            select(
                Account.account_type,
                func.count(Account.id),
                func.coalesce(func.sum(Account.balance), 0),
            )
            .group_by(Account.account_type)
            .order_by(Account.account_type)
        ).all()

        return AccountStatistics(
            total_accounts=total_accounts,
            total_balance=self.get_total_balance(),
            accounts_by_type=[
                AccountTypeStatistics(
                    account_type=account_type,
                    count=count,
                    total_balance=as_money(total),
                )
                for account_type, count, total in rows
            ],
        )

    def _load_for_update(self, account_id: int) -> Account:
        account = self.db.execute(
            select(Account)
            .where(Account.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not account:
            raise NotFoundError(f"Account {account_id} not found")
        return account
