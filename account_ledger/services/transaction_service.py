"""
Transaction service: debits, credits and transfers.

Each mutating operation:
1. Validates all input before touching anything
2. Resolves the source (and, for transfers, destination) account
3. Applies, reverses or re-applies the balance effect through
   AccountService.adjust_balance
4. Writes the transaction row

All four steps run in one unit of work. If any step fails the
whole operation is rolled back, so a transfer can never leave
one leg applied without the other.
"""

import logging
from decimal import Decimal

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session, selectinload

from account_ledger.exceptions import ValidationError, NotFoundError
from account_ledger.models.account import to_money, as_money
from account_ledger.models.base import unit_of_work
from account_ledger.models.enums import TransactionType, BalanceDirection
from account_ledger.models.transaction import (
    Transaction,
    parse_transaction_type,
    parse_datetime,
)
from account_ledger.schemas.transaction import (
    TransactionFilters,
    TransactionStatistics,
    TransactionTypeTotals,
)
from account_ledger.services.account_service import AccountService
from account_ledger.services.balance_effect import (
    BalanceDelta,
    effect_of,
    effect_of_transaction,
    invert,
)

logger = logging.getLogger(__name__)

# Listings return each transaction with its accounts
_WITH_ACCOUNTS = (
    selectinload(Transaction.account),
    selectinload(Transaction.destination_account),
)


def _positive_amount(value) -> Decimal:
    if value is None:
        raise ValidationError("amount is required")
    amount = to_money(value)
    if amount <= 0:
        raise ValidationError("amount must be greater than zero")
    return amount


class TransactionService:

    def __init__(self, db: Session):
        self.db = db
        self.account_service = AccountService(db)

    def _validate_destination(
        self, account_id: int, destination_account_id: int | None
    ) -> int:
        if destination_account_id is None:
            raise ValidationError("destination account required for transfers")
        if destination_account_id == account_id:
            raise ValidationError("cannot transfer to the same account")
        return destination_account_id

    def _apply_deltas(self, effect: list[BalanceDelta]) -> None:
        """
        Apply signed deltas through the account directory.

        All involved rows are locked first, in id order, so the
        legs of a transfer are computed from the same snapshot.
        """
        self.account_service.lock_accounts(d.account_id for d in effect)
        for d in effect:
            if d.delta > 0:
                direction = BalanceDirection.CREDIT
            else:
                direction = BalanceDirection.DEBIT
            self.account_service.adjust_balance(
                d.account_id, abs(d.delta), direction
            )

    def create_transaction(
        self,
        transaction_type: TransactionType | str,
        amount,
        account_id: int,
        description: str | None = "",
        destination_account_id: int | None = None,
        transaction_date=None,
    ) -> Transaction:
        """
        Record a transaction and apply its balance effect.

        A destination account is required for transfers and
        ignored for debits and credits. transaction_date defaults
        to now.
        """
        transaction_type = parse_transaction_type(transaction_type)
        amount = _positive_amount(amount)
        if account_id is None:
            raise ValidationError("source account is required")
        if transaction_date is not None:
            transaction_date = parse_datetime(transaction_date)

        if transaction_type == TransactionType.TRANSFER:
            destination_account_id = self._validate_destination(
                account_id, destination_account_id
            )
        else:
            destination_account_id = None

        with unit_of_work(self.db):
            self.account_service.get_account(account_id)
            if destination_account_id is not None:
                self.account_service.get_account(destination_account_id)

            self._apply_deltas(effect_of(
                transaction_type, amount, account_id, destination_account_id
            ))

            txn = Transaction(
                transaction_type=transaction_type,
                amount=amount,
                description=description or "",
                account_id=account_id,
                destination_account_id=destination_account_id,
            )
            if transaction_date is not None:
                txn.transaction_date = transaction_date
            self.db.add(txn)
            self.db.flush()

        logger.info(
            "Created %s transaction %s of %s on account %s%s",
            transaction_type.value, txn.id, amount, account_id,
            f" -> {destination_account_id}" if destination_account_id else "",
        )
        return txn

    def create_transfer(
        self,
        amount,
        account_id: int,
        destination_account_id: int,
        description: str | None = "",
        transaction_date=None,
    ) -> Transaction:
        """Move money from one account to another."""
        return self.create_transaction(
            TransactionType.TRANSFER,
            amount,
            account_id,
            description=description,
            destination_account_id=destination_account_id,
            transaction_date=transaction_date,
        )

    def get_transaction(self, transaction_id: int) -> Transaction:
        """Get a transaction by ID."""
        txn = self.db.get(Transaction, transaction_id)
        if not txn:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return txn

    def _load_for_update(self, transaction_id: int) -> Transaction:
        """
        Re-read a transaction from storage and lock its row.

        populate_existing() replaces any copy already in the
        session, so the effect being reversed is the stored one.
        """
        txn = self.db.execute(
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not txn:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return txn

    def update_transaction(
        self,
        transaction_id: int,
        transaction_type: TransactionType | str | None = None,
        amount=None,
        description: str | None = None,
        transaction_date=None,
        destination_account_id: int | None = None,
    ) -> Transaction:
        """
        Amend a transaction.

        The stored effect is fully reversed, the edits applied,
        and the effect of the edited transaction applied afresh.
        Reverse-then-reapply handles a type change (say DEBIT to
        CREDIT) the same way as an amount change.

        Every supplied field is validated before any balance is
        touched. Switching to TRANSFER needs a destination, either
        already stored or supplied here; switching away from
        TRANSFER drops it.
        """
        with unit_of_work(self.db):
            txn = self._load_for_update(transaction_id)

            new_type = (
                parse_transaction_type(transaction_type)
                if transaction_type is not None
                else txn.transaction_type
            )
            new_amount = (
                _positive_amount(amount) if amount is not None else None
            )
            new_date = (
                parse_datetime(transaction_date)
                if transaction_date is not None
                else None
            )
            if new_type == TransactionType.TRANSFER:
                new_destination = self._validate_destination(
                    txn.account_id,
                    destination_account_id
                    if destination_account_id is not None
                    else txn.destination_account_id,
                )
                self.account_service.get_account(new_destination)
            else:
                new_destination = None

            self._apply_deltas(invert(effect_of_transaction(txn)))

            if transaction_type is not None:
                txn.update_type(new_type)
            if new_amount is not None:
                txn.update_amount(new_amount)
            if description is not None:
                txn.update_description(description)
            if new_date is not None:
                txn.update_transaction_date(new_date)
            txn.destination_account_id = new_destination

            self._apply_deltas(effect_of_transaction(txn))
            self.db.flush()

        logger.info("Updated transaction %s", transaction_id)
        return txn

    def delete_transaction(self, transaction_id: int) -> bool:
        """Reverse a transaction's balance effect and remove it."""
        with unit_of_work(self.db):
            txn = self._load_for_update(transaction_id)
            self._apply_deltas(invert(effect_of_transaction(txn)))
            self.db.delete(txn)
            self.db.flush()

        logger.info("Deleted transaction %s", transaction_id)
        return True

    def transaction_exists(self, transaction_id: int) -> bool:
        count = self.db.execute(
            select(func.count(Transaction.id))
            .where(Transaction.id == transaction_id)
        ).scalar_one()
        return count > 0

    def _filter_conditions(self, filters) -> list:
        """Translate TransactionFilters (or a plain dict) to WHERE clauses."""
        if filters is None:
            return []
        if isinstance(filters, dict):
            filters = TransactionFilters(**filters)

        conditions = []
        if filters.account_id is not None:
            conditions.append(Transaction.account_id == filters.account_id)
        if filters.transaction_type is not None:
            conditions.append(
                Transaction.transaction_type
                == parse_transaction_type(filters.transaction_type)
            )

        start = end = None
        if filters.start_date is not None:
            start = parse_datetime(filters.start_date, "start_date")
            conditions.append(Transaction.transaction_date >= start)
        if filters.end_date is not None:
            end = parse_datetime(filters.end_date, "end_date")
            conditions.append(Transaction.transaction_date <= end)
        if start is not None and end is not None and start > end:
            raise ValidationError("start_date must not be after end_date")
        return conditions

    def get_all_transactions(self, filters=None) -> list[Transaction]:
        """Transactions matching the filters, newest first."""
        conditions = self._filter_conditions(filters)
        txns = self.db.execute(
            select(Transaction)
            .options(*_WITH_ACCOUNTS)
            .where(*conditions)
            .order_by(
                Transaction.transaction_date.desc(),
                Transaction.id.desc(),
            )
        ).scalars().all()
        return list(txns)

    def get_transactions_by_account(self, account_id: int) -> list[Transaction]:
        """Transactions where the account is source or destination, newest first."""
        txns = self.db.execute(
            select(Transaction)
            .options(*_WITH_ACCOUNTS)
            .where(
                or_(
                    Transaction.account_id == account_id,
                    Transaction.destination_account_id == account_id,
                )
            )
            .order_by(
                Transaction.transaction_date.desc(),
                Transaction.id.desc(),
            )
        ).scalars().all()
        return list(txns)

    def get_statistics(self, filters=None) -> TransactionStatistics:
        """
        Count and amount totals for the filtered transactions.

        by_type always lists all three types; a type with no
        matching transactions reports zero.
        """
        conditions = self._filter_conditions(filters)
        rows = self.db.execute(
            select(
                Transaction.transaction_type,
                func.count(Transaction.id),
                func.coalesce(func.sum(Transaction.amount), 0),
            )
            .where(*conditions)
            .group_by(Transaction.transaction_type)
        ).all()

        by_type = {
            t: TransactionTypeTotals(count=0, total_amount=as_money(0))
            for t in TransactionType
        }
        for transaction_type, count, total in rows:
            by_type[transaction_type] = TransactionTypeTotals(
                count=count, total_amount=as_money(total)
            )

        return TransactionStatistics(
            total_transactions=sum(t.count for t in by_type.values()),
            total_amount=as_money(
                sum(t.total_amount for t in by_type.values())
            ),
            by_type=by_type,
        )
