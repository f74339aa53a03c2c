"""
Transaction model.

A transaction records one balance-affecting event: a debit or
credit against a single account, or a transfer from a source
account to a destination account. The row itself is plain
data; applying and reversing its effect on balances is the
job of the TransactionService.

Like Account, the row carries a version column, so an amend or
delete computed from a stale copy fails at flush.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, Text, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from account_ledger.exceptions import ValidationError
from account_ledger.models.account import Account, to_money
from account_ledger.models.base import Base, utcnow
from account_ledger.models.enums import TransactionType


def parse_transaction_type(value) -> TransactionType:
    """Resolve a TransactionType from an enum member or its name."""
    if isinstance(value, TransactionType):
        return value
    if value is None:
        raise ValidationError("Transaction type is required")
    try:
        return TransactionType(str(value).strip().upper())
    except ValueError:
        valid = ", ".join(t.value for t in TransactionType)
        raise ValidationError(
            f"Invalid transaction type '{value}' (expected one of: {valid})"
        )


def parse_datetime(value, field: str = "transaction_date") -> datetime:
    """
    Parse an ISO-8601 string, date or datetime into naive UTC.

    Timezone-aware values are converted to UTC first. A bare
    date means midnight of that day.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(f"{field} is not a valid date: '{value}'")
    else:
        raise ValidationError(f"{field} is not a valid date: {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    transaction_type: Mapped[TransactionType] = mapped_column(
        SAEnum(
            TransactionType,
            name="transaction_type_enum",
            create_constraint=True,
        ),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    description: Mapped[str] = mapped_column(
        Text, nullable=False, default=""
    )
    transaction_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, index=True
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    destination_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    account: Mapped["Account"] = relationship(foreign_keys=[account_id])
    destination_account: Mapped["Account | None"] = relationship(
        foreign_keys=[destination_account_id]
    )

    @staticmethod
    def is_valid_type(value) -> bool:
        try:
            parse_transaction_type(value)
        except ValidationError:
            return False
        return True

    @staticmethod
    def is_valid_amount(value) -> bool:
        try:
            return to_money(value) > 0
        except ValidationError:
            return False

    def is_debit(self) -> bool:
        return self.transaction_type == TransactionType.DEBIT

    def is_credit(self) -> bool:
        return self.transaction_type == TransactionType.CREDIT

    def is_transfer(self) -> bool:
        return self.transaction_type == TransactionType.TRANSFER

    def update_type(self, value) -> None:
        self.transaction_type = parse_transaction_type(value)
        self.updated_at = utcnow()

    def update_amount(self, value) -> None:
        amount = to_money(value)
        if amount <= 0:
            raise ValidationError("amount must be greater than zero")
        self.amount = amount
        self.updated_at = utcnow()

    def update_description(self, description: str | None) -> None:
        self.description = description or ""
        self.updated_at = utcnow()

    def update_transaction_date(self, value) -> None:
        self.transaction_date = parse_datetime(value)
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.id} {self.transaction_type.value} "
            f"{self.amount}>"
        )
