"""
Account model.

An account carries its own balance. The balance is only ever
changed through credit() and debit(), which enforce the two
rules every caller relies on: amounts are strictly positive,
and a debit may not take the balance below zero.

The version column is SQLAlchemy's optimistic lock. A write
computed from a stale read fails instead of silently
overwriting a concurrent update.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy import String, DateTime, Integer, Numeric, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from account_ledger.exceptions import ValidationError, InsufficientFundsError
from account_ledger.models.base import Base, utcnow
from account_ledger.models.enums import AccountType


CENT = Decimal("0.01")


def to_money(value, field: str = "amount") -> Decimal:
    """
    Convert an incoming number to a 2-decimal Decimal.

    Floats go through str() so 0.1 stays 0.1. Values with more
    than two decimal places are rejected rather than rounded.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} must have at most 2 decimal places")
    return amount.quantize(CENT)


def as_money(value) -> Decimal:
    """Round a stored or aggregated number to cents."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_account_type(value) -> AccountType:
    """Resolve an AccountType from an enum member or its name."""
    if isinstance(value, AccountType):
        return value
    try:
        return AccountType(str(value).strip().upper())
    except ValueError:
        valid = ", ".join(t.value for t in AccountType)
        raise ValidationError(
            f"Invalid account type '{value}' (expected one of: {valid})"
        )


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(
        SAEnum(
            AccountType,
            name="account_type_enum",
            create_constraint=True,
        ),
        nullable=False,
        index=True,
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __mapper_args__ = {"version_id_col": version}

    def credit(self, amount: Decimal) -> None:
        """Add a strictly positive amount to the balance."""
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("amount must be greater than zero")
        self.balance = self.balance + amount
        self.updated_at = utcnow()

    def debit(self, amount: Decimal) -> None:
        """Subtract a strictly positive amount, never below zero."""
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("amount must be greater than zero")
        if not self.has_sufficient_balance(amount):
            raise InsufficientFundsError(
                f"Insufficient funds in account {self.id}: "
                f"balance={self.balance}, requested={amount}"
            )
        self.balance = self.balance - amount
        self.updated_at = utcnow()

    def has_sufficient_balance(self, amount: Decimal) -> bool:
        return self.balance >= amount

    def update_name(self, name: str) -> None:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Account name is required")
        self.name = name.strip()
        self.updated_at = utcnow()

    def update_type(self, account_type) -> None:
        self.account_type = parse_account_type(account_type)
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        return (
            f"<Account {self.id} {self.name!r} "
            f"{self.account_type.value} balance={self.balance}>"
        )
