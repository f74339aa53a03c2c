"""
Balance effects of a transaction.

The effect of a transaction is the list of signed deltas it
applies to account balances:

    DEBIT     [(source, -amount)]
    CREDIT    [(source, +amount)]
    TRANSFER  [(source, -amount), (destination, +amount)]

Reversal is the same list with every sign flipped. Creating,
amending and deleting a transaction are all expressed in terms
of these two functions, so this table is the only place the
per-type rules live.
"""

from dataclasses import dataclass
from decimal import Decimal

from account_ledger.exceptions import ValidationError
from account_ledger.models.enums import TransactionType


@dataclass(frozen=True)
class BalanceDelta:
    account_id: int
    delta: Decimal


def effect_of(
    transaction_type: TransactionType,
    amount: Decimal,
    account_id: int,
    destination_account_id: int | None = None,
) -> list[BalanceDelta]:
    if transaction_type == TransactionType.DEBIT:
        return [BalanceDelta(account_id, -amount)]
    if transaction_type == TransactionType.CREDIT:
        return [BalanceDelta(account_id, amount)]
    if transaction_type == TransactionType.TRANSFER:
        if destination_account_id is None:
            raise ValidationError("destination account required for transfers")
        return [
            BalanceDelta(account_id, -amount),
            BalanceDelta(destination_account_id, amount),
        ]
    raise ValidationError(f"Invalid transaction type '{transaction_type}'")


def effect_of_transaction(transaction) -> list[BalanceDelta]:
    """Effect of a stored Transaction row."""
    return effect_of(
        transaction.transaction_type,
        transaction.amount,
        transaction.account_id,
        transaction.destination_account_id,
    )


def invert(effect: list[BalanceDelta]) -> list[BalanceDelta]:
    """The effect that undoes `effect`, in the same order."""
    return [BalanceDelta(d.account_id, -d.delta) for d in effect]
