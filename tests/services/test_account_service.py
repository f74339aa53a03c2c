"""
Comprehensive tests for the AccountService.
"""

from decimal import Decimal

import pytest

from account_ledger.exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    InsufficientFundsError,
)
from account_ledger.models.enums import AccountType, BalanceDirection
from account_ledger.services.account_service import AccountService
from account_ledger.services.transaction_service import TransactionService


def make_account(service, name="Checking", balance="100.00",
                 account_type=AccountType.CHECKING):
    return service.create_account(name, account_type, Decimal(balance))


# --- Creation Tests ---

class TestCreateAccount:

    def test_create_account_succeeds(self, db_session):
        service = AccountService(db_session)
        account = make_account(service)

        assert account.id is not None
        assert account.name == "Checking"
        assert account.account_type == AccountType.CHECKING
        assert account.balance == Decimal("100.00")
        assert account.created_at is not None

    def test_balance_defaults_to_zero(self, db_session):
        service = AccountService(db_session)
        account = service.create_account("Savings", AccountType.SAVINGS)
        assert account.balance == Decimal("0.00")

    def test_account_type_accepts_string(self, db_session):
        service = AccountService(db_session)
        account = service.create_account("Broker", "investment")
        assert account.account_type == AccountType.INVESTMENT

    def test_name_is_trimmed(self, db_session):
        service = AccountService(db_session)
        account = service.create_account("  Wallet ", AccountType.CHECKING)
        assert account.name == "Wallet"

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name_rejected(self, db_session, name):
        service = AccountService(db_session)
        with pytest.raises(ValidationError, match="name is required"):
            service.create_account(name, AccountType.CHECKING)

    def test_invalid_type_rejected(self, db_session):
        service = AccountService(db_session)
        with pytest.raises(ValidationError, match="Invalid account type"):
            service.create_account("Checking", "PIGGY_BANK")

    def test_negative_initial_balance_rejected(self, db_session):
        service = AccountService(db_session)
        with pytest.raises(ValidationError, match="cannot be negative"):
            service.create_account("Checking", AccountType.CHECKING, "-0.01")

    def test_failed_create_writes_nothing(self, db_session):
        service = AccountService(db_session)
        with pytest.raises(ValidationError):
            service.create_account("", AccountType.CHECKING)
        assert service.list_accounts() == []


# --- Lookup and Update Tests ---

class TestGetAndUpdateAccount:

    def test_get_account(self, db_session):
        service = AccountService(db_session)
        account = make_account(service)
        assert service.get_account(account.id).id == account.id

    def test_get_nonexistent_account(self, db_session):
        service = AccountService(db_session)
        with pytest.raises(NotFoundError, match="not found"):
            service.get_account(999)

    def test_update_name_and_type(self, db_session):
        service = AccountService(db_session)
        account = make_account(service)

        updated = service.update_account(
            account.id, name="Rainy day", account_type=AccountType.SAVINGS
        )

        assert updated.name == "Rainy day"
        assert updated.account_type == AccountType.SAVINGS
        assert updated.balance == Decimal("100.00")

    def test_update_only_supplied_fields(self, db_session):
        service = AccountService(db_session)
        account = make_account(service, name="Original")

        updated = service.update_account(account.id, account_type="CREDIT")

        assert updated.name == "Original"
        assert updated.account_type == AccountType.CREDIT

    def test_update_with_blank_name_rejected(self, db_session):
        service = AccountService(db_session)
        account = make_account(service, name="Original")

        with pytest.raises(ValidationError):
            service.update_account(account.id, name="  ")

        assert service.get_account(account.id).name == "Original"

    def test_update_nonexistent_account(self, db_session):
        service = AccountService(db_session)
        with pytest.raises(NotFoundError):
            service.update_account(999, name="Ghost")

    def test_list_accounts_ordered_by_name(self, db_session):
        service = AccountService(db_session)
        make_account(service, name="Zeta")
        make_account(service, name="Alpha")

        names = [a.name for a in service.list_accounts()]
        assert names == ["Alpha", "Zeta"]

    def test_account_exists(self, db_session):
        service = AccountService(db_session)
        account = make_account(service)
        assert service.account_exists(account.id) is True
        assert service.account_exists(999) is False


# --- Balance Adjustment Tests ---

class TestAdjustBalance:

    def test_debit_reduces_balance(self, db_session):
        """Balance 100.00, debit 40.00 leaves 60.00."""
        service = AccountService(db_session)
        account = make_account(service, balance="100.00")

        updated = service.adjust_balance(
            account.id, Decimal("40.00"), BalanceDirection.DEBIT
        )

        assert updated.balance == Decimal("60.00")

    def test_credit_increases_balance(self, db_session):
        service = AccountService(db_session)
        account = make_account(service, balance="10.00")

        updated = service.adjust_balance(account.id, "5.25", "CREDIT")

        assert updated.balance == Decimal("15.25")

    def test_debit_exact_balance_leaves_zero(self, db_session):
        service = AccountService(db_session)
        account = make_account(service, balance="100.00")

        updated = service.adjust_balance(
            account.id, Decimal("100.00"), BalanceDirection.DEBIT
        )

        assert updated.balance == Decimal("0.00")

    def test_overdraft_rejected_and_balance_kept(self, db_session):
        service = AccountService(db_session)
        account = make_account(service, balance="100.00")

        with pytest.raises(InsufficientFundsError):
            service.adjust_balance(
                account.id, Decimal("100.01"), BalanceDirection.DEBIT
            )

        assert service.get_account(account.id).balance == Decimal("100.00")

    @pytest.mark.parametrize("amount", ["0", "-1.00"])
    @pytest.mark.parametrize("direction", list(BalanceDirection))
    def test_non_positive_amount_rejected(self, db_session, amount, direction):
        service = AccountService(db_session)
        account = make_account(service)

        with pytest.raises(ValidationError):
            service.adjust_balance(account.id, Decimal(amount), direction)

    @pytest.mark.parametrize("direction,expected", [
        ("credit", "105.00"),
        ("debit", "95.00"),
        (" Credit ", "105.00"),
    ])
    def test_direction_is_case_insensitive(self, db_session, direction, expected):
        service = AccountService(db_session)
        account = make_account(service)

        service.adjust_balance(account.id, "5.00", direction)

        assert service.get_account(account.id).balance == Decimal(expected)

    def test_unknown_direction_rejected(self, db_session):
        service = AccountService(db_session)
        account = make_account(service)

        with pytest.raises(ValidationError, match="Invalid balance operation"):
            service.adjust_balance(account.id, Decimal("1.00"), "REFUND")

    def test_adjust_nonexistent_account(self, db_session):
        service = AccountService(db_session)
        with pytest.raises(NotFoundError):
            service.adjust_balance(999, Decimal("1.00"), BalanceDirection.CREDIT)

    def test_adjustment_is_committed(self, db_session, session_factory):
        service = AccountService(db_session)
        account = make_account(service, balance="100.00")
        service.adjust_balance(account.id, Decimal("30.00"), "DEBIT")

        other = AccountService(session_factory())
        assert other.get_account(account.id).balance == Decimal("70.00")


# --- Deletion Tests ---

class TestDeleteAccount:

    def test_delete_unreferenced_account(self, db_session):
        service = AccountService(db_session)
        account = make_account(service)

        assert service.delete_account(account.id) is True
        assert service.account_exists(account.id) is False

    def test_delete_nonexistent_account(self, db_session):
        service = AccountService(db_session)
        with pytest.raises(NotFoundError):
            service.delete_account(999)

    def test_delete_blocked_then_allowed(self, db_session):
        """An account with a transaction cannot be deleted
        until that transaction is gone."""
        service = AccountService(db_session)
        txn_service = TransactionService(db_session)
        account = make_account(service, balance="100.00")
        txn = txn_service.create_transaction(
            "DEBIT", Decimal("10.00"), account.id
        )

        with pytest.raises(ConflictError, match="cannot be deleted"):
            service.delete_account(account.id)
        assert service.account_exists(account.id) is True

        txn_service.delete_transaction(txn.id)
        assert service.delete_account(account.id) is True

    def test_transfer_destination_blocks_delete(self, db_session):
        service = AccountService(db_session)
        source = make_account(service, name="A", balance="100.00")
        destination = make_account(service, name="B", balance="0.00")
        TransactionService(db_session).create_transfer(
            Decimal("5.00"), source.id, destination.id
        )

        with pytest.raises(ConflictError):
            service.delete_account(destination.id)


# --- Aggregate Tests ---

class TestAggregates:

    def _seed(self, service):
        make_account(service, "Main", "100.00", AccountType.CHECKING)
        make_account(service, "Bills", "50.50", AccountType.CHECKING)
        make_account(service, "Pot", "200.00", AccountType.SAVINGS)

    def test_total_balance(self, db_session):
        service = AccountService(db_session)
        self._seed(service)
        assert service.get_total_balance() == Decimal("350.50")

    def test_total_balance_empty(self, db_session):
        service = AccountService(db_session)
        assert service.get_total_balance() == Decimal("0.00")

    def test_accounts_by_type(self, db_session):
        service = AccountService(db_session)
        self._seed(service)

        checking = service.get_accounts_by_type(AccountType.CHECKING)
        assert [a.name for a in checking] == ["Bills", "Main"]
        assert service.get_accounts_by_type("CREDIT") == []

    def test_accounts_by_invalid_type(self, db_session):
        service = AccountService(db_session)
        with pytest.raises(ValidationError):
            service.get_accounts_by_type("NOPE")

    def test_statistics(self, db_session):
        service = AccountService(db_session)
        self._seed(service)

        stats = service.get_statistics()

        assert stats.total_accounts == 3
        assert stats.total_balance == Decimal("350.50")
        by_type = {s.account_type: s for s in stats.accounts_by_type}
        assert by_type[AccountType.CHECKING].count == 2
        assert by_type[AccountType.CHECKING].total_balance == Decimal("150.50")
        assert by_type[AccountType.SAVINGS].count == 1
        assert AccountType.CREDIT not in by_type
