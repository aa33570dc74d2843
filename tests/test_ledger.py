"""
Test suite for ledger module

Tests account opening, deposit/withdraw/transfer rules and the all-or-nothing
behaviour of transfers.
"""

import pytest
from decimal import Decimal

from atm_core.storage import InMemoryStorage
from atm_core.audit import AuditTrail, AuditEventType
from atm_core.ledger import Ledger, Account
from atm_core.errors import (
    InvalidAmount, InsufficientFunds, AccountNotFound, LedgerInconsistency
)


class TestAccount:
    """Test Account record"""

    def test_round_trip_through_dict(self):
        """Test balance survives storage serialization as an exact Decimal"""
        ledger = Ledger(InMemoryStorage(), AuditTrail(InMemoryStorage()))
        account = ledger.open_account("ACC-1", Decimal('10.05'))

        restored = Account.from_dict(account.to_dict())

        assert restored.balance == Decimal('10.05')
        assert isinstance(restored.balance, Decimal)

    def test_negative_balance_rejected(self):
        """Test an account can never hold a negative balance"""
        ledger = Ledger(InMemoryStorage(), AuditTrail(InMemoryStorage()))
        data = ledger.open_account("ACC-1").to_dict()
        data['balance'] = "-1"

        with pytest.raises(LedgerInconsistency):
            Account.from_dict(data)


class TestLedger:
    """Test balance mutation primitives"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.audit_trail = AuditTrail(self.storage)
        self.ledger = Ledger(self.storage, self.audit_trail)
        self.ledger.open_account("ACC-1001", Decimal('2000'))
        self.ledger.open_account("ACC-1002", Decimal('5000'))

    def test_open_account(self):
        """Test opening an account records it and audits it"""
        account = self.ledger.open_account("ACC-2000", "150.50")

        assert account.balance == Decimal('150.50')
        assert self.ledger.has_account("ACC-2000")
        events = self.audit_trail.get_events_for_entity("account", "ACC-2000")
        assert events[0].event_type == AuditEventType.ACCOUNT_OPENED

    def test_open_account_rejects_negative_and_duplicate(self):
        with pytest.raises(InvalidAmount):
            self.ledger.open_account("ACC-3000", Decimal('-5'))
        with pytest.raises(LedgerInconsistency):
            self.ledger.open_account("ACC-1001")

    def test_missing_account_is_fatal(self):
        with pytest.raises(AccountNotFound):
            self.ledger.get_balance("ACC-404")

    def test_deposit(self):
        """Test deposit adds to the balance and returns it"""
        balance = self.ledger.deposit("ACC-1001", Decimal('500'))

        assert balance == Decimal('2500')
        assert self.ledger.get_balance("ACC-1001") == Decimal('2500')

    @pytest.mark.parametrize("amount", [Decimal('0'), Decimal('-10'), "abc"])
    def test_deposit_rejects_invalid_amount(self, amount):
        with pytest.raises(InvalidAmount):
            self.ledger.deposit("ACC-1001", amount)
        assert self.ledger.get_balance("ACC-1001") == Decimal('2000')

    def test_withdraw(self):
        balance = self.ledger.withdraw("ACC-1001", Decimal('2000'))

        assert balance == Decimal('0')

    def test_withdraw_insufficient_funds(self):
        """Test overdraw is refused and the balance is untouched"""
        with pytest.raises(InsufficientFunds):
            self.ledger.withdraw("ACC-1001", Decimal('2000.01'))

        assert self.ledger.get_balance("ACC-1001") == Decimal('2000')

    def test_transfer(self):
        """Test transfer debits source and credits destination by the same amount"""
        balance = self.ledger.transfer("ACC-1001", "ACC-1002", Decimal('1000'))

        assert balance == Decimal('1000')
        assert self.ledger.get_balance("ACC-1002") == Decimal('6000')
        assert self.ledger.total_balance() == Decimal('7000')

    def test_transfer_insufficient_funds_changes_nothing(self):
        with pytest.raises(InsufficientFunds):
            self.ledger.transfer("ACC-1001", "ACC-1002", Decimal('2500'))

        assert self.ledger.get_balance("ACC-1001") == Decimal('2000')
        assert self.ledger.get_balance("ACC-1002") == Decimal('5000')

    def test_transfer_to_missing_account_changes_nothing(self):
        with pytest.raises(AccountNotFound):
            self.ledger.transfer("ACC-1001", "ACC-404", Decimal('100'))

        assert self.ledger.get_balance("ACC-1001") == Decimal('2000')

    def test_self_transfer_is_a_no_op(self):
        balance = self.ledger.transfer("ACC-1001", "ACC-1001", Decimal('300'))

        assert balance == Decimal('2000')

    def test_self_transfer_still_checks_balance(self):
        with pytest.raises(InsufficientFunds):
            self.ledger.transfer("ACC-1001", "ACC-1001", Decimal('3000'))
