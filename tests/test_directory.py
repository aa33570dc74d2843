"""
Test suite for directory module

Tests customer and technician lookup and exact-match authentication.
"""

import pytest

from atm_core.storage import InMemoryStorage
from atm_core.audit import AuditTrail
from atm_core.directory import Directory, Customer
from atm_core.errors import InvalidCard, LedgerInconsistency


class TestDirectory:
    """Test directory lookups and authentication"""

    def setup_method(self):
        storage = InMemoryStorage()
        self.directory = Directory(storage, AuditTrail(storage))
        self.directory.register_customer("1111222233334444", "1234", "Ali Veli", "ACC-1001")
        self.directory.register_technician("tech1", "password")

    def test_find_customer_by_card(self):
        customer = self.directory.find_customer_by_card("1111222233334444")

        assert customer is not None
        assert customer.name == "Ali Veli"
        assert customer.account_id == "ACC-1001"
        assert self.directory.find_customer_by_card("0000000000000000") is None

    def test_find_technician(self):
        assert self.directory.find_technician("tech1").username == "tech1"
        assert self.directory.find_technician("nobody") is None

    def test_is_valid_card(self):
        """Test card validity is a pure existence check"""
        assert self.directory.is_valid_card("1111222233334444")
        assert not self.directory.is_valid_card("1111")

    def test_authenticate_customer(self):
        customer = self.directory.authenticate_customer("1111222233334444", "1234")

        assert customer is not None
        assert customer.card_number == "1111222233334444"

    @pytest.mark.parametrize("card,pin", [
        ("1111222233334444", "4321"),
        ("1111222233334444", " 1234"),
        ("9999", "1234"),
    ])
    def test_authenticate_customer_failures_return_none(self, card, pin):
        assert self.directory.authenticate_customer(card, pin) is None

    def test_authenticate_technician_is_case_sensitive(self):
        assert self.directory.authenticate_technician("tech1", "password") is not None
        assert self.directory.authenticate_technician("tech1", "PASSWORD") is None
        assert self.directory.authenticate_technician("TECH1", "password") is None

    def test_change_pin(self):
        self.directory.change_pin("1111222233334444", "9999")

        assert self.directory.authenticate_customer("1111222233334444", "1234") is None
        assert self.directory.authenticate_customer("1111222233334444", "9999") is not None

    def test_change_pin_unknown_card(self):
        with pytest.raises(InvalidCard):
            self.directory.change_pin("0000", "9999")

    def test_duplicate_registration_rejected(self):
        with pytest.raises(LedgerInconsistency):
            self.directory.register_customer("1111222233334444", "0000", "Someone", "ACC-9")
        with pytest.raises(LedgerInconsistency):
            self.directory.register_technician("tech1", "other")

    def test_lookup_returns_copies(self):
        """Test mutating a returned customer does not change the stored record"""
        customer = self.directory.find_customer_by_card("1111222233334444")
        customer.pin = "0000"

        assert self.directory.authenticate_customer("1111222233334444", "1234") is not None

    def test_customer_id_must_be_card_number(self):
        from datetime import datetime, timezone
        now = datetime.now(timezone.utc)

        with pytest.raises(ValueError):
            Customer(id="X", created_at=now, updated_at=now, card_number="1234",
                     pin="1", name="N", account_id="A")
