"""
Customer and Technician Directory Module

Maps card numbers to customers and usernames to technicians, and checks their
credentials. Credentials are compared exactly: case-sensitive, no trimming.
"""

from datetime import datetime, timezone
from dataclasses import dataclass
from typing import List, Optional

from .storage import StorageInterface, StorageRecord
from .audit import AuditTrail, AuditEventType
from .errors import InvalidCard, LedgerInconsistency


@dataclass
class Customer(StorageRecord):
    """
    Card holder. The record id is the card number.
    """
    card_number: str
    pin: str
    name: str
    account_id: str

    def __post_init__(self):
        if not self.card_number:
            raise ValueError("Card number is required")
        if self.id != self.card_number:
            raise ValueError("Customer id must be the card number")


@dataclass
class Technician(StorageRecord):
    """Maintenance technician. The record id is the username."""
    username: str
    password: str

    def __post_init__(self):
        if not self.username:
            raise ValueError("Username is required")


class Directory:
    """Lookup and authentication store for customers and technicians"""

    def __init__(self, storage: StorageInterface, audit_trail: AuditTrail):
        self.storage = storage
        self.audit_trail = audit_trail
        self.customers_table = "customers"
        self.technicians_table = "technicians"

    def register_customer(self, card_number: str, pin: str, name: str,
                          account_id: str) -> Customer:
        """Add a card holder linked to an existing ledger account"""
        if self.storage.exists(self.customers_table, card_number):
            raise LedgerInconsistency(f"Card {card_number} is already registered")

        now = datetime.now(timezone.utc)
        customer = Customer(
            id=card_number,
            created_at=now,
            updated_at=now,
            card_number=card_number,
            pin=pin,
            name=name,
            account_id=account_id
        )
        self.storage.save(self.customers_table, card_number, customer.to_dict())

        self.audit_trail.log_event(
            event_type=AuditEventType.CUSTOMER_REGISTERED,
            entity_type="customer",
            entity_id=card_number,
            metadata={"name": name, "account_id": account_id}
        )
        return customer

    def register_technician(self, username: str, password: str) -> Technician:
        if self.storage.exists(self.technicians_table, username):
            raise LedgerInconsistency(f"Technician {username} is already registered")

        now = datetime.now(timezone.utc)
        technician = Technician(
            id=username,
            created_at=now,
            updated_at=now,
            username=username,
            password=password
        )
        self.storage.save(self.technicians_table, username, technician.to_dict())

        self.audit_trail.log_event(
            event_type=AuditEventType.TECHNICIAN_REGISTERED,
            entity_type="technician",
            entity_id=username
        )
        return technician

    def find_customer_by_card(self, card_number: str) -> Optional[Customer]:
        data = self.storage.load(self.customers_table, card_number)
        if data:
            return Customer.from_dict(data)
        return None

    def find_technician(self, username: str) -> Optional[Technician]:
        data = self.storage.load(self.technicians_table, username)
        if data:
            return Technician.from_dict(data)
        return None

    def list_customers(self) -> List[Customer]:
        return [Customer.from_dict(data) for data in self.storage.load_all(self.customers_table)]

    def is_valid_card(self, card_number: str) -> bool:
        """Existence check only; says nothing about the PIN"""
        return self.storage.exists(self.customers_table, card_number)

    def authenticate_customer(self, card_number: str, pin: str) -> Optional[Customer]:
        """Return the customer when the card exists and the PIN matches exactly"""
        customer = self.find_customer_by_card(card_number)
        if customer is not None and customer.pin == pin:
            return customer
        return None

    def authenticate_technician(self, username: str, password: str) -> Optional[Technician]:
        """Return the technician when the username exists and the password matches exactly"""
        technician = self.find_technician(username)
        if technician is not None and technician.password == password:
            return technician
        return None

    def change_pin(self, card_number: str, new_pin: str) -> Customer:
        """
        Store a new PIN for the card

        Raises:
            InvalidCard: If the card is not registered
        """
        customer = self.find_customer_by_card(card_number)
        if customer is None:
            raise InvalidCard(f"Card {card_number} is not registered")

        customer.pin = new_pin
        customer.updated_at = datetime.now(timezone.utc)
        self.storage.save(self.customers_table, card_number, customer.to_dict())
        return customer
