"""
Account Ledger Module

Owns the account records and the only primitives allowed to change a
balance: deposit, withdraw and transfer. Balances are exact Decimals and can
never go negative.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, List

from .storage import StorageInterface, StorageRecord
from .audit import AuditTrail, AuditEventType
from .money import ZERO, AmountLike, exact_add, exact_sub, positive_amount, to_amount
from .errors import (
    InvalidAmount, InsufficientFunds, AccountNotFound, LedgerInconsistency
)


@dataclass
class Account(StorageRecord):
    """Bank account holding a single non-negative balance"""
    balance: Decimal

    def __post_init__(self):
        if not isinstance(self.balance, Decimal):
            self.balance = Decimal(str(self.balance))
        if self.balance < ZERO:
            raise LedgerInconsistency(f"Account {self.id} has negative balance {self.balance}")

    def covers(self, amount: Decimal) -> bool:
        """Check if the balance covers the amount"""
        return amount <= self.balance

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        data['balance'] = Decimal(data['balance'])
        return super().from_dict(data)


class Ledger:
    """
    Account store with balance mutation rules

    Callers serialize access through the owning ATM's lock; the ledger itself
    only guarantees that each operation is all-or-nothing.
    """

    def __init__(self, storage: StorageInterface, audit_trail: AuditTrail):
        self.storage = storage
        self.audit_trail = audit_trail
        self.accounts_table = "accounts"

    def open_account(self, account_id: str, opening_balance: AmountLike = ZERO) -> Account:
        """
        Create an account

        Raises:
            InvalidAmount: If the opening balance is negative
            LedgerInconsistency: If the account id is already taken
        """
        balance = to_amount(opening_balance)
        if balance < ZERO:
            raise InvalidAmount("Opening balance cannot be negative")
        if self.storage.exists(self.accounts_table, account_id):
            raise LedgerInconsistency(f"Account {account_id} already exists")

        now = datetime.now(timezone.utc)
        account = Account(id=account_id, created_at=now, updated_at=now, balance=balance)
        self._save_account(account)

        self.audit_trail.log_event(
            event_type=AuditEventType.ACCOUNT_OPENED,
            entity_type="account",
            entity_id=account_id,
            metadata={"opening_balance": balance}
        )
        return account

    def get_account(self, account_id: str) -> Account:
        """
        Get account by ID

        Raises:
            AccountNotFound: If no such account exists
        """
        data = self.storage.load(self.accounts_table, account_id)
        if not data:
            raise AccountNotFound(f"Account {account_id} not found")
        return Account.from_dict(data)

    def has_account(self, account_id: str) -> bool:
        return self.storage.exists(self.accounts_table, account_id)

    def get_balance(self, account_id: str) -> Decimal:
        return self.get_account(account_id).balance

    def list_accounts(self) -> List[Account]:
        return [Account.from_dict(data) for data in self.storage.load_all(self.accounts_table)]

    def total_balance(self) -> Decimal:
        return sum((account.balance for account in self.list_accounts()), ZERO)

    def deposit(self, account_id: str, amount: AmountLike) -> Decimal:
        """
        Credit an account

        Returns:
            Updated balance

        Raises:
            InvalidAmount: If amount is not positive or would be rounded into the balance
        """
        amount = positive_amount(amount)
        account = self.get_account(account_id)
        account.balance = exact_add(account.balance, amount)
        self._touch(account)
        return account.balance

    def withdraw(self, account_id: str, amount: AmountLike) -> Decimal:
        """
        Debit an account

        Returns:
            Updated balance

        Raises:
            InvalidAmount: If amount is not positive or would be rounded into the balance
            InsufficientFunds: If the balance does not cover the amount
        """
        amount = positive_amount(amount)
        account = self.get_account(account_id)
        if not account.covers(amount):
            raise InsufficientFunds(
                f"Insufficient funds: balance {account.balance}, requested {amount}"
            )
        account.balance = exact_sub(account.balance, amount)
        self._touch(account)
        return account.balance

    def transfer(self, from_account_id: str, to_account_id: str, amount: AmountLike) -> Decimal:
        """
        Move money between two accounts as one atomic step

        A transfer to the same account passes the same checks and leaves the
        balance unchanged.

        Returns:
            Updated balance of the source account

        Raises:
            InvalidAmount: If amount is not positive
            InsufficientFunds: If the source balance does not cover the amount
            AccountNotFound: If either account is missing
        """
        amount = positive_amount(amount)
        # Resolve the destination first so a missing account never leaves a debit behind
        self.get_account(to_account_id)

        with self.storage.atomic():
            self.withdraw(from_account_id, amount)
            self.deposit(to_account_id, amount)

        return self.get_balance(from_account_id)

    def _touch(self, account: Account) -> None:
        account.updated_at = datetime.now(timezone.utc)
        self._save_account(account)

    def _save_account(self, account: Account) -> None:
        self.storage.save(self.accounts_table, account.id, account.to_dict())
