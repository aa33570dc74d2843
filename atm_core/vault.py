"""
Cash Vault Module

Tracks the physical cash held inside the machine. The stock is shared by every
customer of the ATM and is independent of any account balance: it moves with
deposits and withdrawals, never with transfers.
"""

from decimal import Decimal
from datetime import datetime, timezone

from .storage import StorageInterface
from .money import ZERO, AmountLike, exact_add, exact_sub, positive_amount, to_amount
from .errors import InvalidAmount, InsufficientCash, LedgerInconsistency


class CashVault:
    """Physical cash counter for one ATM"""

    def __init__(self, storage: StorageInterface, vault_id: str,
                 initial_stock: AmountLike = ZERO):
        self.storage = storage
        self.vault_id = vault_id
        self.table_name = "cash_vault"

        stock = to_amount(initial_stock)
        if stock < ZERO:
            raise InvalidAmount("Initial cash stock cannot be negative")
        self._save(stock)

    @property
    def stock(self) -> Decimal:
        data = self.storage.load(self.table_name, self.vault_id)
        if not data:
            raise LedgerInconsistency(f"Cash vault {self.vault_id} has no record")
        return Decimal(data['stock'])

    def can_dispense(self, amount: AmountLike) -> bool:
        return self.stock >= to_amount(amount)

    def record_deposit(self, amount: AmountLike) -> Decimal:
        """Cash entered the machine"""
        amount = positive_amount(amount)
        stock = exact_add(self.stock, amount)
        self._save(stock)
        return stock

    def record_withdrawal(self, amount: AmountLike) -> Decimal:
        """
        Cash left the machine

        Raises:
            InsufficientCash: If the stock does not cover the amount
        """
        amount = positive_amount(amount)
        stock = self.stock
        if stock < amount:
            raise InsufficientCash(
                f"ATM does not have enough cash: stock {stock}, requested {amount}"
            )
        stock = exact_sub(stock, amount)
        self._save(stock)
        return stock

    def refill(self, amount: AmountLike) -> Decimal:
        """Technician loaded cash into the machine"""
        return self.record_deposit(amount)

    def _save(self, stock: Decimal) -> None:
        self.storage.save(self.table_name, self.vault_id, {
            "id": self.vault_id,
            "stock": str(stock),
            "updated_at": datetime.now(timezone.utc).isoformat()
        })
