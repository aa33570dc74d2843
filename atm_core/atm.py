"""
ATM Aggregate Module

One ATM instance owns its ledger, cash vault, directory, state machine and
audit trail, plus the single lock every transaction runs under. Nothing here
is a process-wide singleton: build as many independent ATMs as needed.
"""

import threading
from decimal import Decimal
from typing import Optional

from .storage import InMemoryStorage, StorageInterface
from .audit import AuditTrail
from .ledger import Ledger
from .vault import CashVault
from .directory import Directory
from .state_machine import ATMStateMachine, ATMState
from .money import AmountLike
from .config import AtmConfig, get_config
from .logging_config import get_logger


class ATM:
    """The owned aggregate passed to the transaction facade"""

    def __init__(
        self,
        atm_id: str = "ATM-001",
        initial_cash_stock: AmountLike = Decimal('0'),
        storage: Optional[StorageInterface] = None,
        initial_state: ATMState = ATMState.ACTIVE,
        enable_audit: bool = True
    ):
        self.atm_id = atm_id
        self.storage = storage or InMemoryStorage()
        self.lock = threading.RLock()

        self.audit_trail = AuditTrail(self.storage, enabled=enable_audit)
        self.ledger = Ledger(self.storage, self.audit_trail)
        self.vault = CashVault(self.storage, atm_id, initial_cash_stock)
        self.directory = Directory(self.storage, self.audit_trail)
        self.state_machine = ATMStateMachine(self.audit_trail, atm_id, initial_state)

    @property
    def state(self) -> ATMState:
        return self.state_machine.state

    @property
    def cash_stock(self) -> Decimal:
        return self.vault.stock

    def add_customer(self, card_number: str, pin: str, name: str,
                     account_id: str, opening_balance: AmountLike = Decimal('0')):
        """Open an account and register its card holder in one step"""
        with self.lock:
            self.ledger.open_account(account_id, opening_balance)
            return self.directory.register_customer(card_number, pin, name, account_id)

    def add_technician(self, username: str, password: str):
        with self.lock:
            return self.directory.register_technician(username, password)


def seed_demo_data(atm: ATM) -> ATM:
    """Load the demo customers and technician"""
    atm.add_customer("1111222233334444", "1234", "Ali Veli", "ACC-1001", Decimal('2000'))
    atm.add_customer("5555666677778888", "4321", "Ayse Fatma", "ACC-1002", Decimal('5000'))
    atm.add_technician("tech1", "password")
    return atm


def create_atm(config: Optional[AtmConfig] = None) -> ATM:
    """Build an ATM from configuration, seeding demo data when enabled"""
    config = config or get_config()
    atm = ATM(
        atm_id=config.atm_id,
        initial_cash_stock=config.initial_cash,
        enable_audit=config.enable_audit_logging
    )
    if config.seed_demo_data:
        seed_demo_data(atm)

    get_logger("atm").info(
        f"ATM {atm.atm_id} ready: state={atm.state.value}, cash_stock={atm.cash_stock}"
    )
    return atm
