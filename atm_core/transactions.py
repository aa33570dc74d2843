"""
Transaction Processing Module

The facade every front end talks to. It checks the machine state, amounts and
target cards, then delegates to the ledger, cash vault, directory and state
machine of one ATM instance. Operations returning a TransactionResult report
expected failures in it; fatal failures propagate. The plain queries
(get_balance, get_atm_state, get_cash_stock) return values and raise. Each
operation runs under the ATM's lock and every monetary change is
all-or-nothing.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .atm import ATM
from .audit import AuditEventType
from .directory import Customer, Technician
from .state_machine import ATMState, EmergencyType
from .money import AmountLike, positive_amount
from .errors import (
    BusinessFailure, ValidationFailure, FatalFailure, FailureReason,
    AtmNotActive, AuthenticationFailed, InsufficientCash, InvalidCard,
    WrongOldPin, PinMismatch, NotAuthorized, MaintenanceRequired
)
from .logging_config import get_logger, log_action


@dataclass(frozen=True)
class TransactionResult:
    """
    Outcome of a facade operation

    On success ``value`` holds the operation's payload (new balance, customer,
    technician or ATM state). On failure ``failure`` names the reason.
    """
    success: bool
    value: Any = None
    failure: Optional[FailureReason] = None
    message: str = ""

    @classmethod
    def ok(cls, value: Any = None, message: str = "") -> 'TransactionResult':
        return cls(success=True, value=value, message=message)

    @classmethod
    def failed(cls, failure: FailureReason, message: str) -> 'TransactionResult':
        return cls(success=False, failure=failure, message=message)

    def __bool__(self) -> bool:
        return self.success


class TransactionProcessor:
    """
    Public operations of the ATM core
    """

    def __init__(self, atm: ATM):
        self.atm = atm
        self.logger = get_logger("atm.transactions")

    # --- Internal helpers ---

    def _run(
        self,
        action: str,
        operation: Callable[[], TransactionResult],
        user_id: Optional[str] = None,
        failure_event: Optional[AuditEventType] = AuditEventType.TRANSACTION_FAILED,
        extra: Optional[Dict[str, Any]] = None
    ) -> TransactionResult:
        """Run an operation under the ATM lock and convert expected failures to results"""
        with self.atm.lock:
            try:
                result = operation()
            except (ValidationFailure, BusinessFailure) as e:
                log_action(
                    self.logger, "warning", f"{action} failed: {e}",
                    user_id=user_id, action=action,
                    extra={**(extra or {}), "reason": e.reason.value}
                )
                if failure_event is not None:
                    self.atm.audit_trail.log_event(
                        event_type=failure_event,
                        entity_type="atm",
                        entity_id=self.atm.atm_id,
                        metadata={**(extra or {}), "action": action, "reason": e.reason},
                        user_id=user_id
                    )
                return TransactionResult.failed(e.reason, str(e))
            except FatalFailure as e:
                log_action(
                    self.logger, "error", f"{action} aborted by internal error: {e}",
                    user_id=user_id, action=action, extra=extra
                )
                raise

            log_action(
                self.logger, "info", f"{action} completed",
                user_id=user_id, action=action, extra=extra
            )
            return result

    def _require_active(self) -> None:
        if not self.atm.state_machine.is_operational():
            raise AtmNotActive("ATM not active")

    def _resolve_customer(self, customer: Customer) -> Customer:
        # Callers may hold a stale copy; the directory record is authoritative
        current = self.atm.directory.find_customer_by_card(customer.card_number)
        if current is None:
            raise InvalidCard(f"Card {customer.card_number} is not registered")
        return current

    def _require_technician(self, technician: Technician) -> Technician:
        verified = self.atm.directory.authenticate_technician(
            technician.username, technician.password
        )
        if verified is None:
            raise NotAuthorized("Technician access required")
        return verified

    # --- Authentication ---

    def authenticate_customer(self, card_number: str, pin: str) -> TransactionResult:
        """Log a card holder in; refused while the ATM is not active"""
        def operation():
            self._require_active()
            customer = self.atm.directory.authenticate_customer(card_number, pin)
            if customer is None:
                raise AuthenticationFailed("Authentication failed")
            self.atm.audit_trail.log_event(
                event_type=AuditEventType.CUSTOMER_LOGIN_SUCCESS,
                entity_type="customer",
                entity_id=customer.card_number,
                user_id=customer.card_number
            )
            return TransactionResult.ok(customer, f"Welcome, {customer.name}")

        return self._run("authenticate_customer", operation, user_id=card_number,
                         failure_event=AuditEventType.CUSTOMER_LOGIN_FAILED)

    def authenticate_technician(self, username: str, password: str) -> TransactionResult:
        def operation():
            technician = self.atm.directory.authenticate_technician(username, password)
            if technician is None:
                raise AuthenticationFailed("Access denied")
            self.atm.audit_trail.log_event(
                event_type=AuditEventType.TECHNICIAN_LOGIN_SUCCESS,
                entity_type="technician",
                entity_id=technician.username,
                user_id=technician.username
            )
            return TransactionResult.ok(technician, f"Welcome, technician {technician.username}")

        return self._run("authenticate_technician", operation, user_id=username,
                         failure_event=AuditEventType.TECHNICIAN_LOGIN_FAILED)

    # --- Monetary transactions ---

    def deposit(self, customer: Customer, amount: AmountLike) -> TransactionResult:
        """
        Credit the customer's account with cash inserted into the machine

        On success both the balance and the cash stock grow by ``amount``.
        """
        def operation():
            self._require_active()
            value = positive_amount(amount)
            current = self._resolve_customer(customer)

            with self.atm.storage.atomic():
                balance = self.atm.ledger.deposit(current.account_id, value)
                stock = self.atm.vault.record_deposit(value)
                self.atm.audit_trail.log_event(
                    event_type=AuditEventType.DEPOSIT_COMPLETED,
                    entity_type="account",
                    entity_id=current.account_id,
                    metadata={"amount": value, "balance": balance, "cash_stock": stock},
                    user_id=current.card_number
                )
            return TransactionResult.ok(balance, "Deposit successful")

        return self._run("deposit", operation, user_id=customer.card_number,
                         extra={"amount": str(amount)})

    def withdraw(self, customer: Customer, amount: AmountLike) -> TransactionResult:
        """
        Dispense cash from the customer's account

        Checks run in order: amount, cash stock, balance. On success both the
        balance and the cash stock shrink by ``amount``.
        """
        def operation():
            self._require_active()
            value = positive_amount(amount)
            current = self._resolve_customer(customer)

            if not self.atm.vault.can_dispense(value):
                raise InsufficientCash("ATM does not have enough cash for this withdrawal")

            with self.atm.storage.atomic():
                balance = self.atm.ledger.withdraw(current.account_id, value)
                stock = self.atm.vault.record_withdrawal(value)
                self.atm.audit_trail.log_event(
                    event_type=AuditEventType.WITHDRAWAL_COMPLETED,
                    entity_type="account",
                    entity_id=current.account_id,
                    metadata={"amount": value, "balance": balance, "cash_stock": stock},
                    user_id=current.card_number
                )
            return TransactionResult.ok(balance, "Please take your cash")

        return self._run("withdraw", operation, user_id=customer.card_number,
                         extra={"amount": str(amount)})

    def transfer(self, customer: Customer, target_card: str,
                 amount: AmountLike) -> TransactionResult:
        """
        Move money to the account behind another card

        The cash vault is neither checked nor changed. A transfer to the
        customer's own card is accepted and leaves the balance unchanged.
        """
        def operation():
            self._require_active()
            value = positive_amount(amount)
            target = self.atm.directory.find_customer_by_card(target_card)
            if target is None:
                raise InvalidCard("Invalid card number")
            current = self._resolve_customer(customer)

            with self.atm.storage.atomic():
                balance = self.atm.ledger.transfer(current.account_id, target.account_id, value)
                self.atm.audit_trail.log_event(
                    event_type=AuditEventType.TRANSFER_COMPLETED,
                    entity_type="account",
                    entity_id=current.account_id,
                    metadata={
                        "amount": value,
                        "to_account": target.account_id,
                        "balance": balance
                    },
                    user_id=current.card_number
                )
            return TransactionResult.ok(balance, "Transfer completed")

        return self._run("transfer", operation, user_id=customer.card_number,
                         extra={"amount": str(amount), "target_card": target_card})

    def get_balance(self, customer: Customer) -> Decimal:
        """
        Read the customer's current balance

        A plain query, not gated by the ATM state and not wrapped in a
        TransactionResult.

        Raises:
            InvalidCard: If the customer's card is no longer registered
            AccountNotFound: If the card points at a missing account
        """
        with self.atm.lock:
            current = self._resolve_customer(customer)
            return self.atm.ledger.get_balance(current.account_id)

    # --- Account management ---

    def change_pin(self, customer: Customer, old_pin: str, new_pin: str,
                   confirm_pin: Optional[str] = None) -> TransactionResult:
        """
        Replace the customer's PIN

        ``confirm_pin`` is the re-entered new PIN; when given it must match.
        """
        def operation():
            current = self._resolve_customer(customer)
            if current.pin != old_pin:
                raise WrongOldPin("Incorrect PIN")
            if confirm_pin is not None and confirm_pin != new_pin:
                raise PinMismatch("PINs do not match")

            self.atm.directory.change_pin(current.card_number, new_pin)
            self.atm.audit_trail.log_event(
                event_type=AuditEventType.PIN_CHANGED,
                entity_type="customer",
                entity_id=current.card_number,
                user_id=current.card_number
            )
            return TransactionResult.ok(None, "PIN successfully changed")

        return self._run("change_pin", operation, user_id=customer.card_number)

    def report_emergency(self, emergency_type, card_number: Optional[str] = None) -> TransactionResult:
        """
        Acknowledge an emergency report

        Stuck Card and Cash Jam take the machine out of service
        (NEED_MAINTENANCE); Stolen Card is only recorded. The result value is
        the ATM state after the report.
        """
        def operation():
            kind = EmergencyType.parse(emergency_type)
            self.atm.audit_trail.log_event(
                event_type=AuditEventType.EMERGENCY_REPORTED,
                entity_type="atm",
                entity_id=self.atm.atm_id,
                metadata={"type": kind.value, "card_number": card_number},
                user_id=card_number
            )
            state = self.atm.state_machine.report_emergency(kind, actor=card_number)
            return TransactionResult.ok(
                state, "Report received. A technician will assist you. Please be patient."
            )

        return self._run("report_emergency", operation, user_id=card_number,
                         extra={"type": str(emergency_type)})

    # --- Machine status ---

    def get_atm_state(self) -> ATMState:
        return self.atm.state_machine.state

    def get_cash_stock(self) -> Decimal:
        with self.atm.lock:
            return self.atm.vault.stock

    def self_check_ok(self) -> bool:
        with self.atm.lock:
            return self.atm.state_machine.self_check_ok()

    # --- Technician-only operations ---

    def set_atm_state(self, technician: Technician, state: ATMState) -> TransactionResult:
        def operation():
            verified = self._require_technician(technician)
            new_state = self.atm.state_machine.set_state(state, actor=verified.username)
            return TransactionResult.ok(new_state, f"ATM state changed to {new_state.name}")

        return self._run("set_atm_state", operation, user_id=technician.username,
                         extra={"state": state.value})

    def enable_maintenance(self, technician: Technician) -> TransactionResult:
        """Lock the card reader and put the machine on maintenance"""
        def operation():
            verified = self._require_technician(technician)
            new_state = self.atm.state_machine.enable_maintenance(actor=verified.username)
            return TransactionResult.ok(new_state, "ATM state changed to ON_MAINTENANCE")

        return self._run("enable_maintenance", operation, user_id=technician.username)

    def disable_maintenance(self, technician: Technician) -> TransactionResult:
        """
        Run the self-check and return the machine to service

        A failed self-check is still a successful technician operation: the
        result value is ON_MAINTENANCE and the message says so.
        """
        def operation():
            verified = self._require_technician(technician)
            new_state = self.atm.state_machine.disable_maintenance(actor=verified.username)
            if new_state == ATMState.ACTIVE:
                return TransactionResult.ok(new_state, "ATM ready")
            return TransactionResult.ok(
                new_state, "Error, check the ATM Machine. Staying in ON_MAINTENANCE."
            )

        return self._run("disable_maintenance", operation, user_id=technician.username)

    def refill_cash(self, technician: Technician, amount: AmountLike) -> TransactionResult:
        """Load cash into the vault; only while the machine is on maintenance"""
        def operation():
            verified = self._require_technician(technician)
            if self.atm.state_machine.state != ATMState.ON_MAINTENANCE:
                raise MaintenanceRequired("Enable maintenance mode before refilling cash")
            value = positive_amount(amount)
            stock = self.atm.vault.refill(value)
            self.atm.audit_trail.log_event(
                event_type=AuditEventType.CASH_REFILLED,
                entity_type="atm",
                entity_id=self.atm.atm_id,
                metadata={"amount": value, "cash_stock": stock},
                user_id=verified.username
            )
            return TransactionResult.ok(stock, "Cash refilled")

        return self._run("refill_cash", operation, user_id=technician.username,
                         extra={"amount": str(amount)})
