"""
ATM Availability State Machine Module

Tracks whether the machine may serve customers and applies the maintenance
and emergency transitions:

    ACTIVE --enable maintenance--> ON_MAINTENANCE
    ON_MAINTENANCE --disable maintenance, self-check ok--> ACTIVE
    ON_MAINTENANCE --disable maintenance, self-check fails--> ON_MAINTENANCE
    any --Stuck Card / Cash Jam report--> NEED_MAINTENANCE
    NEED_MAINTENANCE --disable maintenance--> ON_MAINTENANCE (self-check fails)

A Stolen Card report never changes the state.
"""

from enum import Enum
from typing import Optional

from .audit import AuditTrail, AuditEventType
from .errors import InvalidEmergencyType
from .logging_config import get_logger, log_action


class ATMState(Enum):
    """Operability modes of the machine"""
    ACTIVE = "active"                      # Serving customers
    ON_MAINTENANCE = "on_maintenance"      # Technician at work
    NEED_MAINTENANCE = "need_maintenance"  # Fault reported, waiting for a technician


class EmergencyType(Enum):
    """Emergencies a customer can report, keyed by their display label"""
    STUCK_CARD = "Stuck Card"
    STOLEN_CARD = "Stolen Card"
    CASH_JAM = "Cash Jam"

    @property
    def requires_maintenance(self) -> bool:
        return self in (EmergencyType.STUCK_CARD, EmergencyType.CASH_JAM)

    @classmethod
    def parse(cls, value) -> 'EmergencyType':
        """
        Resolve an emergency type from an enum member, label or name

        Labels match case-insensitively ("cash jam", "CASH_JAM").

        Raises:
            InvalidEmergencyType: If nothing matches
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if wanted in (member.value.lower(), member.name.lower()):
                    return member
        raise InvalidEmergencyType(f"Unknown emergency type: {value!r}")


class ATMStateMachine:
    """Single source of truth for the ATM's availability state"""

    def __init__(self, audit_trail: AuditTrail, atm_id: str,
                 initial_state: ATMState = ATMState.ACTIVE):
        self.audit_trail = audit_trail
        self.atm_id = atm_id
        self._state = initial_state
        self.logger = get_logger("atm.state_machine")

    @property
    def state(self) -> ATMState:
        return self._state

    def is_operational(self) -> bool:
        """Customer-facing operations are allowed only while ACTIVE"""
        return self._state == ATMState.ACTIVE

    def self_check_ok(self) -> bool:
        # Mock hardware check: only a reported fault fails it
        return self._state != ATMState.NEED_MAINTENANCE

    def set_state(self, new_state: ATMState, actor: Optional[str] = None,
                  reason: str = "manual") -> ATMState:
        """Move to new_state unconditionally and record the transition"""
        old_state = self._state
        self._state = new_state

        if old_state != new_state:
            log_action(
                self.logger, "info",
                f"ATM state changed: {old_state.value} -> {new_state.value}",
                user_id=actor, action="set_atm_state", resource=f"atm:{self.atm_id}",
                extra={"from": old_state.value, "to": new_state.value, "reason": reason}
            )
            self.audit_trail.log_event(
                event_type=AuditEventType.ATM_STATE_CHANGED,
                entity_type="atm",
                entity_id=self.atm_id,
                metadata={"from": old_state, "to": new_state, "reason": reason},
                user_id=actor
            )
        return new_state

    def enable_maintenance(self, actor: Optional[str] = None) -> ATMState:
        return self.set_state(ATMState.ON_MAINTENANCE, actor, reason="maintenance_enabled")

    def disable_maintenance(self, actor: Optional[str] = None) -> ATMState:
        """
        Run the self-check and return to service if it passes

        A failing self-check leaves the machine ON_MAINTENANCE.
        """
        if not self.self_check_ok():
            log_action(
                self.logger, "warning", "Self-check failed, staying on maintenance",
                user_id=actor, action="self_check", resource=f"atm:{self.atm_id}",
                extra={"state": self._state.value}
            )
            self.audit_trail.log_event(
                event_type=AuditEventType.SELF_CHECK_FAILED,
                entity_type="atm",
                entity_id=self.atm_id,
                metadata={"state": self._state},
                user_id=actor
            )
            return self.set_state(ATMState.ON_MAINTENANCE, actor, reason="self_check_failed")

        return self.set_state(ATMState.ACTIVE, actor, reason="maintenance_disabled")

    def report_emergency(self, emergency_type: EmergencyType,
                         actor: Optional[str] = None) -> ATMState:
        """Apply the state effect of an emergency report"""
        if emergency_type.requires_maintenance:
            return self.set_state(ATMState.NEED_MAINTENANCE, actor,
                                  reason=f"emergency:{emergency_type.name.lower()}")
        return self._state
