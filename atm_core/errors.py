"""
Error Taxonomy Module

Domain exceptions raised by the ATM components. Validation and business
failures are expected and get turned into failed results by the transaction
facade; fatal failures signal a broken internal invariant and propagate.
"""

from enum import Enum
from typing import Optional


class FailureReason(Enum):
    """Reasons an expected ATM operation can fail"""
    INVALID_AMOUNT = "invalid_amount"
    INVALID_EMERGENCY_TYPE = "invalid_emergency_type"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_CASH = "insufficient_cash"
    INVALID_CARD = "invalid_card"
    WRONG_OLD_PIN = "wrong_old_pin"
    PIN_MISMATCH = "pin_mismatch"
    ATM_NOT_ACTIVE = "atm_not_active"
    AUTHENTICATION_FAILED = "authentication_failed"
    NOT_AUTHORIZED = "not_authorized"
    MAINTENANCE_REQUIRED = "maintenance_required"


class ATMError(Exception):
    """Base class for all ATM core errors"""


class ValidationFailure(ATMError):
    """Malformed or out-of-range input; nothing was mutated"""
    reason: Optional[FailureReason] = None


class BusinessFailure(ATMError):
    """A business rule refused the operation; nothing was mutated"""
    reason: Optional[FailureReason] = None


class FatalFailure(ATMError):
    """Internal inconsistency that should never happen in normal operation"""


class InvalidAmount(ValidationFailure):
    """Amount is malformed, not finite, or not strictly positive"""
    reason = FailureReason.INVALID_AMOUNT


class InvalidEmergencyType(ValidationFailure):
    """Emergency type is not one the ATM knows how to report"""
    reason = FailureReason.INVALID_EMERGENCY_TYPE


class InsufficientFunds(BusinessFailure):
    """Account balance does not cover the requested amount"""
    reason = FailureReason.INSUFFICIENT_FUNDS


class InsufficientCash(BusinessFailure):
    """The machine does not hold enough physical cash"""
    reason = FailureReason.INSUFFICIENT_CASH


class InvalidCard(BusinessFailure):
    reason = FailureReason.INVALID_CARD


class WrongOldPin(BusinessFailure):
    reason = FailureReason.WRONG_OLD_PIN


class PinMismatch(BusinessFailure):
    """New PIN and its confirmation differ"""
    reason = FailureReason.PIN_MISMATCH


class AtmNotActive(BusinessFailure):
    reason = FailureReason.ATM_NOT_ACTIVE


class AuthenticationFailed(BusinessFailure):
    reason = FailureReason.AUTHENTICATION_FAILED


class NotAuthorized(BusinessFailure):
    """Caller is not a registered technician"""
    reason = FailureReason.NOT_AUTHORIZED


class MaintenanceRequired(BusinessFailure):
    """Operation is only allowed while the ATM is on maintenance"""
    reason = FailureReason.MAINTENANCE_REQUIRED


class AccountNotFound(FatalFailure):
    """A customer references an account the ledger does not hold"""


class LedgerInconsistency(FatalFailure):
    """Ledger records violate an invariant (duplicate id, negative balance)"""
