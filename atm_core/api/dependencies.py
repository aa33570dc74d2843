"""
Shared dependencies for the API routers
"""

from fastapi import HTTPException, Request

from ..directory import Customer, Technician
from ..errors import FailureReason
from ..transactions import TransactionProcessor, TransactionResult


FAILURE_STATUS = {
    FailureReason.INVALID_AMOUNT: 422,
    FailureReason.INVALID_EMERGENCY_TYPE: 422,
    FailureReason.AUTHENTICATION_FAILED: 401,
    FailureReason.NOT_AUTHORIZED: 403,
    FailureReason.ATM_NOT_ACTIVE: 503,
}


def get_processor(request: Request) -> TransactionProcessor:
    """Transaction processor bound to the app's ATM"""
    return request.app.state.processor


def raise_for_failure(result: TransactionResult) -> TransactionResult:
    """Turn a failed result into an HTTP error; business failures are 409"""
    if not result.success:
        raise HTTPException(
            status_code=FAILURE_STATUS.get(result.failure, 409),
            detail={"reason": result.failure.value, "message": result.message}
        )
    return result


def login_customer(processor: TransactionProcessor, card_number: str, pin: str) -> Customer:
    return raise_for_failure(processor.authenticate_customer(card_number, pin)).value


def login_technician(processor: TransactionProcessor, username: str, password: str) -> Technician:
    return raise_for_failure(processor.authenticate_technician(username, password)).value
