"""
Customer endpoints: monetary transactions and account management

Every request carries the card and PIN; a session covers exactly one
transaction, after which the card is returned.
"""

from fastapi import APIRouter, Depends

from .dependencies import get_processor, login_customer, raise_for_failure
from .schemas import (
    AmountRequest, CardCredentials, ChangePinRequest, EmergencyRequest,
    OperationResponse, TransferRequest
)
from ..transactions import TransactionProcessor


router = APIRouter()


@router.post("/authenticate", response_model=OperationResponse)
async def authenticate(
    request: CardCredentials,
    processor: TransactionProcessor = Depends(get_processor)
):
    """Check a card and PIN"""
    customer = login_customer(processor, request.card_number, request.pin)
    return OperationResponse(success=True, message=f"Welcome, {customer.name}", name=customer.name)


@router.post("/balance", response_model=OperationResponse)
async def balance(
    request: CardCredentials,
    processor: TransactionProcessor = Depends(get_processor)
):
    customer = login_customer(processor, request.card_number, request.pin)
    return OperationResponse(
        success=True,
        message="Your current balance",
        balance=str(processor.get_balance(customer))
    )


@router.post("/deposit", response_model=OperationResponse)
async def deposit(
    request: AmountRequest,
    processor: TransactionProcessor = Depends(get_processor)
):
    customer = login_customer(processor, request.card_number, request.pin)
    result = raise_for_failure(processor.deposit(customer, request.amount))
    return OperationResponse(success=True, message=result.message, balance=str(result.value))


@router.post("/withdraw", response_model=OperationResponse)
async def withdraw(
    request: AmountRequest,
    processor: TransactionProcessor = Depends(get_processor)
):
    customer = login_customer(processor, request.card_number, request.pin)
    result = raise_for_failure(processor.withdraw(customer, request.amount))
    return OperationResponse(success=True, message=result.message, balance=str(result.value))


@router.post("/transfer", response_model=OperationResponse)
async def transfer(
    request: TransferRequest,
    processor: TransactionProcessor = Depends(get_processor)
):
    customer = login_customer(processor, request.card_number, request.pin)
    result = raise_for_failure(processor.transfer(customer, request.target_card, request.amount))
    return OperationResponse(success=True, message=result.message, balance=str(result.value))


@router.post("/change-pin", response_model=OperationResponse)
async def change_pin(
    request: ChangePinRequest,
    processor: TransactionProcessor = Depends(get_processor)
):
    """The PIN in the credentials is the old PIN"""
    customer = login_customer(processor, request.card_number, request.pin)
    result = raise_for_failure(
        processor.change_pin(customer, request.pin, request.new_pin, request.confirm_pin)
    )
    return OperationResponse(success=True, message=result.message)


@router.post("/emergency", response_model=OperationResponse)
async def report_emergency(
    request: EmergencyRequest,
    processor: TransactionProcessor = Depends(get_processor)
):
    """Report an emergency; accepted in any ATM state"""
    result = raise_for_failure(processor.report_emergency(request.type, request.card_number))
    return OperationResponse(success=True, message=result.message, state=result.value.value)
