"""
Technician maintenance endpoints
"""

from fastapi import APIRouter, Depends, HTTPException

from .dependencies import get_processor, login_technician, raise_for_failure
from .schemas import OperationResponse, RefillRequest, SetStateRequest, TechnicianCredentials
from ..state_machine import ATMState
from ..transactions import TransactionProcessor


router = APIRouter()


@router.post("/enable", response_model=OperationResponse)
async def enable_maintenance(
    request: TechnicianCredentials,
    processor: TransactionProcessor = Depends(get_processor)
):
    technician = login_technician(processor, request.username, request.password)
    result = raise_for_failure(processor.enable_maintenance(technician))
    return OperationResponse(success=True, message=result.message, state=result.value.value)


@router.post("/disable", response_model=OperationResponse)
async def disable_maintenance(
    request: TechnicianCredentials,
    processor: TransactionProcessor = Depends(get_processor)
):
    """Run the self-check; the response state tells whether the ATM is back in service"""
    technician = login_technician(processor, request.username, request.password)
    result = raise_for_failure(processor.disable_maintenance(technician))
    return OperationResponse(success=True, message=result.message, state=result.value.value)


@router.post("/state", response_model=OperationResponse)
async def set_state(
    request: SetStateRequest,
    processor: TransactionProcessor = Depends(get_processor)
):
    try:
        state = ATMState(request.state.lower())
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown ATM state: {request.state}")

    technician = login_technician(processor, request.username, request.password)
    result = raise_for_failure(processor.set_atm_state(technician, state))
    return OperationResponse(success=True, message=result.message, state=result.value.value)


@router.post("/refill", response_model=OperationResponse)
async def refill_cash(
    request: RefillRequest,
    processor: TransactionProcessor = Depends(get_processor)
):
    technician = login_technician(processor, request.username, request.password)
    result = raise_for_failure(processor.refill_cash(technician, request.amount))
    return OperationResponse(success=True, message=result.message, cash_stock=str(result.value))
