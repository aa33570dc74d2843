"""
ATM HTTP API Application Factory
"""

from typing import Optional

import uvicorn
from fastapi import FastAPI

from .customers import router as customers_router
from .maintenance import router as maintenance_router
from ..atm import create_atm
from ..config import get_config
from ..logging_config import setup_logging
from ..transactions import TransactionProcessor


def create_app(processor: Optional[TransactionProcessor] = None) -> FastAPI:
    """Create the API around one ATM; a configured ATM is built when none is given"""
    app = FastAPI(
        title="ATM Transaction Core API",
        description="Deposit, withdraw, transfer and maintenance operations of one ATM",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.processor = processor or TransactionProcessor(create_atm())

    app.include_router(customers_router, prefix="/customers", tags=["Customers"])
    app.include_router(maintenance_router, prefix="/maintenance", tags=["Maintenance"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "atm_core_api",
            "version": "1.0.0"
        }

    @app.get("/atm/state")
    async def get_atm_state():
        current = app.state.processor
        return {
            "atm_id": current.atm.atm_id,
            "state": current.get_atm_state().value,
            "self_check_ok": current.self_check_ok()
        }

    @app.get("/atm/cash-stock")
    async def get_cash_stock():
        return {"cash_stock": str(app.state.processor.get_cash_stock())}

    return app


def main() -> None:
    """Run the API server with uvicorn"""
    config = get_config()
    setup_logging(config.log_level, config.log_format, config.log_file)
    uvicorn.run(create_app(), host=config.api_host, port=config.api_port)
