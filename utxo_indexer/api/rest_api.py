"""
UTXO Indexer - REST API
=========================
API REST per submission blocchi e query del ledger.

Last Updated: 2026-10-19
Version: 1.0.0

Endpoints:
- GET  /                    - Liveness
- POST /blocks              - Submit block
- GET  /balance/{address}   - Balance query
- POST /rollback?height=h   - Rollback to height
- GET  /status              - Current height
- GET  /blocks/{height}     - Stored block summary
- GET  /utxos/{address}     - Unspent outputs of an address
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Internal imports
from utxo_indexer.api import deps
from utxo_indexer.api.deps import get_service, get_config
from utxo_indexer.api.middleware import RequestIDMiddleware, RequestLoggingMiddleware
from utxo_indexer.api.schemas import (
    BalanceResponse,
    BlockSchema,
    BlockSummaryResponse,
    ErrorResponse,
    RootResponse,
    StatusResponse,
    SubmitResponse,
    UTXOResponse,
)
from utxo_indexer.config import IndexerSettings, get_settings
from utxo_indexer.errors import StateError
from utxo_indexer.logging_setup import get_logger
from utxo_indexer.services.indexer_service import IndexerService


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("api")


router = APIRouter()

_REJECTED = {400: {"model": ErrorResponse}}


def _rejection(reason: Optional[str], code: Optional[str]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": reason, "code": code},
    )


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/", response_model=RootResponse)
def root(config: IndexerSettings = Depends(get_config)):
    """Root endpoint"""
    return RootResponse(status="ok", service=config.service_name)


@router.post("/blocks", response_model=SubmitResponse, responses=_REJECTED)
def submit_block(
    payload: BlockSchema,
    service: IndexerService = Depends(get_service)
):
    """Validate and apply a block"""
    outcome = service.submit_block(payload.to_domain())

    if not outcome.accepted:
        return _rejection(outcome.reason, outcome.code)

    return SubmitResponse(height=outcome.height)


@router.get("/balance/{address}", response_model=BalanceResponse)
def get_balance(
    address: str,
    service: IndexerService = Depends(get_service)
):
    """Get balance of address"""
    return BalanceResponse(balance=service.query_balance(address))


@router.post("/rollback", response_model=SubmitResponse, responses=_REJECTED)
def rollback(
    height: Optional[str] = None,
    service: IndexerService = Depends(get_service)
):
    """Rollback ledger to height"""
    outcome = service.rollback_to(height)

    if not outcome.accepted:
        return _rejection(outcome.reason, outcome.code)

    return SubmitResponse(height=outcome.new_height)


@router.get("/status", response_model=StatusResponse)
def get_status(service: IndexerService = Depends(get_service)):
    """Get current ledger height"""
    return StatusResponse(**service.get_status())


@router.get("/blocks/{height}", response_model=BlockSummaryResponse)
def get_block(
    height: int,
    service: IndexerService = Depends(get_service)
):
    """Get stored block by height"""
    block = service.get_block(height)

    if block is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Block at height {height} not found"
        )

    return BlockSummaryResponse(**block)


@router.get("/utxos/{address}", response_model=List[UTXOResponse])
def list_utxos(
    address: str,
    service: IndexerService = Depends(get_service)
):
    """List unspent outputs of address"""
    return [UTXOResponse.from_record(r) for r in service.list_unspent(address)]


# ============================================================================
# ERROR HANDLERS
# ============================================================================

async def state_error_handler(request: Request, exc: StateError) -> JSONResponse:
    """Storage faults: logged in full, reported generically"""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error(
        f"[{request_id}] {request.method} {request.url.path} failed: {exc}",
        extra_data={"request_id": request_id, "code": exc.code},
        exc_info=(type(exc), exc, exc.__traceback__)
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# ============================================================================
# APP FACTORY
# ============================================================================

def create_app(config: Optional[IndexerSettings] = None) -> FastAPI:
    """
    Crea FastAPI app con middleware, route e handler errori.

    Args:
        config: Configurazione (default: get_settings())
    """
    config = config or get_settings()

    app = FastAPI(
        title="UTXO Indexer API",
        description="REST API for the UTXO ledger indexer",
        version=config.software_version
    )

    if config.api_enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.api_cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", "X-Process-Time"],
        )

    # Added last = outermost: request id is set before logging runs
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(StateError, state_error_handler)
    app.include_router(router)

    return app


def initialize_api(service: IndexerService, config: IndexerSettings) -> FastAPI:
    """
    Initialize API with services.

    Args:
        service: IndexerService instance
        config: Configurazione

    Returns:
        FastAPI: Initialized app

    Examples:
        >>> app = initialize_api(service, config)
        >>> # Run with: utxo-indexer serve
    """
    deps.set_service(service)
    deps.set_config(config)

    app = create_app(config)

    logger.info("API initialized and ready")

    return app


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "router",
    "create_app",
    "initialize_api",
]
