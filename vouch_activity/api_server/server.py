"""
FastAPI server: read-only wallet activity API.

Exposes GET /programs/{wallet} and GET /trading-volume/{wallet} returning the
structured ActivityResponse body. Validation failures are HTTP 400; upstream
degradation is reported in the body (partial) with HTTP 200.
Run with: uvicorn vouch_activity.api_server.server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from vouch_activity import __version__
from vouch_activity.analytics.activity_service import (
    MAX_DAYS_BACK,
    MIN_DAYS_BACK,
    ActivityService,
)
from vouch_activity.analytics.models import ActivityResponse
from vouch_activity.config.env import load_vouch_env
from vouch_activity.vouch_logging import configure_logging, get_logger, short_wallet

logger = get_logger(__name__)

DEFAULT_DAYS_BACK = 30


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------

class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = Field("ok", description="Always ok when the process serves requests")
    network: str = Field(..., description="Configured Solana network")
    mock_data: bool = Field(..., description="True when responses come from mock data")
    version: str = Field(..., description="Package version")


class ProgramOut(BaseModel):
    address: str = Field(..., description="Program address (base58)")
    name: str | None = Field(None, description="Display name")
    deployedAt: str = Field(..., description="Deployment time, ISO-8601 UTC")
    deployer: str = Field(..., description="Deploying wallet")
    estimatedTVL: int = Field(..., ge=0, description="Estimated TVL in USD")


class ProgramsResponse(BaseModel):
    """GET /programs/{wallet} response."""

    success: bool
    data: list[ProgramOut] | None = None
    error: str | None = None
    partial: bool | None = Field(None, description="True when some upstream batches failed")


class TradeOut(BaseModel):
    signature: str
    amount: int = Field(..., ge=0, description="Trade value in USD")
    timestamp: int = Field(..., description="Unix seconds")
    type: str = "swap"


class TradingVolumeOut(BaseModel):
    totalVolume: int = Field(..., ge=0)
    tradeCount: int = Field(..., ge=0)
    amounts: list[int] = Field(default_factory=list, description="Top trade amounts, descending")
    period: int = Field(..., description="Days covered")
    wallet: str
    trades: list[TradeOut] | None = None


class TradingVolumeResponse(BaseModel):
    """GET /trading-volume/{wallet} response."""

    success: bool
    data: TradingVolumeOut | None = None
    error: str | None = None
    partial: bool | None = None


# -----------------------------------------------------------------------------
# Lifespan and dependency
# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build one ActivityService for the process; close its HTTP clients on shutdown."""
    load_vouch_env()
    configure_logging()
    service = ActivityService.from_settings()
    app.state.activity_service = service
    logger.info(
        "api_started",
        network=service.settings.solana_network,
        mock_data=service.uses_mock_data,
    )
    try:
        yield
    finally:
        await service.aclose()
        logger.info("api_stopped")


def get_service(request: Request) -> ActivityService:
    """Dependency: the process-wide ActivityService."""
    return request.app.state.activity_service


def _respond(result: ActivityResponse[Any]) -> JSONResponse:
    status = 400 if result.invalid_input else 200
    return JSONResponse(status_code=status, content=result.to_dict())


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

app = FastAPI(
    title="Vouch Activity API",
    description="Wallet activity (deployed programs, trading volume) for proof generation.",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health", response_model=HealthResponse)
def health(service: ActivityService = Depends(get_service)) -> HealthResponse:
    return HealthResponse(
        network=service.settings.solana_network,
        mock_data=service.uses_mock_data,
        version=__version__,
    )


@app.get("/programs/{wallet}", response_model=ProgramsResponse)
async def get_programs(wallet: str, service: ActivityService = Depends(get_service)):
    """Programs deployed by wallet, sorted by estimated TVL (highest first)."""
    logger.info("programs_called", wallet=short_wallet(wallet))
    result = await service.get_deployed_programs(wallet.strip())
    return _respond(result)


@app.get("/trading-volume/{wallet}", response_model=TradingVolumeResponse)
async def get_trading_volume(
    wallet: str,
    days: int = Query(DEFAULT_DAYS_BACK, description=f"Look-back window ({MIN_DAYS_BACK}-{MAX_DAYS_BACK} days)"),
    service: ActivityService = Depends(get_service),
):
    """Swap volume in USD for wallet within the look-back window."""
    logger.info("trading_volume_called", wallet=short_wallet(wallet), days=days)
    result = await service.get_trading_volume(wallet.strip(), days)
    return _respond(result)
