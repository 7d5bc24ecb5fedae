"""Quote, price monitoring and order endpoints."""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends

from ..dependencies import get_broker, get_monitor
from ..errors import MissingParameterError
from ..models import (
    MessageResponse,
    MonitorRequest,
    OrderRequest,
    OrderResponse,
    StopMonitorRequest,
)
from ..services.kite import KiteService
from ..services.monitor import MonitorService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["market"])


@router.get("/quote")
async def get_quote(
    symbols: Optional[str] = None,
    broker: KiteService = Depends(get_broker),
) -> List[List[Any]]:
    """Latest quotes as [symbol, quote] pairs for a comma-separated symbol list."""
    if not symbols:
        raise MissingParameterError("No symbols provided")

    quotes = await broker.get_quote(symbols.split(","))
    return [
        [symbol, quote.model_dump(by_alias=True, mode="json")]
        for symbol, quote in quotes.items()
    ]


@router.post("/monitor", response_model=MessageResponse)
async def start_monitoring(
    request: MonitorRequest,
    monitor: MonitorService = Depends(get_monitor),
) -> MessageResponse:
    await monitor.start_watching(request.symbol, request.above_price, request.below_price)
    return MessageResponse(message="Monitoring started")


@router.post("/stop-monitor", response_model=MessageResponse)
async def stop_monitoring(
    request: StopMonitorRequest,
    monitor: MonitorService = Depends(get_monitor),
) -> MessageResponse:
    await monitor.stop_watching(request.symbol)
    return MessageResponse(message="Monitoring stopped")


@router.post("/orders", response_model=OrderResponse)
async def place_order(
    request: OrderRequest,
    broker: KiteService = Depends(get_broker),
) -> OrderResponse:
    """Place a delivery order (simulated while DRY_RUN is on)."""
    return await broker.place_order(
        symbol=request.symbol,
        exchange=request.exchange,
        transaction_type=request.transaction_type,
        quantity=request.quantity,
        price=request.price,
    )
