"""Health check and system status endpoints."""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends

from .. import __version__
from ..dependencies import get_broker, get_monitor
from ..services.kite import KiteService
from ..services.monitor import MonitorService

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
async def health_check(
    broker: KiteService = Depends(get_broker),
    monitor: MonitorService = Depends(get_monitor),
) -> Dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "authenticated": broker.is_authenticated,
        "monitoredSymbols": [w.symbol for w in monitor.watched()],
        "polling": monitor.is_polling,
    }
