"""FastAPI dependency providers for the app-owned services."""

from fastapi import Request

from .services.kite import KiteService
from .services.monitor import MonitorService


def get_broker(request: Request) -> KiteService:
    """Broker client created during application startup."""
    return request.app.state.broker


def get_monitor(request: Request) -> MonitorService:
    """Monitor service created during application startup."""
    return request.app.state.monitor
