"""
Pytest configuration and fixtures for the portfolio gateway tests.
"""

import os

# Credentials must exist before the app module reads its settings
os.environ.setdefault("KITE_API_KEY", "test_key")
os.environ.setdefault("KITE_API_SECRET", "test_secret")
os.environ.setdefault("DRY_RUN", "true")

import pytest
import pytest_asyncio
from typing import Any, Dict, List, Optional
from httpx import AsyncClient, ASGITransport

from portfolio_gateway.main import app
from portfolio_gateway.config import Settings
from portfolio_gateway.dependencies import get_broker, get_monitor
from portfolio_gateway.services.kite import KiteService
from portfolio_gateway.services.monitor import MonitorService


class FakeKiteClient:
    """In-memory stand-in for the KiteConnect SDK client."""

    def __init__(self):
        self.access_token: Optional[str] = None
        self.session: Dict[str, Any] = {"access_token": "access-token-123"}
        self.session_args = None
        self.profile_data = {"user_id": "AB1234", "user_name": "Test User"}
        self.holdings_data: List[Dict[str, Any]] = []
        self.quotes: Dict[str, Dict[str, Any]] = {}
        self.quote_calls: List[List[str]] = []
        self.orders: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def _maybe_fail(self):
        if self.error is not None:
            raise self.error

    def login_url(self):
        return "https://kite.zerodha.com/connect/login?v=3&api_key=test_key"

    def generate_session(self, request_token, api_secret=None):
        self._maybe_fail()
        self.session_args = (request_token, api_secret)
        return self.session

    def set_access_token(self, access_token):
        self.access_token = access_token

    def profile(self):
        self._maybe_fail()
        return self.profile_data

    def holdings(self):
        self._maybe_fail()
        return self.holdings_data

    def quote(self, instruments):
        self._maybe_fail()
        self.quote_calls.append(list(instruments))
        return {s: self.quotes[s] for s in instruments if s in self.quotes}

    def place_order(self, variety, **params):
        self._maybe_fail()
        self.orders.append({"variety": variety, **params})
        return "240101000000001"


def make_holding(
    symbol: str,
    quantity: float = 10,
    last_price: float = 100.0,
    close_price: float = 90.0,
    average_price: float = 80.0,
    day_change: float = 0.0,
    **extra,
) -> Dict[str, Any]:
    """Raw holding entry shaped like the Kite holdings payload."""
    return {
        "tradingsymbol": symbol,
        "exchange": "NSE",
        "quantity": quantity,
        "average_price": average_price,
        "last_price": last_price,
        "close_price": close_price,
        "day_change": day_change,
        **extra,
    }


def make_quote(last_price: float, instrument_token: int = 408065, **extra) -> Dict[str, Any]:
    """Raw quote entry shaped like the Kite quote payload."""
    return {
        "instrument_token": instrument_token,
        "timestamp": "2024-01-02T10:15:00",
        "last_price": last_price,
        "net_change": 1.5,
        **extra,
    }


@pytest.fixture
def test_settings():
    """Settings with a short broker timeout."""
    settings = Settings()
    settings.broker_timeout_seconds = 2.0
    return settings


@pytest.fixture
def fake_kite():
    return FakeKiteClient()


@pytest.fixture
def broker(fake_kite, test_settings):
    """KiteService backed by the fake SDK client."""
    return KiteService(client=fake_kite, settings=test_settings)


@pytest_asyncio.fixture
async def monitor(broker):
    """Monitor with an interval long enough that only explicit ticks run."""
    service = MonitorService(broker, interval_seconds=3600, resolution_seconds=0.05)
    yield service
    await service.shutdown()


@pytest_asyncio.fixture
async def client(broker, monitor):
    """Create a test client with the app-owned services overridden."""
    app.dependency_overrides[get_broker] = lambda: broker
    app.dependency_overrides[get_monitor] = lambda: monitor

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
