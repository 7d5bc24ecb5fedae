"""Pydantic schemas for broker payloads, portfolio views and API bodies."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel

from .errors import BrokerResponseError


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class AlertDirection(str, Enum):
    ABOVE = "above"
    BELOW = "below"


class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


# Broker payloads
class Quote(CamelModel):
    """Latest market quote for one instrument."""
    instrument_token: int
    timestamp: Optional[datetime] = None
    last_price: float
    change: float = 0.0
    change_percent: float = 0.0

    @classmethod
    def from_kite(cls, raw: Dict[str, Any]) -> "Quote":
        """Build a quote from a Kite quote entry, validating required fields."""
        try:
            return cls(
                instrument_token=raw["instrument_token"],
                timestamp=raw.get("timestamp"),
                last_price=raw["last_price"],
                change=raw.get("change", raw.get("net_change", 0.0)) or 0.0,
                change_percent=raw.get("change_percent", 0.0) or 0.0,
            )
        except (KeyError, TypeError, ValidationError) as e:
            raise BrokerResponseError(f"Malformed quote payload: {e}") from e


class Holding(BaseModel):
    """A portfolio position as reported by the broker."""
    tradingsymbol: str
    exchange: str
    quantity: float
    average_price: float
    last_price: float
    close_price: float
    day_change: float = 0.0
    day_change_percentage: Optional[float] = None

    @classmethod
    def from_kite(cls, raw: Dict[str, Any]) -> "Holding":
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise BrokerResponseError(f"Malformed holding payload: {e}") from e

    @property
    def change_percent(self) -> float:
        """Day change percentage, falling back to the raw day change."""
        if self.day_change_percentage is not None:
            return self.day_change_percentage
        return self.day_change


# Portfolio views
class HoldingSummary(CamelModel):
    symbol: str
    quantity: float
    average_price: float
    last_price: float
    current_value: float
    day_change: float
    overall_pnl: float = Field(alias="overallPnL")


class PortfolioSummary(CamelModel):
    """Summary of current holdings."""
    total_value: float
    todays_pnl: float = Field(alias="todaysPnL")
    total_pnl: float = Field(alias="totalPnL")
    holdings: List[HoldingSummary]


class PortfolioPerformance(CamelModel):
    period: str
    value: float
    change: float
    # None when the portfolio value is zero and the percentage is undefined
    change_percent: Optional[float] = None


class StockChange(CamelModel):
    symbol: str
    change_percent: float


class PerformanceWindows(CamelModel):
    daily: PortfolioPerformance
    weekly: PortfolioPerformance
    monthly: PortfolioPerformance
    yearly: PortfolioPerformance


class PortfolioAnalysis(CamelModel):
    """Performance windows plus top movers."""
    current_value: float
    performances: PerformanceWindows
    top_gainers: List[StockChange]
    top_losers: List[StockChange]


# Monitoring
class PriceAlert(CamelModel):
    """A threshold breach observed during a poll tick."""
    symbol: str
    direction: AlertDirection
    last_price: float
    threshold: float
    timestamp: datetime = Field(default_factory=datetime.now)


# Request bodies
class MonitorRequest(CamelModel):
    symbol: str
    above_price: Optional[float] = None
    below_price: Optional[float] = None


class StopMonitorRequest(CamelModel):
    symbol: str


class OrderRequest(CamelModel):
    """Request schema for placing an order."""
    symbol: str
    exchange: str = "NSE"
    transaction_type: TransactionType
    quantity: int = Field(gt=0)
    price: Optional[float] = Field(default=None, gt=0)


# Responses
class MessageResponse(CamelModel):
    message: str


class LoginUrlResponse(CamelModel):
    login_url: str


class AccessTokenResponse(CamelModel):
    access_token: str


class OrderResponse(CamelModel):
    order_id: Optional[str] = None
    status: str
    message: str
