"""Portfolio summary and performance endpoints."""

import logging

from fastapi import APIRouter, Depends

from ..dependencies import get_broker
from ..models import PortfolioAnalysis, PortfolioSummary
from ..services import portfolio as calculator
from ..services.kite import KiteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("", response_model=PortfolioSummary)
async def get_portfolio(broker: KiteService = Depends(get_broker)) -> PortfolioSummary:
    """Get current portfolio summary."""
    holdings = await broker.get_holdings()
    return calculator.summarize(holdings)


@router.get("/performance", response_model=PortfolioAnalysis)
async def get_performance(broker: KiteService = Depends(get_broker)) -> PortfolioAnalysis:
    """Get portfolio performance windows and top movers."""
    logger.info("Fetching portfolio performance...")
    holdings = await broker.get_holdings()
    return calculator.analyze(holdings)
