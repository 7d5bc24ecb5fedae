"""Portfolio summary and performance calculations."""

from typing import List, Optional

from ..models import (
    Holding,
    HoldingSummary,
    PerformanceWindows,
    PortfolioAnalysis,
    PortfolioPerformance,
    PortfolioSummary,
    StockChange,
)

TOP_MOVERS = 3


def _percent(change: float, value: float) -> Optional[float]:
    """Percentage of value, or None when value is zero."""
    if value == 0:
        return None
    return change / value * 100


def summarize(holdings: List[Holding]) -> PortfolioSummary:
    """Current value and P&L per holding plus portfolio totals."""
    total_value = 0.0
    todays_pnl = 0.0
    total_pnl = 0.0
    summaries = []

    for holding in holdings:
        current_value = holding.quantity * holding.last_price
        day_pnl = holding.quantity * (holding.last_price - holding.close_price)
        overall_pnl = holding.quantity * (holding.last_price - holding.average_price)

        total_value += current_value
        todays_pnl += day_pnl
        total_pnl += overall_pnl

        summaries.append(HoldingSummary(
            symbol=holding.tradingsymbol,
            quantity=holding.quantity,
            average_price=holding.average_price,
            last_price=holding.last_price,
            current_value=current_value,
            day_change=holding.day_change,
            overall_pnl=overall_pnl,
        ))

    return PortfolioSummary(
        total_value=total_value,
        todays_pnl=todays_pnl,
        total_pnl=total_pnl,
        holdings=summaries,
    )


def analyze(holdings: List[Holding]) -> PortfolioAnalysis:
    """Performance windows and top movers.

    Only the daily window uses the previous close. Weekly, monthly and yearly
    are the all-time P&L against average price until historical data exists.
    """
    portfolio_value = sum(h.quantity * h.last_price for h in holdings)
    day_change = sum(h.quantity * (h.last_price - h.close_price) for h in holdings)
    overall_change = sum(h.quantity * (h.last_price - h.average_price) for h in holdings)

    def window(period: str, change: float) -> PortfolioPerformance:
        return PortfolioPerformance(
            period=period,
            value=portfolio_value,
            change=change,
            change_percent=_percent(change, portfolio_value),
        )

    changes = [
        StockChange(symbol=h.tradingsymbol, change_percent=h.change_percent)
        for h in holdings
    ]
    gainers = sorted(changes, key=lambda c: c.change_percent, reverse=True)
    losers = sorted(changes, key=lambda c: c.change_percent)

    return PortfolioAnalysis(
        current_value=portfolio_value,
        performances=PerformanceWindows(
            daily=window("1 Day", day_change),
            weekly=window("1 Week", overall_change),
            monthly=window("1 Month", overall_change),
            yearly=window("1 Year", overall_change),
        ),
        top_gainers=gainers[:TOP_MOVERS],
        top_losers=losers[:TOP_MOVERS],
    )
