"""Price threshold monitoring for watched symbols."""

import asyncio
import inspect
import logging
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Union

from ..config import settings
from ..models import AlertDirection, PriceAlert
from ..tasks import PollLoop
from .kite import KiteService

logger = logging.getLogger(__name__)

AlertListener = Callable[[PriceAlert], Union[None, Awaitable[None]]]


@dataclass
class WatchedSymbol:
    """A monitored ticker and its alert thresholds."""
    symbol: str
    above: float = math.inf
    below: float = -math.inf


class MonitorService:
    """Registry of watched symbols plus the poll loop that checks them.

    The poll loop runs exactly while at least one symbol is watched. Alerts are
    level-triggered: a breached threshold is reported on every tick for as long
    as the price stays past it.
    """

    def __init__(
        self,
        broker: KiteService,
        interval_seconds: Optional[float] = None,
        resolution_seconds: Optional[float] = None,
    ):
        self.broker = broker
        self._watched: Dict[str, WatchedSymbol] = {}
        self._lock = asyncio.Lock()
        self._listeners: List[AlertListener] = []
        self.poll_loop = PollLoop(
            self.poll_once,
            interval_seconds=interval_seconds or settings.monitor_interval_seconds,
            resolution_seconds=resolution_seconds or settings.monitor_tick_resolution,
        )

    def __len__(self) -> int:
        return len(self._watched)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._watched

    @property
    def is_polling(self) -> bool:
        return self.poll_loop.running

    def watched(self) -> List[WatchedSymbol]:
        """Snapshot of the watched symbols."""
        return [
            WatchedSymbol(w.symbol, w.above, w.below) for w in self._watched.values()
        ]

    def add_listener(self, listener: AlertListener) -> None:
        """Register a callback invoked with every emitted alert."""
        self._listeners.append(listener)

    async def start_watching(
        self,
        symbol: str,
        above_price: Optional[float] = None,
        below_price: Optional[float] = None,
    ) -> WatchedSymbol:
        """Watch a symbol, replacing any thresholds it already had."""
        # A missing or zero threshold never fires
        watched = WatchedSymbol(
            symbol=symbol,
            above=above_price if above_price else math.inf,
            below=below_price if below_price else -math.inf,
        )

        async with self._lock:
            was_empty = not self._watched
            self._watched[symbol] = watched
            if was_empty:
                self.poll_loop.start()

        logger.info(
            f"Monitoring {symbol} (above={watched.above}, below={watched.below})"
        )
        return watched

    async def stop_watching(self, symbol: str) -> None:
        """Stop watching a symbol. Unknown symbols are ignored."""
        async with self._lock:
            removed = self._watched.pop(symbol, None)
            if not self._watched:
                self.poll_loop.stop()

        if removed is not None:
            logger.info(f"Stopped monitoring {symbol}")

    async def poll_once(self) -> List[PriceAlert]:
        """Fetch quotes for every watched symbol and emit threshold alerts."""
        async with self._lock:
            symbols = list(self._watched)

        if not symbols:
            return []

        try:
            quotes = await self.broker.get_quote(symbols)
        except Exception as e:
            logger.error(f"Error checking price alerts: {e}")
            return []

        alerts = []
        for symbol, quote in quotes.items():
            # Removed after the snapshot was taken
            watched = self._watched.get(symbol)
            if watched is None:
                continue

            if quote.last_price > watched.above:
                alerts.append(PriceAlert(
                    symbol=symbol,
                    direction=AlertDirection.ABOVE,
                    last_price=quote.last_price,
                    threshold=watched.above,
                ))

            if quote.last_price < watched.below:
                alerts.append(PriceAlert(
                    symbol=symbol,
                    direction=AlertDirection.BELOW,
                    last_price=quote.last_price,
                    threshold=watched.below,
                ))

        for alert in alerts:
            await self._emit(alert)

        return alerts

    async def _emit(self, alert: PriceAlert) -> None:
        logger.warning(
            f"Alert: {alert.symbol} price {alert.last_price} is "
            f"{alert.direction.value} {alert.threshold}"
        )

        for listener in self._listeners:
            try:
                result = listener(alert)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Alert listener failed for {alert.symbol}: {e}")

    async def shutdown(self) -> None:
        """Forget all watched symbols and stop polling."""
        async with self._lock:
            self._watched.clear()
        await self.poll_loop.close()
        logger.info("Monitor shut down")
