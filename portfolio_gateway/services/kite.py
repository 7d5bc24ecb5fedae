"""Kite Connect trading API integration."""

import asyncio
import functools
import logging
import webbrowser
from typing import Any, Callable, Dict, List, Optional

from kiteconnect import KiteConnect

from ..config import Settings, settings as default_settings
from ..errors import (
    BrokerError,
    BrokerResponseError,
    BrokerTimeoutError,
    GatewayError,
    LoginPageError,
)
from ..models import Holding, OrderResponse, Quote, TransactionType

logger = logging.getLogger(__name__)


class KiteService:
    """Service for interacting with the Kite Connect trading API.

    The SDK is synchronous, so every call runs in the default executor and is
    bounded by ``broker_timeout_seconds``.
    """

    def __init__(self, client: Optional[Any] = None, settings: Optional[Settings] = None):
        """Initialize the Kite client."""
        self.settings = settings or default_settings
        self.api_key = self.settings.kite_api_key
        self.timeout = self.settings.broker_timeout_seconds
        self._access_token: Optional[str] = None

        if client is None:
            logger.info(
                f"Initializing KiteService with API key {self.settings.masked_api_key} "
                f"against {self.settings.kite_root_url}"
            )
            client = KiteConnect(
                api_key=self.api_key,
                root=self.settings.kite_root_url,
                timeout=self.timeout,
            )
        self.kite = client

    @property
    def is_authenticated(self) -> bool:
        return self._access_token is not None

    async def _call(self, description: str, func: Callable, *args, **kwargs) -> Any:
        """Run a blocking SDK call off the event loop with a timeout."""
        loop = asyncio.get_event_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, functools.partial(func, *args, **kwargs)),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Timed out {description} after {self.timeout}s")
            raise BrokerTimeoutError(f"Timed out {description}") from e
        except GatewayError:
            raise
        except Exception as e:
            logger.error(f"Error {description}: {e}")
            raise BrokerError(str(e) or f"Error {description}") from e

    def login_url(self) -> str:
        logger.info(f"Getting login URL with API key {self.settings.masked_api_key}")
        return self.kite.login_url()

    async def open_login_page(self) -> bool:
        """Open the broker login page in the local browser.

        Returns False when no browser is available to open it.
        """
        url = self.login_url()
        logger.info("Opening login URL in browser...")
        loop = asyncio.get_event_loop()
        try:
            opened = await loop.run_in_executor(None, webbrowser.open, url)
        except Exception as e:
            logger.error(f"Error opening login page: {e}")
            raise LoginPageError(str(e) or "Could not open login page") from e

        if not opened:
            logger.warning(f"No browser available, open the login URL manually: {url}")
        return bool(opened)

    def set_access_token(self, access_token: str) -> None:
        self.kite.set_access_token(access_token)
        self._access_token = access_token

    async def generate_session(self, request_token: str) -> str:
        """Exchange a login request token for an access token."""
        logger.info("Generating session from request token")
        session = await self._call(
            "generating session",
            self.kite.generate_session,
            request_token,
            api_secret=self.settings.kite_api_secret,
        )

        access_token = (session or {}).get("access_token")
        if not access_token:
            logger.error("No access token in session response")
            raise BrokerResponseError("No access token in session response")

        self.set_access_token(access_token)
        logger.info("Session established")
        return access_token

    async def get_profile(self) -> Dict[str, Any]:
        return await self._call("fetching profile", self.kite.profile)

    async def get_holdings(self) -> List[Holding]:
        """Fetch current holdings."""
        raw_holdings = await self._call("fetching holdings", self.kite.holdings)
        holdings = [Holding.from_kite(raw) for raw in raw_holdings or []]
        logger.info(f"Retrieved {len(holdings)} holdings")
        return holdings

    async def get_quote(self, symbols: List[str]) -> Dict[str, Quote]:
        """Fetch quotes for all symbols in one batched request.

        Malformed entries are logged and left out of the result.
        """
        raw_quotes = await self._call(
            f"fetching quotes for {symbols}", self.kite.quote, list(symbols)
        )

        quotes = {}
        for symbol, raw in (raw_quotes or {}).items():
            try:
                quotes[symbol] = Quote.from_kite(raw)
            except BrokerResponseError as e:
                logger.warning(f"Skipping quote for {symbol}: {e}")
        return quotes

    async def place_order(
        self,
        symbol: str,
        exchange: str,
        transaction_type: TransactionType,
        quantity: int,
        price: Optional[float] = None,
        dry_run: Optional[bool] = None,
    ) -> OrderResponse:
        """Place a delivery order; LIMIT when a price is given, MARKET otherwise."""
        if dry_run is None:
            dry_run = self.settings.dry_run

        side = TransactionType(transaction_type).value
        order_type = KiteConnect.ORDER_TYPE_LIMIT if price else KiteConnect.ORDER_TYPE_MARKET

        if dry_run:
            logger.info(
                f"DRY RUN: Would place {order_type} {side} order for {quantity} "
                f"shares of {exchange}:{symbol}"
            )
            return OrderResponse(
                order_id=f"dry_run_{symbol}_{quantity}",
                status="accepted",
                message="Dry run order",
            )

        order_params: Dict[str, Any] = {
            "tradingsymbol": symbol,
            "exchange": exchange,
            "transaction_type": side,
            "quantity": quantity,
            "product": KiteConnect.PRODUCT_CNC,
            "order_type": order_type,
        }
        if price:
            order_params["price"] = price

        order_id = await self._call(
            f"placing order for {symbol}",
            self.kite.place_order,
            variety=KiteConnect.VARIETY_REGULAR,
            **order_params,
        )

        logger.info(f"Placed order {order_id} for {symbol}")
        return OrderResponse(
            order_id=str(order_id),
            status="placed",
            message="Order placed successfully",
        )
