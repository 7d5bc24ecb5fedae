"""Broker login flow and profile endpoints."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from ..config import settings
from ..dependencies import get_broker
from ..errors import MissingParameterError
from ..models import AccessTokenResponse, LoginUrlResponse, MessageResponse
from ..services.kite import KiteService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/start-auth", response_model=MessageResponse)
async def start_auth(broker: KiteService = Depends(get_broker)) -> MessageResponse:
    """Open the broker login page in the local browser."""
    if await broker.open_login_page():
        return MessageResponse(message="Login page opened in browser")
    return MessageResponse(
        message=f"No browser available, open the login URL manually: {broker.login_url()}"
    )


@router.get("/login", response_model=LoginUrlResponse)
async def login(broker: KiteService = Depends(get_broker)) -> LoginUrlResponse:
    login_url = broker.login_url()
    logger.info(
        f"Generated login URL: {login_url} "
        f"(redirect URL on the Kite app must be {settings.kite_redirect_url})"
    )
    return LoginUrlResponse(login_url=login_url)


@router.get("/callback", response_model=AccessTokenResponse)
async def callback(
    request_token: Optional[str] = None,
    broker: KiteService = Depends(get_broker),
) -> AccessTokenResponse:
    """Exchange the request token from the login redirect for an access token."""
    if not request_token:
        raise MissingParameterError("No request token provided")

    access_token = await broker.generate_session(request_token)
    return AccessTokenResponse(access_token=access_token)


@router.get("/profile")
async def profile(broker: KiteService = Depends(get_broker)) -> Dict[str, Any]:
    return await broker.get_profile()
