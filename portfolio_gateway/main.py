"""Main FastAPI application for the portfolio gateway."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import settings
from .errors import ConfigurationError, GatewayError
from .routers import auth, health, market, portfolio
from .services.kite import KiteService
from .services.monitor import MonitorService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        *([logging.FileHandler(settings.log_file)] if settings.log_file else [])
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    settings.validate()
    logger.info(f"Starting Portfolio Gateway (API key {settings.masked_api_key})")

    broker = KiteService()
    monitor = MonitorService(broker)
    app.state.broker = broker
    app.state.monitor = monitor

    if settings.auto_login:
        logger.info("Initiating auto-login...")
        await broker.open_login_page()

    yield

    # Shutdown
    logger.info("Shutting down Portfolio Gateway")
    await monitor.shutdown()


# Create FastAPI app
app = FastAPI(
    title="Portfolio Gateway",
    description="HTTP gateway for broker login, holdings, quotes and price alerts",
    version=__version__,
    lifespan=lifespan,
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# Registered before CORS so that CORS also wraps these responses
@app.middleware("http")
async def catch_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as e:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {e}")
        return _error(500, str(e) or "An unknown error occurred")


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return _error(404, "Not Found")
    if exc.status_code == 405:
        if request.method == "OPTIONS":
            return Response(status_code=200)
        # Wrong methods are reported like any other failure
        logger.error(f"Method {request.method} not allowed on {request.url.path}")
        return _error(500, "Method not allowed")
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    logger.error(f"Invalid request to {request.url.path}: {problems}")
    return _error(500, f"Invalid request: {problems}")


@app.exception_handler(GatewayError)
async def gateway_exception_handler(request: Request, exc: GatewayError):
    logger.error(f"Error handling {request.method} {request.url.path}: {exc}")
    return _error(500, str(exc))


# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(portfolio.router)
app.include_router(market.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Portfolio Gateway",
        "version": __version__,
        "status": "operational",
        "dry_run": settings.dry_run
    }


def run() -> None:
    """Validate configuration and serve the app with uvicorn."""
    import uvicorn

    try:
        settings.validate()
    except ConfigurationError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    logger.info("Configuration loaded successfully")
    uvicorn.run(
        "portfolio_gateway.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
