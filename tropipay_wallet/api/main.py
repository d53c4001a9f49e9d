"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from tropipay_wallet.api.errors import (
    request_validation_handler,
    tropipay_error_handler,
    unhandled_error_handler,
)
from tropipay_wallet.api.middleware import RequestIDMiddleware, MetricsMiddleware
from tropipay_wallet.api.routes import accounts, auth, beneficiaries, transfers
from tropipay_wallet.api.schemas import HealthResponse
from tropipay_wallet.application.wallet_service import WalletService
from tropipay_wallet.config import Settings, settings as default_settings
from tropipay_wallet.domain.exceptions import TropiPayError
from tropipay_wallet.infrastructure.observability.logging import setup_logging
from tropipay_wallet.utils.date_utils import utcnow

# Setup structured logging
setup_logging(default_settings.log_level)


def create_app(wallet_service: WalletService | None = None, config: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    config = config or default_settings
    service = wallet_service or WalletService(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await service.init()
        yield
        await service.close()

    app = FastAPI(
        title="TropiPay Wallet Backend",
        description="Wallet proxy for the TropiPay payments API",
        version=config.version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.wallet_service = service

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TropiPayError, tropipay_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Health check endpoint
    @app.get("/health", response_model=HealthResponse)
    def health_check():
        return {
            "status": "OK",
            "timestamp": utcnow().isoformat(),
            "version": config.version,
            "service": config.service_name,
            "environment": config.tropipay_default_env,
            "tropiPayUrl": config.get_api_url(config.tropipay_default_env),
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/auth", tags=["auth"])
    app.include_router(accounts.router, tags=["accounts"])
    app.include_router(beneficiaries.router, prefix="/beneficiaries", tags=["beneficiaries"])
    app.include_router(transfers.router, prefix="/transfer", tags=["transfers"])

    return app


app = create_app()
