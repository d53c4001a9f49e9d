"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from tropipay_wallet.application.wallet_service import WalletService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_wallet_service(request: Request) -> WalletService:
    """Provide the service instance created with the application"""
    return request.app.state.wallet_service
