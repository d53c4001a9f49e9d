"""Authentication routes: login, logout, environments"""

import logging

from fastapi import APIRouter, Depends

from tropipay_wallet.api.dependencies import get_request_id, get_wallet_service
from tropipay_wallet.api.schemas import EnvironmentsResponse, LoginRequest
from tropipay_wallet.application.wallet_service import WalletService

router = APIRouter()


@router.get("/environments", response_model=EnvironmentsResponse)
def list_environments(service: WalletService = Depends(get_wallet_service)):
    return service.environments()


@router.post("/login")
async def login(
    body: LoginRequest,
    service: WalletService = Depends(get_wallet_service),
    request_id: str = Depends(get_request_id),
):
    """
    Authenticate with TropiPay client credentials.

    Returns:
        {user: {id, client_id, profile, accounts, token, expires_at}, environment, apiUrl}
    """
    result = await service.authenticate_user(body.client_id, body.client_secret, body.environment)
    logging.info(
        "Login completed",
        extra={"request_id": request_id, "user_id": result["user"]["id"], "environment": result["environment"]},
    )
    return result


@router.post("/logout/{user_id}")
async def logout(user_id: int, service: WalletService = Depends(get_wallet_service)):
    await service.logout_user(user_id)
    return {"success": True}
