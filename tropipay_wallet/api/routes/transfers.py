"""Transfer routes: simulate, request second factor, execute"""

from fastapi import APIRouter, Depends

from tropipay_wallet.api.dependencies import get_wallet_service
from tropipay_wallet.api.schemas import SmsRequest, TransferRequest
from tropipay_wallet.application.wallet_service import WalletService

router = APIRouter()


@router.post("/simulate/{user_id}")
async def simulate_transfer(
    user_id: int,
    body: TransferRequest,
    service: WalletService = Depends(get_wallet_service),
):
    """Quote a transfer; amounts in and out are display units"""
    return await service.simulate_transfer(user_id, body.to_payload())


@router.post("/request-sms/{user_id}")
async def request_sms(
    user_id: int,
    body: SmsRequest | None = None,
    service: WalletService = Depends(get_wallet_service),
):
    phone_number = body.phone_number if body else None
    return await service.request_transfer_sms(user_id, phone_number)


@router.post("/execute/{user_id}")
async def execute_transfer(
    user_id: int,
    body: TransferRequest,
    service: WalletService = Depends(get_wallet_service),
):
    """Re-simulate and execute; securityCode is routed by the user's 2FA type"""
    return await service.execute_transfer(user_id, body.to_payload())
