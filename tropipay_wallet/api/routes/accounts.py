"""GET /accounts/{user_id} and GET /movements/{user_id}/{account_id}"""

from fastapi import APIRouter, Depends, Query

from tropipay_wallet.api.dependencies import get_wallet_service
from tropipay_wallet.application.wallet_service import WalletService

router = APIRouter()


@router.get("/accounts/{user_id}")
async def get_accounts(user_id: int, service: WalletService = Depends(get_wallet_service)):
    """Accounts in display units; falls back to the cached list if TropiPay fails"""
    return await service.get_accounts(user_id)


@router.get("/movements/{user_id}/{account_id}")
async def get_movements(
    user_id: int,
    account_id: str,
    offset: int = Query(0),
    limit: int = Query(20),
    service: WalletService = Depends(get_wallet_service),
):
    return await service.get_movements(user_id, account_id, offset=offset, limit=limit)
