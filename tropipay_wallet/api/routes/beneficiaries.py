"""Beneficiary routes"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query

from tropipay_wallet.api.dependencies import get_wallet_service
from tropipay_wallet.api.schemas import ValidateAccountRequest, ValidateSwiftRequest
from tropipay_wallet.application.wallet_service import WalletService

router = APIRouter()


@router.post("/validate-account/{user_id}")
async def validate_account(
    user_id: int,
    body: ValidateAccountRequest,
    service: WalletService = Depends(get_wallet_service),
):
    result = await service.validate_account_number(user_id, body.to_payload())
    return {"success": True, "data": result}


@router.post("/validate-swift/{user_id}")
async def validate_swift(
    user_id: int,
    body: ValidateSwiftRequest,
    service: WalletService = Depends(get_wallet_service),
):
    result = await service.validate_swift_code(user_id, body.to_payload())
    return {"success": True, "data": result}


@router.get("/{user_id}")
async def get_beneficiaries(
    user_id: int,
    offset: int = Query(0),
    limit: int = Query(20),
    service: WalletService = Depends(get_wallet_service),
):
    return await service.get_beneficiaries(user_id, offset=offset, limit=limit)


@router.post("/{user_id}")
async def create_beneficiary(
    user_id: int,
    body: Dict[str, Any] = Body(...),
    service: WalletService = Depends(get_wallet_service),
):
    return await service.create_beneficiary(user_id, body)
