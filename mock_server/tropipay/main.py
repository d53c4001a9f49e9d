"""In-memory stand-in for the TropiPay API, used in development and end-to-end tests"""

import copy
import secrets
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

API_PREFIX = "/api/v3"
TOKEN_TTL_SECONDS = 3600
VALID_SECURITY_CODE = "123456"

CLIENTS = {"test-client": "test-secret"}

PROFILE = {
    "id": "usr-0001",
    "name": "Ana",
    "surname": "Perez",
    "email": "ana@example.com",
    "phone": "+34600000000",
    "twoFaType": 1,
}

INITIAL_ACCOUNTS = [
    {
        "id": "acc-usd",
        "accountId": "acc-usd",
        "currency": "USD",
        "balance": 150000,
        "available": 145000,
        "blocked": 5000,
        "pendingIn": 0,
        "pendingOut": 0,
        "isDefault": True,
        "status": "ACTIVE",
    },
    {
        "id": "acc-eur",
        "accountId": "acc-eur",
        "currency": "EUR",
        "balance": 50000,
        "blocked": 0,
        "pendingIn": 0,
        "pendingOut": 0,
        "isDefault": False,
        "status": "ACTIVE",
    },
]

INITIAL_BENEFICIARIES = [
    {
        "id": "ben-001",
        "type": 0,
        "alias": "Carlos Lopez",
        "firstName": "Carlos",
        "lastName": "Lopez",
        "accountNumber": "TP-000123",
        "currency": "USD",
        "country": "CU",
        "isVerified": True,
    },
    {
        "id": "ben-002",
        "type": 1,
        "alias": "Maria Garcia",
        "firstName": "Maria",
        "lastName": "Garcia",
        "accountNumber": "ES9121000418450200051332",
        "currency": "EUR",
        "country": "ES",
        "bankDetails": {"name": "CaixaBank", "swiftCode": "CAIXESBBXXX"},
        "isVerified": False,
    },
]

INITIAL_MOVEMENTS = [
    {"id": "mov-1", "type": "DEPOSIT", "amount": 100000, "currency": "USD", "status": "COMPLETED",
     "balanceBefore": 50000, "balanceAfter": 150000, "createdAt": "2026-10-01T10:00:00Z"},
    {"id": "mov-2", "type": "TRANSFER_OUT", "amount": 2500, "currency": "USD", "status": "COMPLETED",
     "balanceBefore": 150000, "balanceAfter": 147500, "createdAt": "2026-10-02T10:00:00Z"},
    {"id": "mov-3", "type": "FEE", "amount": 150, "currency": "USD", "status": "COMPLETED",
     "balanceBefore": 147500, "balanceAfter": 147350, "createdAt": "2026-10-02T10:00:01Z"},
]

state: Dict[str, Any] = {}


def reset() -> None:
    """Restore the initial data set"""
    state.clear()
    state.update(
        tokens={},
        accounts=copy.deepcopy(INITIAL_ACCOUNTS),
        beneficiaries=copy.deepcopy(INITIAL_BENEFICIARIES),
        movements=copy.deepcopy(INITIAL_MOVEMENTS),
        transfers={},
        sms_requests=[],
        profile=copy.deepcopy(PROFILE),
    )


reset()

app = FastAPI(title="Mock TropiPay API", version="3.0.0")
api = APIRouter(prefix=API_PREFIX)


def error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, **extra})


def authorized(request: Request) -> bool:
    header = request.headers.get("Authorization", "")
    token = header[len("Bearer "):] if header.startswith("Bearer ") else None
    expires = state["tokens"].get(token)
    return expires is not None and expires > time.time()


def find_account(account_id: str) -> Optional[Dict[str, Any]]:
    return next((a for a in state["accounts"] if a["accountId"] == account_id), None)


def available(account: Dict[str, Any]) -> int:
    return account.get("available", account["balance"])


def fee_for(amount: int) -> int:
    return max(amount // 100, 50)


@app.get("/health")
def health(): return {"status": "ok"}


@api.post("/access/token")
async def access_token(request: Request):
    body = await request.json()
    if CLIENTS.get(body.get("client_id")) != body.get("client_secret"):
        return error(401, "Invalid client credentials")
    token = secrets.token_hex(16)
    state["tokens"][token] = time.time() + TOKEN_TTL_SECONDS
    return {"access_token": token, "token_type": "Bearer", "expires_in": TOKEN_TTL_SECONDS}


@api.post("/auth/logout")
def logout(request: Request):
    token = request.headers.get("Authorization", "")[len("Bearer "):]
    state["tokens"].pop(token, None)
    return {"success": True}


@api.get("/users/profile")
def profile(request: Request):
    if not authorized(request):
        return error(401, "Token expired")
    return state["profile"]


@api.post("/users/sendSecurityCode")
async def send_security_code(request: Request):
    if not authorized(request):
        return error(401, "Token expired")
    state["sms_requests"].append(await request.json())
    return {"success": True}


@api.get("/accounts/")
def accounts(request: Request):
    if not authorized(request):
        return error(401, "Token expired")
    return state["accounts"]


@api.get("/accounts/{account_id}/movements")
def movements(request: Request, account_id: str, offset: int = 0, limit: int = 20):
    if not authorized(request):
        return error(401, "Token expired")
    if find_account(account_id) is None:
        return error(404, "Account not found")
    rows = [m for m in state["movements"] if m["currency"] == find_account(account_id)["currency"]]
    return {"count": len(rows), "rows": rows[offset:offset + limit]}


@api.get("/deposit_accounts/")
def beneficiaries(request: Request, offset: int = 0, limit: int = 50):
    if not authorized(request):
        return error(401, "Token expired")
    rows = state["beneficiaries"]
    return {"count": len(rows), "rows": rows[offset:offset + limit]}


@api.post("/deposit_accounts/")
async def create_beneficiary(request: Request):
    if not authorized(request):
        return error(401, "Token expired")
    body = await request.json()
    if not body.get("accountNumber"):
        return error(422, "Beneficiary validation failed", errors={"accountNumber": "required"})
    beneficiary = {**body, "id": f"ben-{len(state['beneficiaries']) + 1:03d}"}
    state["beneficiaries"].append(beneficiary)
    return beneficiary


@api.post("/deposit_accounts/validate_account_number")
async def validate_account_number(request: Request):
    if not authorized(request):
        return error(401, "Token expired")
    body = await request.json()
    if len(body.get("accountNumber", "")) < 6:
        return error(400, "Invalid account number")
    return {"valid": True, "accountNumber": body["accountNumber"]}


@api.post("/deposit_accounts/Validate_Swift")
async def validate_swift(request: Request):
    if not authorized(request):
        return error(401, "Token expired")
    body = await request.json()
    if len(body.get("swiftCode", "")) not in (8, 11):
        return error(400, "Invalid SWIFT code")
    return {"valid": True, "bankName": "Mock Bank", "swiftCode": body["swiftCode"]}


@api.put("/deposit_accounts/{beneficiary_id}")
async def update_beneficiary(request: Request, beneficiary_id: str):
    if not authorized(request):
        return error(401, "Token expired")
    beneficiary = next((b for b in state["beneficiaries"] if b["id"] == beneficiary_id), None)
    if beneficiary is None:
        return error(404, "Beneficiary not found")
    beneficiary.update(await request.json())
    return beneficiary


@api.delete("/deposit_accounts/{beneficiary_id}")
def delete_beneficiary(request: Request, beneficiary_id: str):
    if not authorized(request):
        return error(401, "Token expired")
    before = len(state["beneficiaries"])
    state["beneficiaries"] = [b for b in state["beneficiaries"] if b["id"] != beneficiary_id]
    if len(state["beneficiaries"]) == before:
        return error(404, "Beneficiary not found")
    return {"success": True}


@api.post("/booking/payout/simulate")
async def simulate(request: Request):
    if not authorized(request):
        return error(401, "Token expired")
    body = await request.json()
    account = find_account(body.get("accountId"))
    if account is None:
        return error(404, "Account not found")
    amount = int(body.get("amount", 0))
    fee = fee_for(amount)
    if amount + fee > available(account):
        return error(400, "Insufficient funds", code="INSUFFICIENT_FUNDS",
                     available=available(account), required=amount + fee)
    return {
        "amountToPay": amount + fee,
        "amountToGet": amount,
        "fees": fee,
        "exchangeRate": 1,
        "requires2FA": True,
        "accountLeftBalance": available(account) - amount - fee,
    }


@api.post("/booking/payout")
async def payout(request: Request):
    if not authorized(request):
        return error(401, "Token expired")
    body = await request.json()
    account = find_account(body.get("accountId"))
    if account is None:
        return error(404, "Account not found")
    code = body.get("smsCode") or body.get("googleAuthCode")
    if not code:
        return error(400, "2FA verification required", code="2FA_REQUIRED")
    if code != VALID_SECURITY_CODE:
        return error(400, "Invalid security code", code="INVALID_2FA_CODE")
    amount = int(body.get("amount", 0))
    fee = fee_for(amount)
    if amount + fee > available(account):
        return error(400, "Insufficient funds", code="INSUFFICIENT_FUNDS",
                     available=available(account), required=amount + fee)

    account["balance"] -= amount + fee
    if "available" in account:
        account["available"] -= amount + fee
    transfer = {
        "id": f"TRF-{len(state['transfers']) + 1:05d}",
        "reference": body.get("reference"),
        "status": "PROCESSING",
        "amount": amount,
        "destinationAmount": amount,
        "fees": fee,
        "currency": body.get("currency"),
        "beneficiary": {"id": body.get("destinationAccount")},
    }
    state["transfers"][transfer["id"]] = transfer
    return transfer


@api.get("/transfers")
def transfers(request: Request, offset: int = 0, limit: int = 20):
    if not authorized(request):
        return error(401, "Token expired")
    rows = list(state["transfers"].values())
    return {"count": len(rows), "rows": rows[offset:offset + limit]}


@api.get("/transfers/{transfer_id}")
def transfer(request: Request, transfer_id: str):
    if not authorized(request):
        return error(401, "Token expired")
    if transfer_id not in state["transfers"]:
        return error(404, "Transfer not found")
    return state["transfers"][transfer_id]


@api.post("/transfers/{transfer_id}/cancel")
def cancel_transfer(request: Request, transfer_id: str):
    if not authorized(request):
        return error(401, "Token expired")
    found = state["transfers"].get(transfer_id)
    if found is None:
        return error(404, "Transfer not found")
    if found["status"] != "PROCESSING":
        return error(409, "Transfer can no longer be cancelled")
    found["status"] = "CANCELLED"
    return found


app.include_router(api)
