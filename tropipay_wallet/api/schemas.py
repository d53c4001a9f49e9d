"""Pydantic schemas for API request validation"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase (as sent by the UI) or snake_case field names"""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow", coerce_numbers_to_str=True
    )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login"""

    client_id: str = Field(..., min_length=1, description="TropiPay client id")
    client_secret: str = Field(..., min_length=1, description="TropiPay client secret")
    environment: Optional[str] = Field(None, description="development or production")


class TransferRequest(CamelModel):
    """Request body for POST /transfer/simulate and /transfer/execute (display units)"""

    from_account_id: Optional[str] = None
    account_id: Optional[str] = None
    beneficiary_id: Optional[str] = None
    # Wallet UI sends numeric ids and amountToPay
    depositaccount_id: Optional[str] = Field(None, alias="depositaccountId")
    destination_account: Optional[str] = None
    amount: Any = None
    amount_to_pay: Any = None
    currency: Optional[str] = None
    currency_to_pay: Optional[str] = None
    currency_to_get: Optional[str] = None
    reason: Optional[str] = None
    concept: Optional[str] = None
    description: Optional[str] = None
    reference: Optional[str] = None
    security_code: Optional[str] = None
    sms_code: Optional[str] = None
    google_auth_code: Optional[str] = None


class SmsRequest(CamelModel):
    """Request body for POST /transfer/request-sms"""

    phone_number: Optional[str] = None


class ValidateAccountRequest(CamelModel):
    account_number: Optional[str] = None
    country: Optional[str] = None
    bank_code: Optional[str] = None


class ValidateSwiftRequest(CamelModel):
    swift_code: Optional[str] = None


class EnvironmentInfo(BaseModel):
    key: str
    name: str
    url: str
    description: str


class EnvironmentsResponse(BaseModel):
    """Response for GET /auth/environments"""

    environments: List[EnvironmentInfo]
    current: str
    default: str


class HealthResponse(BaseModel):
    """Response for GET /health"""

    status: str
    timestamp: str
    version: str
    service: str
    environment: str
    tropiPayUrl: str
