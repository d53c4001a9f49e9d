"""Domain models - pure Python dataclasses representing wallet entities"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from tropipay_wallet.domain.money import (
    Money,
    convert_account_fields,
    convert_movement_fields,
    convert_simulation_fields,
    convert_transfer_fields,
)


@dataclass
class Session:
    """Authenticated state owned by a TokenManager"""

    internal_user_id: Optional[int] = None
    external_client_id: Optional[str] = None
    access_token: Optional[str] = None
    token_expires_at: Optional[datetime] = None
    profile: Dict[str, Any] = field(default_factory=dict)
    accounts: List["Account"] = field(default_factory=list)

    def clear(self) -> None:
        self.access_token = None
        self.token_expires_at = None
        self.profile = {}
        self.accounts = []


@dataclass
class Account:
    """Wallet account; balances are held in minor units"""

    account_id: str
    currency: str
    balance: Money
    available: Money
    blocked: Money
    pending_in: Money
    pending_out: Money
    is_default: bool = False
    status: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Account":
        currency = raw.get("currency") or "USD"
        available = raw.get("available")
        return cls(
            account_id=str(raw.get("accountId") or raw.get("id") or ""),
            currency=currency,
            balance=Money.from_minor(raw.get("balance"), currency),
            available=Money.from_minor(available if available is not None else raw.get("balance"), currency),
            blocked=Money.from_minor(raw.get("blocked"), currency),
            pending_in=Money.from_minor(raw.get("pendingIn"), currency),
            pending_out=Money.from_minor(raw.get("pendingOut"), currency),
            is_default=bool(raw.get("isDefault", False)),
            status=raw.get("status"),
            raw=dict(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        return convert_account_fields(self.raw)


def normalize_beneficiary_type(value: Any) -> str:
    """Upstream reports type as 0 for internal accounts, otherwise external"""
    if value in ("INTERNAL", "EXTERNAL"):
        return value
    if value == 0 and not isinstance(value, bool):
        return "INTERNAL"
    return "EXTERNAL"


@dataclass
class Beneficiary:
    """Saved transfer recipient"""

    id: str
    type: str
    name: str
    account_number: Optional[str]
    currency: Optional[str]
    country: Optional[str]
    bank_details: Optional[Dict[str, Any]] = None
    is_verified: bool = False
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Beneficiary":
        name = raw.get("alias") or raw.get("name") or " ".join(
            part for part in (raw.get("firstName"), raw.get("lastName")) if part
        )
        return cls(
            id=str(raw.get("id", "")),
            type=normalize_beneficiary_type(raw.get("type")),
            name=name,
            account_number=raw.get("accountNumber"),
            currency=raw.get("currency"),
            country=raw.get("country") or raw.get("countryDestination"),
            bank_details=raw.get("bankDetails"),
            is_verified=bool(raw.get("isVerified", False)),
            raw=dict(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.raw)
        data["type"] = self.type
        data.setdefault("name", self.name)
        return data


@dataclass
class Movement:
    """Read-only account movement"""

    id: str
    type: Optional[str]
    amount: Money
    currency: str
    status: Optional[str]
    balance_before: Money
    balance_after: Money
    created_at: Optional[str]
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Movement":
        currency = raw.get("currency") or "USD"
        return cls(
            id=str(raw.get("id", "")),
            type=raw.get("type"),
            amount=Money.from_minor(raw.get("amount"), currency),
            currency=currency,
            status=raw.get("status"),
            balance_before=Money.from_minor(raw.get("balanceBefore"), currency),
            balance_after=Money.from_minor(raw.get("balanceAfter"), currency),
            created_at=raw.get("createdAt"),
            raw=dict(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        return convert_movement_fields(self.raw)


@dataclass
class TransferSimulation:
    """Ephemeral simulate response; never reused across parameter changes"""

    amount_to_pay: Money
    amount_to_receive: Money
    fees: Money
    exchange_rate: Optional[float]
    requires_2fa: bool
    account_balance_after: Money
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, raw: Dict[str, Any], currency: str) -> "TransferSimulation":
        receive = raw.get("amountToReceive")
        return cls(
            amount_to_pay=Money.from_minor(raw.get("amountToPay"), currency),
            amount_to_receive=Money.from_minor(receive if receive is not None else raw.get("amountToGet"), currency),
            fees=Money.from_minor(raw.get("fees"), currency),
            exchange_rate=raw.get("exchangeRate") or raw.get("rate"),
            requires_2fa=bool(raw.get("requires2FA", False)),
            account_balance_after=Money.from_minor(raw.get("accountLeftBalance"), currency),
            raw=dict(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        return convert_simulation_fields(self.raw)


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a successful execute call"""

    transfer_id: str
    reference: Optional[str]
    status: Optional[str]
    amount_sent: Money
    amount_received: Money
    fees: Money
    recipient: Optional[Dict[str, Any]]
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False, hash=False)

    @classmethod
    def from_api(cls, raw: Dict[str, Any], currency: str, requested: Money) -> "TransferResult":
        sent = raw.get("amountSent", raw.get("amount"))
        received = raw.get("amountReceived", raw.get("destinationAmount"))
        return cls(
            transfer_id=str(raw.get("id") or raw.get("transferId") or ""),
            reference=raw.get("reference"),
            status=raw.get("status") or raw.get("state"),
            amount_sent=Money.from_minor(sent, currency) if sent is not None else requested,
            amount_received=Money.from_minor(received, currency) if received is not None else requested,
            fees=Money.from_minor(raw.get("fees"), currency),
            recipient=raw.get("recipient") or raw.get("beneficiary"),
            raw=dict(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = convert_transfer_fields(self.raw)
        data.setdefault("transferId", self.transfer_id)
        data["amountSent"] = self.amount_sent.display
        data["amountReceived"] = self.amount_received.display
        data["fees"] = self.fees.display
        return data


def extract_items(payload: Any) -> List[Dict[str, Any]]:
    """List payloads arrive bare or wrapped as {"data": [...]} / {"rows": [...]} / {"items": [...]}"""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "rows", "items"):
            value = payload.get(key)
            if isinstance(value, list):
                return value
            if isinstance(value, dict) and isinstance(value.get("rows"), list):
                return value["rows"]
    return []
