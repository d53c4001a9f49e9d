"""SDK accounts module: balances, movements and statistics in display units"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from tropipay_wallet.domain.constants import DEFAULT_CURRENCY, MOVEMENT_TYPES, Endpoints
from tropipay_wallet.domain.exceptions import APIError, TropiPayError, ValidationError
from tropipay_wallet.domain.models import Account, Movement, extract_items
from tropipay_wallet.domain.money import Money
from tropipay_wallet.domain.validation import check_pagination, validate_amount, validate_currency
from tropipay_wallet.utils.date_utils import days_ago, to_iso_date, utcnow

SENT_TYPES = ("TRANSFER_OUT", "WITHDRAWAL")
RECEIVED_TYPES = ("TRANSFER_IN", "DEPOSIT")
FEE_TYPES = ("FEE",)

STATISTICS_PAGE_SIZE = 100
STATISTICS_MAX_PAGES = 20


def account_not_found(account_id: str) -> TropiPayError:
    return TropiPayError(f"Account not found: {account_id}", code="ACCOUNT_NOT_FOUND", status_code=404)


class AccountsModule:
    def __init__(self, sdk):
        self.sdk = sdk
        self._api = sdk.token_manager

    async def fetch(self) -> List[Account]:
        payload = await self._api.get(Endpoints.ACCOUNTS)
        return [Account.from_api(raw) for raw in extract_items(payload)]

    async def get_all(self) -> List[Dict[str, Any]]:
        return [account.to_dict() for account in await self.fetch()]

    async def _find(self, account_id: str) -> Account:
        if not isinstance(account_id, str) or not account_id:
            raise ValidationError("Account ID is required", errors={"accountId": "Account ID is required"})
        for account in await self.fetch():
            if account.account_id == account_id:
                return account
        raise account_not_found(account_id)

    async def get_by_id(self, account_id: str) -> Dict[str, Any]:
        """
        Raises:
            TropiPayError: code ACCOUNT_NOT_FOUND when no account matches
        """
        return (await self._find(account_id)).to_dict()

    async def get_by_currency(self, currency: str) -> List[Dict[str, Any]]:
        if not validate_currency(currency):
            raise ValidationError(f"Invalid currency: {currency}", errors={"currency": "Unsupported currency"})
        return [account.to_dict() for account in await self.fetch() if account.currency == currency]

    async def get_default(self, currency: str = DEFAULT_CURRENCY) -> Optional[Dict[str, Any]]:
        """Explicit default account for the currency, else the first one, else None"""
        accounts = await self.get_by_currency(currency)
        for account in accounts:
            if account.get("isDefault"):
                return account
        return accounts[0] if accounts else None

    async def fetch_movements(
        self,
        account_id: str,
        offset: int = 0,
        limit: int = 20,
        start_date: date | datetime | None = None,
        end_date: date | datetime | None = None,
        movement_type: str | None = None,
    ) -> List[Movement]:
        if not isinstance(account_id, str) or not account_id:
            raise ValidationError("Account ID is required", errors={"accountId": "Account ID is required"})
        check_pagination(offset, limit)
        if movement_type and movement_type not in MOVEMENT_TYPES:
            raise ValidationError(
                f"Invalid movement type: {movement_type}", errors={"type": "Unknown movement type"}
            )

        params = {
            "offset": offset,
            "limit": limit,
            "start_date": to_iso_date(start_date),
            "end_date": to_iso_date(end_date),
            "type": movement_type,
        }
        try:
            payload = await self._api.get(Endpoints.ACCOUNT_MOVEMENTS.format(account_id=account_id), params=params)
        except APIError as e:
            if e.status_code == 404:
                raise account_not_found(account_id) from e
            raise
        return [Movement.from_api(raw) for raw in extract_items(payload)]

    async def get_movements(self, account_id: str, **options: Any) -> List[Dict[str, Any]]:
        """
        Paginated movements in display units.

        Options: offset (>= 0), limit (1-100), start_date, end_date, movement_type
        """
        return [movement.to_dict() for movement in await self.fetch_movements(account_id, **options)]

    async def get_balance(self, account_id: str) -> Dict[str, Any]:
        account = await self._find(account_id)
        return {
            "total": account.balance.display,
            "available": account.available.display,
            "blocked": account.blocked.display,
            "pendingIn": account.pending_in.display,
            "pendingOut": account.pending_out.display,
            "currency": account.currency,
            "lastUpdated": utcnow().isoformat(),
        }

    async def check_balance(self, account_id: str, amount: float) -> Dict[str, Any]:
        if not validate_amount(amount) or amount <= 0:
            raise ValidationError("Amount must be a positive number", errors={"amount": "Must be positive"})
        account = await self._find(account_id)
        required = Money.from_display(amount, account.currency)
        sufficient = required <= account.available
        shortfall = Money.zero(account.currency) if sufficient else required - account.available
        return {
            "sufficient": sufficient,
            "available": account.available.display,
            "required": required.display,
            "shortfall": shortfall.display,
        }

    async def get_statistics(self, account_id: str, days: int = 30) -> Dict[str, Any]:
        """Sent, received and fee totals over the last ``days`` days"""
        movements: List[Movement] = []
        start_date = days_ago(days)
        for page in range(STATISTICS_MAX_PAGES):
            batch = await self.fetch_movements(
                account_id,
                offset=page * STATISTICS_PAGE_SIZE,
                limit=STATISTICS_PAGE_SIZE,
                start_date=start_date,
            )
            movements.extend(batch)
            if len(batch) < STATISTICS_PAGE_SIZE:
                break

        currency = movements[0].currency if movements else DEFAULT_CURRENCY
        sent = received = fees = Money.zero(currency)
        for movement in movements:
            amount = Money(abs(movement.amount.minor), currency)
            if movement.type in SENT_TYPES:
                sent = sent + amount
            elif movement.type in RECEIVED_TYPES:
                received = received + amount
            elif movement.type in FEE_TYPES:
                fees = fees + amount

        count = len(movements)
        average = Money((sent + received).minor // count, currency) if count else Money.zero(currency)
        return {
            "period": f"{days} days",
            "transactionCount": count,
            "totalSent": sent.display,
            "totalReceived": received.display,
            "totalFees": fees.display,
            "avgTransactionAmount": average.display,
            "currency": currency,
        }

    async def refresh(self) -> List[Dict[str, Any]]:
        return await self.get_all()
