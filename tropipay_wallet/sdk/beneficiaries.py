"""SDK beneficiaries module"""

from typing import Any, Dict, List, Mapping

from tropipay_wallet.domain.constants import BENEFICIARY_TYPES, Endpoints
from tropipay_wallet.domain.exceptions import APIError, TropiPayError, ValidationError
from tropipay_wallet.domain.models import Beneficiary, extract_items
from tropipay_wallet.domain.validation import check_beneficiary_fields, check_pagination

OPTIONAL_TEXT_FIELDS = ("email", "phoneNumber", "address", "city", "postalCode", "relationship", "purpose")


def beneficiary_not_found(beneficiary_id: str) -> TropiPayError:
    return TropiPayError(
        f"Beneficiary not found: {beneficiary_id}", code="BENEFICIARY_NOT_FOUND", status_code=404
    )


def prepare_beneficiary_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Trim and normalize validated beneficiary fields for the create call"""
    first_name = data["firstName"].strip()
    last_name = data["lastName"].strip()
    payload: Dict[str, Any] = {
        "type": data["type"],
        "firstName": first_name,
        "lastName": last_name,
        "name": f"{first_name} {last_name}",
        "accountNumber": data["accountNumber"].strip(),
        "currency": data["currency"].upper(),
        "country": data["country"].upper(),
        "isVerified": False,
    }
    for key in OPTIONAL_TEXT_FIELDS:
        if data.get(key):
            payload[key] = str(data[key]).strip()

    bank_details = data.get("bankDetails")
    if data["type"] == "EXTERNAL" and bank_details:
        payload["bankDetails"] = {
            "name": (bank_details.get("name") or "").strip() or None,
            "swiftCode": (bank_details.get("swiftCode") or "").strip().upper() or None,
            "routingNumber": (bank_details.get("routingNumber") or "").strip() or None,
            "address": (bank_details.get("address") or "").strip() or None,
        }
    return payload


def _require_id(beneficiary_id: Any) -> None:
    if not isinstance(beneficiary_id, str) or not beneficiary_id:
        raise ValidationError("Beneficiary ID is required", errors={"beneficiaryId": "Beneficiary ID is required"})


class BeneficiariesModule:
    def __init__(self, sdk):
        self.sdk = sdk
        self._api = sdk.token_manager

    async def fetch(
        self,
        offset: int = 0,
        limit: int = 50,
        type: str | None = None,
        currency: str | None = None,
        country: str | None = None,
        search: str | None = None,
    ) -> List[Beneficiary]:
        check_pagination(offset, limit)
        if type and type not in BENEFICIARY_TYPES:
            raise ValidationError(f"Invalid beneficiary type: {type}", errors={"type": "Unknown beneficiary type"})
        params = {
            "offset": offset,
            "limit": limit,
            "type": type,
            "currency": currency,
            "country": country,
            "search": search,
        }
        payload = await self._api.get(Endpoints.BENEFICIARIES, params=params)
        return [Beneficiary.from_api(raw) for raw in extract_items(payload)]

    async def get_all(self, **options: Any) -> List[Dict[str, Any]]:
        return [beneficiary.to_dict() for beneficiary in await self.fetch(**options)]

    async def get_by_id(self, beneficiary_id: str) -> Dict[str, Any]:
        _require_id(beneficiary_id)
        for beneficiary in await self.fetch(limit=100):
            if beneficiary.id == beneficiary_id:
                return beneficiary.to_dict()
        raise beneficiary_not_found(beneficiary_id)

    async def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate and create a beneficiary.

        Raises:
            ValidationError: invalid fields (before any network call), remote
                validation failure, or a duplicate account
        """
        check_beneficiary_fields(data)
        try:
            raw = await self._api.post(Endpoints.BENEFICIARIES, json=prepare_beneficiary_payload(data))
        except APIError as e:
            if e.status_code == 409:
                raise ValidationError("Beneficiary already exists with this account information") from e
            raise
        created = Beneficiary.from_api(raw or {}).to_dict()
        self.sdk.events.emit("beneficiary_created", created)
        return created

    async def update(self, beneficiary_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        _require_id(beneficiary_id)
        if not data:
            raise ValidationError("Update data is required")
        try:
            raw = await self._api.put(Endpoints.BENEFICIARY.format(beneficiary_id=beneficiary_id), json=dict(data))
        except APIError as e:
            if e.status_code == 404:
                raise beneficiary_not_found(beneficiary_id) from e
            raise
        updated = Beneficiary.from_api(raw or {}).to_dict()
        self.sdk.events.emit("beneficiary_updated", updated)
        return updated

    async def delete(self, beneficiary_id: str) -> Dict[str, Any]:
        _require_id(beneficiary_id)
        try:
            await self._api.delete(Endpoints.BENEFICIARY.format(beneficiary_id=beneficiary_id))
        except APIError as e:
            if e.status_code == 404:
                raise beneficiary_not_found(beneficiary_id) from e
            raise
        self.sdk.events.emit("beneficiary_deleted", {"beneficiaryId": beneficiary_id})
        return {"success": True, "beneficiaryId": beneficiary_id}

    async def validate_account_number(
        self, account_number: str, country: str, bank_code: str | None = None
    ) -> Dict[str, Any]:
        """Remote account number check; a 400 becomes {valid: False, message}"""
        errors = {}
        if not isinstance(account_number, str) or not account_number.strip():
            errors["accountNumber"] = "Account number is required"
        if not isinstance(country, str) or not country.strip():
            errors["country"] = "Country code is required"
        if errors:
            raise ValidationError("Invalid account validation request", errors=errors)

        payload = {"accountNumber": account_number.strip(), "country": country.upper()}
        if bank_code:
            payload["bankCode"] = bank_code
        try:
            return await self._api.post(Endpoints.VALIDATE_ACCOUNT, json=payload)
        except ValidationError as e:
            if e.status_code == 400:
                return {"valid": False, "message": e.message or "Invalid account number"}
            raise

    async def validate_swift_code(self, swift_code: str) -> Dict[str, Any]:
        if not isinstance(swift_code, str) or not swift_code.strip():
            raise ValidationError("SWIFT code is required", errors={"swiftCode": "SWIFT code is required"})
        try:
            return await self._api.post(Endpoints.VALIDATE_SWIFT, json={"swiftCode": swift_code.strip().upper()})
        except ValidationError as e:
            if e.status_code == 400:
                return {"valid": False, "message": e.message or "Invalid SWIFT code"}
            raise

    async def search(self, query: str, **options: Any) -> List[Dict[str, Any]]:
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Search query is required")
        return await self.get_all(search=query.strip(), **options)
