"""
Input validation for amounts, currencies and bank identifiers.

The predicates are pure and return booleans. The ``check_*`` helpers collect
failures into a field -> message map and raise ValidationError, so routes
and SDK calls fail before any network request is made.
"""

import math
import re
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from tropipay_wallet.domain.constants import (
    BENEFICIARY_TYPES,
    IBAN_LENGTHS,
    IBAN_REQUIRED_COUNTRIES,
    SUPPORTED_CURRENCIES,
)
from tropipay_wallet.domain.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
IBAN_PATTERN = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]{1,30}$")
SWIFT_PATTERN = re.compile(r"^[A-Z]{4}[A-Z]{2}[A-Z0-9]{2}([A-Z0-9]{3})?$")

MIN_TRANSFER_AMOUNT = 0.01


def validate_amount(amount: Any, min_value: float = 0, max_value: Optional[float] = None) -> bool:
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        return False
    if isinstance(amount, float) and not math.isfinite(amount):
        return False
    if isinstance(amount, Decimal) and not amount.is_finite():
        return False
    if amount < min_value:
        return False
    if max_value is not None and amount > max_value:
        return False
    return True


def validate_currency(currency: Any) -> bool:
    return isinstance(currency, str) and currency in SUPPORTED_CURRENCIES


def validate_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


def validate_phone(phone: Any) -> bool:
    if not isinstance(phone, str):
        return False
    digits = re.sub(r"\D", "", phone)
    return 7 <= len(digits) <= 15


def validate_iban(iban: Any) -> bool:
    """Format check plus exact per-country length; unknown countries are invalid"""
    if not isinstance(iban, str):
        return False
    clean = re.sub(r"\s", "", iban).upper()
    if not IBAN_PATTERN.match(clean):
        return False
    expected_length = IBAN_LENGTHS.get(clean[:2])
    return expected_length is not None and len(clean) == expected_length


def validate_swift(swift: Any) -> bool:
    if not isinstance(swift, str):
        return False
    clean = re.sub(r"\s", "", swift).upper()
    return bool(SWIFT_PATTERN.match(clean))


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def check_transfer_fields(
    from_account_id: Any,
    beneficiary_id: Any,
    amount: Any,
    currency: Any = None,
) -> None:
    """
    Reject a transfer request before it reaches the network.

    Raises:
        ValidationError: with one message per failing field
    """
    errors: Dict[str, str] = {}
    if _is_blank(from_account_id):
        errors["fromAccountId"] = "From account ID is required"
    if _is_blank(beneficiary_id):
        errors["beneficiaryId"] = "Beneficiary ID is required"
    if not validate_amount(amount, min_value=MIN_TRANSFER_AMOUNT):
        errors["amount"] = "Amount must be a positive number of at least 0.01"
    if currency and not validate_currency(currency):
        errors["currency"] = f"Invalid currency: {currency}"
    if errors:
        raise ValidationError("Invalid transfer data", errors=errors)


def check_beneficiary_fields(data: Mapping[str, Any]) -> None:
    """
    Advisory checks before creating a beneficiary.

    Raises:
        ValidationError: with one message per failing field
    """
    errors: Dict[str, str] = {}
    beneficiary_type = data.get("type")
    country = data.get("country")
    account_number = data.get("accountNumber")

    if beneficiary_type not in BENEFICIARY_TYPES:
        errors["type"] = "Valid beneficiary type is required (INTERNAL or EXTERNAL)"
    if _is_blank(data.get("firstName")):
        errors["firstName"] = "First name is required"
    if _is_blank(data.get("lastName")):
        errors["lastName"] = "Last name is required"
    if _is_blank(account_number):
        errors["accountNumber"] = "Account number is required"
    if _is_blank(data.get("currency")):
        errors["currency"] = "Currency is required"
    if not isinstance(country, str) or len(country) != 2:
        errors["country"] = "Valid country code is required (ISO 2-letter)"

    if beneficiary_type == "EXTERNAL":
        swift_code = (data.get("bankDetails") or {}).get("swiftCode")
        if swift_code and not validate_swift(swift_code):
            errors["bankDetails.swiftCode"] = "Valid SWIFT/BIC code is required"
        if (
            isinstance(country, str)
            and country.upper() in IBAN_REQUIRED_COUNTRIES
            and "accountNumber" not in errors
            and not validate_iban(account_number)
        ):
            errors["accountNumber"] = "Valid IBAN is required for this country"

    if data.get("phoneNumber") and not validate_phone(data["phoneNumber"]):
        errors["phoneNumber"] = "Valid phone number format is required"
    if data.get("email") and not validate_email(data["email"]):
        errors["email"] = "Valid email address format is required"

    if errors:
        raise ValidationError("Invalid beneficiary data", errors=errors)


def check_pagination(offset: Any, limit: Any, max_limit: int = 100) -> None:
    errors: Dict[str, str] = {}
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        errors["offset"] = "Offset must be a non-negative number"
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= max_limit:
        errors["limit"] = f"Limit must be between 1 and {max_limit}"
    if errors:
        raise ValidationError("Invalid pagination", errors=errors)


def validate_config(config: Mapping[str, Any]) -> None:
    """
    Check SDK construction parameters.

    Raises:
        ValidationError: with one message per failing field
    """
    errors: Dict[str, str] = {}
    if _is_blank(config.get("client_id")):
        errors["client_id"] = "Client ID is required"
    if _is_blank(config.get("client_secret")):
        errors["client_secret"] = "Client secret is required"
    environment = config.get("environment")
    if environment is not None and environment not in ("development", "production"):
        errors["environment"] = "Environment must be development or production"
    timeout = config.get("timeout")
    if timeout is not None and not validate_amount(timeout, min_value=1):
        errors["timeout"] = "Timeout must be a positive number of seconds"
    if errors:
        raise ValidationError("Invalid SDK configuration", errors=errors)
