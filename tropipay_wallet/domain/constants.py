"""Static reference data: currencies, IBAN lengths, endpoint paths"""

import re
from typing import Dict, List, Pattern, Tuple

SUPPORTED_CURRENCIES: Dict[str, Dict[str, object]] = {
    "USD": {"code": "USD", "name": "US Dollar", "symbol": "$", "decimals": 2},
    "EUR": {"code": "EUR", "name": "Euro", "symbol": "€", "decimals": 2},
    "CUP": {"code": "CUP", "name": "Cuban Peso", "symbol": "CUP", "decimals": 2},
}

DEFAULT_CURRENCY = "USD"

BENEFICIARY_TYPES = ("INTERNAL", "EXTERNAL")

MOVEMENT_TYPES = ("TRANSFER_IN", "TRANSFER_OUT", "DEPOSIT", "WITHDRAWAL", "FEE", "REFUND")

# Second factor types as reported in the user profile (twoFaType)
TWO_FA_SMS = 1
TWO_FA_AUTHENTICATOR = 2

COUNTRIES: Dict[str, Dict[str, str]] = {
    "US": {"name": "United States", "currency": "USD"},
    "ES": {"name": "Spain", "currency": "EUR"},
    "CU": {"name": "Cuba", "currency": "CUP"},
    "MX": {"name": "Mexico", "currency": "USD"},
    "CA": {"name": "Canada", "currency": "USD"},
    "FR": {"name": "France", "currency": "EUR"},
    "IT": {"name": "Italy", "currency": "EUR"},
    "DE": {"name": "Germany", "currency": "EUR"},
    "GB": {"name": "United Kingdom", "currency": "EUR"},
}

# Countries whose external beneficiaries must carry an IBAN as account number
IBAN_REQUIRED_COUNTRIES = ("ES", "FR", "DE", "IT", "NL", "BE", "PT")

IBAN_LENGTHS: Dict[str, int] = {
    "AD": 24, "AE": 23, "AL": 28, "AT": 20, "AZ": 28, "BA": 20, "BE": 16, "BG": 22,
    "BH": 22, "BR": 29, "BY": 28, "CH": 21, "CR": 22, "CY": 28, "CZ": 24, "DE": 22,
    "DK": 18, "DO": 28, "EE": 20, "EG": 29, "ES": 24, "FI": 18, "FO": 18, "FR": 27,
    "GB": 22, "GE": 22, "GI": 23, "GL": 18, "GR": 27, "GT": 28, "HR": 21, "HU": 28,
    "IE": 22, "IL": 23, "IS": 26, "IT": 27, "JO": 30, "KW": 30, "KZ": 20, "LB": 28,
    "LC": 32, "LI": 21, "LT": 20, "LU": 20, "LV": 21, "MC": 27, "MD": 24, "ME": 22,
    "MK": 19, "MR": 27, "MT": 31, "MU": 30, "NL": 18, "NO": 15, "PK": 24, "PL": 28,
    "PS": 29, "PT": 25, "QA": 29, "RO": 24, "RS": 22, "SA": 24, "SE": 24, "SI": 19,
    "SK": 24, "SM": 27, "TN": 24, "TR": 26, "UA": 29, "VG": 24, "XK": 20,
}


class Endpoints:
    """TropiPay API paths, relative to the environment base URL"""

    ACCESS_TOKEN = "/access/token"
    USER_PROFILE = "/users/profile"
    LOGOUT = "/auth/logout"
    ACCOUNTS = "/accounts/"
    ACCOUNT_MOVEMENTS = "/accounts/{account_id}/movements"
    BENEFICIARIES = "/deposit_accounts/"
    BENEFICIARY = "/deposit_accounts/{beneficiary_id}"
    VALIDATE_ACCOUNT = "/deposit_accounts/validate_account_number"
    VALIDATE_SWIFT = "/deposit_accounts/Validate_Swift"
    TRANSFER_SIMULATE = "/booking/payout/simulate"
    TRANSFER_EXECUTE = "/booking/payout"
    TRANSFERS = "/transfers"
    TRANSFER = "/transfers/{transfer_id}"
    TRANSFER_CANCEL = "/transfers/{transfer_id}/cancel"
    SECURITY_CODE = "/users/sendSecurityCode"


def _template_pattern(template: str) -> Pattern[str]:
    parts = re.split(r"\{[a-z_]+\}", template)
    return re.compile("^" + "[^/]+".join(re.escape(part) for part in parts) + "$")


# Fixed paths first so "/deposit_accounts/validate_account_number" is not read as an id
_ENDPOINT_TEMPLATES: List[Tuple[str, Pattern[str]]] = [
    (template, _template_pattern(template))
    for template in sorted(
        (value for name, value in vars(Endpoints).items() if name.isupper()),
        key=lambda template: "{" in template,
    )
]


def endpoint_template(path: str) -> str:
    """Endpoint template a formatted path was built from; "other" when unknown"""
    for template, pattern in _ENDPOINT_TEMPLATES:
        if pattern.match(path):
            return template
    return "other"
