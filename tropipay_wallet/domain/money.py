"""Money unit conversion between integer minor units (centavos) and display amounts"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Mapping

from tropipay_wallet.domain.constants import DEFAULT_CURRENCY, SUPPORTED_CURRENCIES

MINOR_UNITS_PER_MAJOR = 100

MOVEMENT_MONEY_FIELDS = ("amount", "balanceBefore", "balanceAfter")
MOVEMENT_OPTIONAL_MONEY_FIELDS = ("destinationAmount", "originalCurrencyAmount", "fee")
SIMULATION_MONEY_FIELDS = ("amountToPay", "amountToGet", "fees", "accountLeftBalance")
SIMULATION_OPTIONAL_MONEY_FIELDS = ("amountToReceive", "amountToGetInEUR", "baseFee", "exchangeFee", "internationalFee")
TRANSFER_OPTIONAL_MONEY_FIELDS = ("amount", "destinationAmount", "fees", "amountSent", "amountReceived")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    if isinstance(value, Decimal):
        return value
    try:
        # str() keeps the shortest repr of floats, so 10.555 stays 10.555
        return Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"Not a monetary amount: {value!r}") from e


def to_minor_units(amount: Any) -> int:
    """
    Convert a display amount to integer minor units.

    Rounds half away from zero on the scaled value:
        10.555 -> 1056, 10.554 -> 1055, None -> 0

    Raises:
        ValueError: amount is not numeric
    """
    if amount is None:
        return 0
    value = _to_decimal(amount)
    if not value.is_finite():
        raise ValueError(f"Not a finite amount: {amount!r}")
    scaled = value * MINOR_UNITS_PER_MAJOR
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_display_units(minor: Any) -> float:
    """Convert minor units to a display amount. Missing or unparseable input is 0."""
    if minor is None:
        return 0.0
    try:
        value = _to_decimal(minor)
    except ValueError:
        return 0.0
    if not value.is_finite():
        return 0.0
    return float(value / MINOR_UNITS_PER_MAJOR)


@dataclass(frozen=True)
class Money:
    """Amount held as integer minor units plus currency code"""

    minor: int
    currency: str = DEFAULT_CURRENCY

    @classmethod
    def from_display(cls, amount: Any, currency: str | None = None) -> "Money":
        return cls(minor=to_minor_units(amount), currency=currency or DEFAULT_CURRENCY)

    @classmethod
    def from_minor(cls, minor: Any, currency: str | None = None) -> "Money":
        if minor is None:
            return cls(minor=0, currency=currency or DEFAULT_CURRENCY)
        return cls(minor=int(_to_decimal(minor)), currency=currency or DEFAULT_CURRENCY)

    @classmethod
    def zero(cls, currency: str | None = None) -> "Money":
        return cls(minor=0, currency=currency or DEFAULT_CURRENCY)

    @property
    def display(self) -> float:
        return to_display_units(self.minor)

    def _check_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise ValueError(f"Currency mismatch: {self.currency} vs {other.currency}")

    def __add__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.minor + other.minor, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.minor - other.minor, self.currency)

    def __lt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.minor < other.minor

    def __le__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.minor <= other.minor

    def __str__(self) -> str:
        return f"{self.display:.2f} {self.currency}"


def _convert(source: Mapping[str, Any], always: Iterable[str], optional: Iterable[str] = ()) -> Dict[str, Any]:
    converted = dict(source)
    for field in always:
        converted[field] = to_display_units(source.get(field))
    for field in optional:
        if source.get(field) is not None:
            converted[field] = to_display_units(source[field])
    return converted


def convert_account_fields(account: Mapping[str, Any]) -> Dict[str, Any]:
    """Account with every balance field in display units (new dict)"""
    converted = _convert(account, ("balance", "blocked", "pendingIn", "pendingOut"))
    # Upstream omits `available` on some accounts; it then mirrors balance
    available = account.get("available")
    converted["available"] = to_display_units(available if available is not None else account.get("balance"))
    converted.setdefault("accountId", account.get("accountId") or account.get("id"))
    return converted


def convert_movement_fields(movement: Mapping[str, Any]) -> Dict[str, Any]:
    return _convert(movement, MOVEMENT_MONEY_FIELDS, MOVEMENT_OPTIONAL_MONEY_FIELDS)


def convert_simulation_fields(simulation: Mapping[str, Any]) -> Dict[str, Any]:
    return _convert(simulation, SIMULATION_MONEY_FIELDS, SIMULATION_OPTIONAL_MONEY_FIELDS)


def convert_transfer_fields(transfer: Mapping[str, Any]) -> Dict[str, Any]:
    return _convert(transfer, (), TRANSFER_OPTIONAL_MONEY_FIELDS)


def format_currency(amount: float, currency: str = DEFAULT_CURRENCY) -> str:
    """Format a display amount, e.g. 1234.5 USD -> "$1,234.50" and CUP -> "1,234.50 CUP" """
    info = SUPPORTED_CURRENCIES.get(currency)
    if info is None:
        raise ValueError(f"Unsupported currency: {currency}")
    formatted = f"{amount:,.{info['decimals']}f}"
    if info["symbol"] == currency:
        return f"{formatted} {currency}"
    return f"{info['symbol']}{formatted}"
