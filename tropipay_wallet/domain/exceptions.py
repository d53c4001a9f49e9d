"""Domain-specific exceptions and HTTP status classification"""

from typing import Any, Dict, Mapping, Optional

from tropipay_wallet.domain.money import to_display_units

INSUFFICIENT_FUNDS_CODE = "INSUFFICIENT_FUNDS"


class TropiPayError(Exception):
    """Base exception for every error surfaced by the wallet"""

    default_code = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code, "details": self.details}


class AuthenticationError(TropiPayError):
    """Invalid credentials or expired/missing token"""

    default_code = "AUTHENTICATION_FAILED"


class ValidationError(TropiPayError):
    """Malformed input, optionally with a per-field message map"""

    default_code = "VALIDATION_FAILED"

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None, status_code: int | None = None):
        super().__init__(message, details={"validationErrors": errors or {}}, status_code=status_code)
        self.errors = errors or {}


class InsufficientFundsError(TropiPayError):
    """Remote side reports insufficient balance; amounts in display units when known"""

    default_code = INSUFFICIENT_FUNDS_CODE

    def __init__(self, message: str, available: float | None = None, required: float | None = None):
        details = {}
        if available is not None:
            details["available"] = available
        if required is not None:
            details["required"] = required
        super().__init__(message, details=details, status_code=400)
        self.available = available
        self.required = required


class RateLimitError(TropiPayError):
    """HTTP 429 from the remote API"""

    default_code = "RATE_LIMITED"

    def __init__(self, message: str, retry_after: float = 5.0):
        super().__init__(message, details={"retryAfter": retry_after}, status_code=429)
        self.retry_after = retry_after


class NetworkError(TropiPayError):
    """Connection refused, DNS failure or request timeout"""

    default_code = "NETWORK_ERROR"


class TransferError(TropiPayError):
    """Transfer execution failure not covered by a more specific kind"""

    default_code = "TRANSFER_FAILED"


class APIError(TropiPayError):
    """Any other non-2xx response from the remote API"""

    default_code = "API_ERROR"

    def __init__(self, message: str, status_code: int = 0, response: Any = None):
        super().__init__(message, details={"statusCode": status_code, "response": response}, status_code=status_code)
        self.response = response


def parse_retry_after(value: Any, default: float) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def classify_response(
    status_code: int,
    body: Any,
    headers: Optional[Mapping[str, str]] = None,
    default_retry_after: float = 5.0,
) -> TropiPayError:
    """Map a non-2xx remote response to the error taxonomy"""
    data = body if isinstance(body, dict) else {}
    message = data.get("message") or data.get("error") or f"TropiPay API error ({status_code})"

    if status_code == 400 and data.get("code") == INSUFFICIENT_FUNDS_CODE:
        return InsufficientFundsError(
            "Insufficient funds for this transfer",
            available=to_display_units(data["available"]) if data.get("available") is not None else None,
            required=to_display_units(data["required"]) if data.get("required") is not None else None,
        )
    if status_code in (400, 422):
        error = ValidationError(message, errors=data.get("errors") or {}, status_code=status_code)
        if data.get("code"):
            error.code = data["code"]
        return error
    if status_code == 401:
        return AuthenticationError(message, status_code=401)
    if status_code == 429:
        retry_after = parse_retry_after((headers or {}).get("retry-after"), default_retry_after)
        return RateLimitError("Rate limit exceeded", retry_after=retry_after)
    return APIError(message, status_code=status_code, response=body)


def is_retryable(error: Exception) -> bool:
    """Temporary failures worth retrying with backoff"""
    if isinstance(error, (NetworkError, RateLimitError)):
        return True
    return isinstance(error, APIError) and (error.status_code or 0) >= 500


def user_message(error: Exception) -> str:
    """Human-readable text for UI notifications"""
    if isinstance(error, AuthenticationError):
        return "Please log in again"
    if isinstance(error, InsufficientFundsError):
        return "Insufficient funds in your account"
    if isinstance(error, ValidationError):
        return "Please check your input and try again"
    if isinstance(error, NetworkError):
        return "Connection error. Please check your internet connection"
    if isinstance(error, RateLimitError):
        return "Too many requests. Please wait a moment and try again"
    if isinstance(error, TransferError):
        return "Transfer failed. Please try again or contact support"
    if isinstance(error, TropiPayError):
        return error.message
    return "An unexpected error occurred"
