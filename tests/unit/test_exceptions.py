"""Unit tests for error classification"""

from tropipay_wallet.domain.exceptions import (
    APIError,
    AuthenticationError,
    InsufficientFundsError,
    NetworkError,
    RateLimitError,
    ValidationError,
    classify_response,
    is_retryable,
    user_message,
)


def test_insufficient_funds_amounts_in_display_units():
    error = classify_response(400, {"code": "INSUFFICIENT_FUNDS", "available": 145000, "required": 500000})

    assert isinstance(error, InsufficientFundsError)
    assert error.available == 1450.0
    assert error.required == 5000.0
    assert error.to_dict()["code"] == "INSUFFICIENT_FUNDS"


def test_validation_error_keeps_remote_code_and_fields():
    error = classify_response(422, {"message": "Bad data", "code": "INVALID_2FA_CODE", "errors": {"smsCode": "wrong"}})

    assert isinstance(error, ValidationError)
    assert error.code == "INVALID_2FA_CODE"
    assert error.status_code == 422
    assert error.errors == {"smsCode": "wrong"}
    assert error.message == "Bad data"


def test_status_classification():
    assert isinstance(classify_response(401, {"message": "Token expired"}), AuthenticationError)

    rate_limited = classify_response(429, None, {"retry-after": "7"})
    assert isinstance(rate_limited, RateLimitError)
    assert rate_limited.retry_after == 7.0

    fallback = classify_response(429, None, {}, default_retry_after=3.0)
    assert fallback.retry_after == 3.0

    server_error = classify_response(503, "upstream down")
    assert isinstance(server_error, APIError)
    assert server_error.status_code == 503
    assert server_error.message == "TropiPay API error (503)"


def test_is_retryable():
    assert is_retryable(NetworkError("down"))
    assert is_retryable(RateLimitError("slow down"))
    assert is_retryable(APIError("boom", status_code=502))
    assert not is_retryable(APIError("missing", status_code=404))
    assert not is_retryable(ValidationError("bad"))


def test_user_message():
    assert user_message(AuthenticationError("expired")) == "Please log in again"
    assert user_message(InsufficientFundsError("low")) == "Insufficient funds in your account"
    assert user_message(ValueError("x")) == "An unexpected error occurred"


def test_insufficient_funds_without_required_amount():
    error = classify_response(400, {"code": "INSUFFICIENT_FUNDS", "available": 500})

    assert error.available == 5.0
    assert error.required is None
    assert error.details == {"available": 5.0}
