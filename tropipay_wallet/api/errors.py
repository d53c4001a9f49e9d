"""Translate wallet errors into JSON HTTP responses"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tropipay_wallet.domain.exceptions import (
    APIError,
    AuthenticationError,
    InsufficientFundsError,
    NetworkError,
    RateLimitError,
    TransferError,
    TropiPayError,
    ValidationError,
    user_message,
)

# Most specific first
STATUS_BY_ERROR = (
    (InsufficientFundsError, 400),
    (ValidationError, 400),
    (AuthenticationError, 401),
    (RateLimitError, 429),
    (NetworkError, 503),
    (TransferError, 502),
    (APIError, 502),
)


def status_for(error: TropiPayError) -> int:
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_class):
            return status_code
    if error.code.endswith("_NOT_FOUND"):
        return 404
    return 500


def error_body(error: TropiPayError) -> dict:
    return {
        "error": user_message(error),
        "code": error.code,
        "message": error.message,
        "details": error.details,
    }


async def tropipay_error_handler(request: Request, exc: TropiPayError) -> JSONResponse:
    status_code = status_for(exc)
    request_id = getattr(request.state, "request_id", "unknown")
    log = logging.error if status_code >= 500 else logging.warning
    log(
        f"{request.method} {request.url.path} failed: {exc.message}",
        extra={"request_id": request_id, "error_code": exc.code, "status_code": status_code},
    )

    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(int(exc.retry_after))}
    return JSONResponse(status_code=status_code, content=error_body(exc), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = {".".join(str(part) for part in err["loc"][1:]) or "body": err["msg"] for err in exc.errors()}
    error = ValidationError("Invalid request", errors=errors)
    return JSONResponse(status_code=400, content=error_body(error))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logging.exception(
        f"Unhandled error on {request.method} {request.url.path}",
        extra={"request_id": getattr(request.state, "request_id", "unknown")},
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
