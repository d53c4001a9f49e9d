"""TropiPay API HTTP client: auth headers, logging, status classification and 429 retry"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx

from tropipay_wallet.config import settings
from tropipay_wallet.domain.exceptions import (
    APIError,
    NetworkError,
    RateLimitError,
    TropiPayError,
    classify_response,
)
from tropipay_wallet.infrastructure.observability.logging import log_api_call
from tropipay_wallet.infrastructure.observability.metrics import record_remote_call
from tropipay_wallet.utils.events import EventEmitter


class TropiPayClient:
    """
    Client for the TropiPay REST API.

    One instance owns one persistent httpx.AsyncClient bound to an environment
    base URL; call ``aclose()`` (or use ``async with``) when done.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        device_id: str | None = None,
        enable_api_logging: bool | None = None,
        retry_on_rate_limit: bool | None = None,
        default_retry_after: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        events: EventEmitter | None = None,
    ):
        self.base_url = (base_url or settings.get_api_url()).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.device_id = device_id or settings.device_id
        self.enable_api_logging = settings.enable_api_logging if enable_api_logging is None else enable_api_logging
        self.retry_on_rate_limit = (
            settings.rate_limit_retry_enabled if retry_on_rate_limit is None else retry_on_rate_limit
        )
        self.default_retry_after = default_retry_after or settings.default_retry_after_seconds
        self.events = events or EventEmitter()
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    async def __aenter__(self) -> "TropiPayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _build_headers(self, headers: Optional[Dict[str, str]], access_token: str | None) -> Dict[str, str]:
        merged = dict(headers or {})
        has_auth = any(key.lower() == "authorization" for key in merged)
        if access_token and not has_auth:
            merged["Authorization"] = f"Bearer {access_token}"
        merged["X-DEVICE-ID"] = self.device_id
        return merged

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        access_token: str | None = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON body (None when empty).

        A 429 is retried once after Retry-After seconds when enabled.

        Raises:
            NetworkError: timeout or connection failure
            RateLimitError: 429 (after the single retry, if enabled)
            TropiPayError: any other non-2xx, classified by status
            APIError: 2xx with a body that is not JSON
        """
        request_headers = self._build_headers(headers, access_token)
        clean_params = {k: v for k, v in (params or {}).items() if v is not None} or None

        try:
            return await self._send(method, path, json, clean_params, request_headers)
        except RateLimitError as e:
            if not self.retry_on_rate_limit:
                raise
            logging.warning(
                f"Rate limited on {method} {path}, retrying in {e.retry_after}s",
                extra={"retry_after": e.retry_after, "path": path},
            )
            self.events.emit("rate_limited", {"retry_after": e.retry_after, "path": path})
            await asyncio.sleep(e.retry_after)
            return await self._send(method, path, json, clean_params, request_headers)

    async def _send(
        self,
        method: str,
        path: str,
        body: Any,
        params: Optional[Dict[str, Any]],
        headers: Dict[str, str],
    ) -> Any:
        self.events.emit("request", {"method": method, "path": path})
        start_time = time.time()
        try:
            response = await self._client.request(method, path, json=body, params=params, headers=headers)
        except httpx.TimeoutException as e:
            error = NetworkError(f"TropiPay API timeout after {self.timeout}s", code="TIMEOUT")
            self._record_failure(method, path, start_time, error)
            raise error from e
        except httpx.TransportError as e:
            error = NetworkError(f"Unable to reach TropiPay API: {e}")
            self._record_failure(method, path, start_time, error)
            raise error from e

        duration = time.time() - start_time
        payload = self._decode(response)

        if self.enable_api_logging:
            log_api_call(
                method,
                str(response.request.url),
                response.status_code,
                round(duration * 1000, 2),
                headers=headers,
                params=params,
                body=body,
                response=payload,
            )

        if response.is_success:
            if response.content and payload is None:
                error = APIError("Invalid JSON response from TropiPay API", status_code=response.status_code)
                self._record_failure(method, path, start_time, error)
                raise error
            record_remote_call(method, path, duration)
            self.events.emit("response", {"method": method, "path": path, "status": response.status_code})
            return payload

        error = classify_response(
            response.status_code,
            payload if payload is not None else response.text,
            response.headers,
            default_retry_after=self.default_retry_after,
        )
        self._record_failure(method, path, start_time, error)
        raise error

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    def _record_failure(self, method: str, path: str, start_time: float, error: TropiPayError) -> None:
        record_remote_call(method, path, time.time() - start_time, error)
        self.events.emit("error", error)

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)
