"""OAuth2 client-credentials session: token expiry tracking and 401 re-authentication"""

import asyncio
import dataclasses
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List

from tropipay_wallet.config import settings
from tropipay_wallet.domain.constants import Endpoints
from tropipay_wallet.domain.exceptions import APIError, AuthenticationError, TropiPayError
from tropipay_wallet.domain.models import Account, Session, extract_items
from tropipay_wallet.infrastructure.clients.tropipay import TropiPayClient
from tropipay_wallet.infrastructure.observability.metrics import reauthentication_counter
from tropipay_wallet.utils.date_utils import expires_at, utcnow
from tropipay_wallet.utils.events import EventEmitter


class TokenManager:
    """
    Owns one TropiPay session.

    States are Unauthenticated (no token) and Authenticated(token, expires_at).
    Requests made through ``request()`` carry the current token; a 401 clears
    it and, when auto refresh is on, triggers exactly one re-authentication
    shared by every caller that saw the same expired token.
    """

    def __init__(
        self,
        client: TropiPayClient,
        client_id: str | None = None,
        client_secret: str | None = None,
        auto_refresh: bool | None = None,
        expiry_buffer_seconds: int | None = None,
        clock: Callable[[], datetime] = utcnow,
        events: EventEmitter | None = None,
    ):
        self.client = client
        self.events = events or client.events
        self.session = Session(external_client_id=client_id)
        self._client_secret = client_secret
        self.auto_refresh = settings.auto_refresh_token if auto_refresh is None else auto_refresh
        buffer = settings.token_expiry_buffer_seconds if expiry_buffer_seconds is None else expiry_buffer_seconds
        self.expiry_buffer = timedelta(seconds=buffer)
        self._clock = clock
        self._refresh_task: asyncio.Task | None = None
        self._has_authenticated = False

    @property
    def access_token(self) -> str | None:
        return self.session.access_token

    @property
    def profile(self) -> Dict[str, Any]:
        return self.session.profile

    def is_authenticated(self) -> bool:
        """True only while now < expires_at - buffer"""
        if not self.session.access_token or self.session.token_expires_at is None:
            return False
        return self._clock() < self.session.token_expires_at - self.expiry_buffer

    async def authenticate(self, client_id: str | None = None, client_secret: str | None = None) -> Session:
        """
        Exchange client credentials for a token, then load profile and accounts.

        The account fetch is best-effort: a failure leaves an empty list.

        Raises:
            AuthenticationError: credentials rejected (401/403) or no token returned
        """
        client_id = client_id or self.session.external_client_id
        client_secret = client_secret or self._client_secret
        if not client_id or not client_secret:
            raise AuthenticationError("Client ID and client secret are required")

        try:
            token_data = await self.client.post(
                Endpoints.ACCESS_TOKEN,
                json={
                    "grant_type": "client_credentials",
                    "client_id": client_id,
                    "client_secret": client_secret,
                },
            )
        except AuthenticationError as e:
            self._authentication_failed(client_id, e)
            raise AuthenticationError("Invalid client credentials", status_code=401) from e
        except APIError as e:
            self._authentication_failed(client_id, e)
            if e.status_code == 403:
                raise AuthenticationError(
                    "Access forbidden. Check your credentials and permissions", status_code=403
                ) from e
            raise
        except TropiPayError as e:
            self._authentication_failed(client_id, e)
            raise

        access_token = (token_data or {}).get("access_token")
        if not access_token:
            error = AuthenticationError("Invalid response from authentication server")
            self._authentication_failed(client_id, error)
            raise error

        try:
            profile = await self.client.get(Endpoints.USER_PROFILE, access_token=access_token)
        except TropiPayError as e:
            self._authentication_failed(client_id, e)
            raise

        self.session.external_client_id = client_id
        self._client_secret = client_secret
        self.session.access_token = access_token
        self.session.token_expires_at = expires_at(token_data.get("expires_in", 3600), now=self._clock())
        self.session.profile = profile or {}
        self.session.accounts = await self._fetch_initial_accounts(access_token)
        self._has_authenticated = True

        logging.info(
            "Authentication succeeded",
            extra={
                "step": "authenticate",
                "client_id": client_id,
                "expires_at": self.session.token_expires_at.isoformat(),
                "account_count": len(self.session.accounts),
            },
        )
        self.events.emit(
            "authenticated",
            {"profile": self.session.profile, "expires_at": self.session.token_expires_at},
        )
        return self.session

    async def _fetch_initial_accounts(self, access_token: str) -> List[Account]:
        try:
            payload = await self.client.get(Endpoints.ACCOUNTS, access_token=access_token)
        except TropiPayError as e:
            logging.warning(
                f"Could not load accounts during authentication: {e.message}",
                extra={"step": "authenticate", "error_code": e.code},
            )
            return []
        return [Account.from_api(account) for account in extract_items(payload)]

    def _authentication_failed(self, client_id: str, error: TropiPayError) -> None:
        self._clear()
        logging.warning(
            f"Authentication failed: {error.message}",
            extra={"step": "authenticate", "client_id": client_id, "error_code": error.code},
        )
        self.events.emit("authentication_failed", error)

    def _clear(self) -> None:
        self.session.clear()

    def _restore(self, previous: Session) -> None:
        self.session.access_token = previous.access_token
        self.session.token_expires_at = previous.token_expires_at
        self.session.profile = previous.profile
        self.session.accounts = previous.accounts

    def _has_credentials(self) -> bool:
        return bool(self._has_authenticated and self.session.external_client_id and self._client_secret)

    async def _ensure_token(self) -> str:
        if self.is_authenticated():
            return self.session.access_token
        if self.auto_refresh and self._has_credentials():
            previous = dataclasses.replace(self.session)
            try:
                await self._refresh(previous.access_token)
            except TropiPayError as e:
                if not previous.access_token or self._clock() >= previous.token_expires_at:
                    raise
                # Token is still inside its lifetime; keep using it
                self._restore(previous)
                logging.warning(
                    f"Proactive re-authentication failed, keeping current token: {e.message}",
                    extra={"step": "authenticate", "error_code": e.code},
                )
            return self.session.access_token
        if self.session.access_token:
            # Inside the safety buffer; the remote side decides
            return self.session.access_token
        raise AuthenticationError("Not authenticated. Please call authenticate() first.")

    def _expire(self, stale_token: str) -> None:
        if self.session.access_token != stale_token:
            return
        self.session.access_token = None
        self.session.token_expires_at = None
        logging.warning("Access token expired or revoked", extra={"step": "token_expired"})
        self.events.emit("token_expired")

    async def _refresh(self, stale_token: str | None) -> None:
        """Re-authenticate once per expiry event, shared by concurrent callers"""
        if self.session.access_token and self.session.access_token != stale_token:
            return
        if self._refresh_task is None or self._refresh_task.done():
            reauthentication_counter.inc()
            self._refresh_task = asyncio.ensure_future(self.authenticate())
        await asyncio.shield(self._refresh_task)

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Authenticated call through the client.

        Raises:
            AuthenticationError: not authenticated, or the 401 persisted
                after the single re-authentication attempt
            TropiPayError: anything the client raises
        """
        token = await self._ensure_token()
        try:
            return await self.client.request(method, path, access_token=token, **kwargs)
        except AuthenticationError as original:
            self._expire(token)
            if not (self.auto_refresh and self._has_credentials()):
                raise
            try:
                await self._refresh(token)
            except TropiPayError:
                raise original
            return await self.client.request(method, path, access_token=self.session.access_token, **kwargs)

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def validate_token(self, access_token: str | None = None) -> bool:
        token = access_token or self.session.access_token
        if not token:
            return False
        try:
            await self.client.get(Endpoints.USER_PROFILE, access_token=token)
        except AuthenticationError:
            return False
        return True

    async def logout(self) -> None:
        """Clear session state; the server-side revoke is best-effort"""
        token = self.session.access_token
        if token:
            try:
                await self.client.post(Endpoints.LOGOUT, access_token=token)
            except TropiPayError as e:
                logging.info(f"Server-side logout failed: {e.message}", extra={"step": "logout"})
        self._clear()
        self._client_secret = None
        self._has_authenticated = False
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        self._refresh_task = None
        self.events.emit("logout")
