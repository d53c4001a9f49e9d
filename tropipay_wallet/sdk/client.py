"""TropiPay SDK entry point"""

import logging
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from tropipay_wallet.config import settings
from tropipay_wallet.domain.validation import validate_config
from tropipay_wallet.infrastructure.auth.token_manager import TokenManager
from tropipay_wallet.infrastructure.clients.tropipay import TropiPayClient
from tropipay_wallet.sdk.accounts import AccountsModule
from tropipay_wallet.sdk.auth import AuthModule
from tropipay_wallet.sdk.beneficiaries import BeneficiariesModule
from tropipay_wallet.sdk.transfers import TransfersModule
from tropipay_wallet.utils.events import EventEmitter
from tropipay_wallet.utils.retry import retry_async

T = TypeVar("T")


class TropiPaySDK:
    """
    Typed access to the TropiPay API.

    Usage:
        async with TropiPaySDK(client_id, client_secret) as sdk:
            await sdk.auth.authenticate()
            accounts = await sdk.accounts.get_all()

    Pass ``http_client`` to share one TropiPayClient between several SDK
    instances; a shared client is not closed by ``aclose()``.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        environment: str | None = None,
        timeout: float | None = None,
        debug: bool = False,
        auto_refresh_token: bool | None = None,
        retry_on_rate_limit: bool | None = None,
        device_id: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        http_client: TropiPayClient | None = None,
    ):
        validate_config(
            {
                "client_id": client_id,
                "client_secret": client_secret,
                "environment": environment,
                "timeout": timeout,
            }
        )
        self.environment = environment or settings.tropipay_default_env
        self.debug = debug
        self.events = EventEmitter()
        self._owns_client = http_client is None
        self.http = http_client or TropiPayClient(
            base_url=base_url or settings.get_api_url(self.environment),
            timeout=timeout,
            device_id=device_id,
            enable_api_logging=debug or None,
            retry_on_rate_limit=retry_on_rate_limit,
            transport=transport,
            events=self.events,
        )
        self.token_manager = TokenManager(
            self.http,
            client_id=client_id,
            client_secret=client_secret,
            auto_refresh=auto_refresh_token,
            events=self.events,
        )

        self.auth = AuthModule(self)
        self.accounts = AccountsModule(self)
        self.transfers = TransfersModule(self)
        self.beneficiaries = BeneficiariesModule(self)

        if debug:
            logging.debug(
                "TropiPay SDK initialized",
                extra={"environment": self.environment, "base_url": self.http.base_url},
            )

    async def __aenter__(self) -> "TropiPaySDK":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()

    @property
    def access_token(self) -> str | None:
        return self.token_manager.access_token

    @property
    def session(self):
        return self.token_manager.session

    def is_authenticated(self) -> bool:
        return self.token_manager.is_authenticated()

    def on(self, event: str, listener: Callable[..., Any]) -> Callable[..., Any]:
        return self.events.on(event, listener)

    def off(self, event: str, listener: Callable[..., Any]) -> None:
        self.events.off(event, listener)

    async def retry(self, func: Callable[[], Awaitable[T]], max_attempts: int = 3, backoff_base: float = 1.0) -> T:
        """Retry a coroutine factory on network, rate-limit and 5xx errors"""
        return await retry_async(func, max_attempts=max_attempts, backoff_base=backoff_base)
