"""Wallet service: per-user TropiPay sessions, cache fallback and transfer orchestration"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from tropipay_wallet.config import ENVIRONMENTS, Settings, settings as default_settings
from tropipay_wallet.domain.constants import TWO_FA_AUTHENTICATOR, Endpoints
from tropipay_wallet.domain.exceptions import (
    APIError,
    AuthenticationError,
    NetworkError,
    RateLimitError,
    TropiPayError,
    ValidationError,
)
from tropipay_wallet.domain.models import Account, Beneficiary
from tropipay_wallet.infrastructure.clients.tropipay import TropiPayClient
from tropipay_wallet.infrastructure.database.repositories import (
    AccountCacheRepository,
    BeneficiaryCacheRepository,
    UserRepository,
)
from tropipay_wallet.infrastructure.database.session import create_db_engine, create_session_factory, init_db
from tropipay_wallet.infrastructure.observability.metrics import cache_fallback_counter
from tropipay_wallet.sdk.client import TropiPaySDK

# Remote failures that may be answered from the local cache
FALLBACK_ERRORS = (NetworkError, RateLimitError, APIError)

ENVIRONMENT_DESCRIPTIONS = {
    "development": ("Development (Sandbox)", "Test environment with simulated data"),
    "production": ("Production", "Live environment with real transactions"),
}


class WalletService:
    """
    Backend state for the HTTP facade.

    Holds one TropiPayClient per environment and one SDK session per logged-in
    user. Client secrets and tokens live only in memory; the cache database
    keeps user profiles plus the last accounts and beneficiaries lists.
    """

    def __init__(
        self,
        config: Settings | None = None,
        engine: Engine | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = config or default_settings
        self._engine = engine
        self._owns_engine = engine is None
        self._transport = transport
        self._session_factory: Optional[sessionmaker] = None
        self._clients: Dict[str, TropiPayClient] = {}
        self._sessions: Dict[int, TropiPaySDK] = {}

    async def init(self) -> None:
        if self._engine is None:
            self._engine = create_db_engine(self.settings.database_url)
        await run_in_threadpool(init_db, self._engine)
        self._session_factory = create_session_factory(self._engine)
        logging.info("Wallet service started", extra={"environment": self.settings.tropipay_default_env})

    async def close(self) -> None:
        self._sessions.clear()
        for client in self._clients.values():
            await client.aclose()
        self._clients.clear()
        if self._owns_engine and self._engine is not None:
            self._engine.dispose()
            self._engine = None

    # ========== Sessions ==========

    def _client_for(self, environment: str) -> TropiPayClient:
        if environment not in self._clients:
            self._clients[environment] = TropiPayClient(
                base_url=self.settings.get_api_url(environment),
                timeout=self.settings.http_timeout_seconds,
                device_id=self.settings.device_id,
                enable_api_logging=self.settings.enable_api_logging,
                retry_on_rate_limit=self.settings.rate_limit_retry_enabled,
                default_retry_after=self.settings.default_retry_after_seconds,
                transport=self._transport,
            )
        return self._clients[environment]

    def _get_sdk(self, user_id: int) -> TropiPaySDK:
        sdk = self._sessions.get(user_id)
        if sdk is None:
            raise AuthenticationError("User not authenticated", status_code=401)
        return sdk

    def environments(self) -> Dict[str, Any]:
        return {
            "environments": [
                {
                    "key": key,
                    "name": ENVIRONMENT_DESCRIPTIONS[key][0],
                    "url": self.settings.get_api_url(key),
                    "description": ENVIRONMENT_DESCRIPTIONS[key][1],
                }
                for key in ENVIRONMENTS
            ],
            "current": self.settings.tropipay_default_env,
            "default": self.settings.tropipay_default_env,
        }

    async def authenticate_user(
        self, client_id: str, client_secret: str, environment: str | None = None
    ) -> Dict[str, Any]:
        """
        Log a client in and register it under a stable internal user id.

        Raises:
            ValidationError: unknown environment or missing credentials
            AuthenticationError: credentials rejected by TropiPay
        """
        if environment and not self.settings.is_valid_environment(environment):
            raise ValidationError(
                "Invalid environment. Must be development or production",
                errors={"environment": "Must be development or production"},
            )
        env = environment or self.settings.tropipay_default_env

        sdk = TropiPaySDK(
            client_id,
            client_secret,
            environment=env,
            auto_refresh_token=self.settings.auto_refresh_token,
            http_client=self._client_for(env),
        )
        session = await sdk.auth.authenticate()

        user = await run_in_threadpool(self._upsert_user, client_id, session.profile, env)
        session.internal_user_id = user.id
        self._sessions[user.id] = sdk

        await self._save_accounts(user.id, session.accounts)
        await self._load_initial_beneficiaries(user.id, sdk)

        return {
            "user": {
                "id": user.id,
                "client_id": client_id,
                "profile": session.profile,
                "accounts": [account.to_dict() for account in session.accounts],
                "token": session.access_token,
                "expires_at": session.token_expires_at.isoformat(),
            },
            "environment": env,
            "apiUrl": self.settings.get_api_url(env),
        }

    async def _load_initial_beneficiaries(self, user_id: int, sdk: TropiPaySDK) -> None:
        try:
            beneficiaries = await sdk.beneficiaries.fetch(offset=0, limit=50)
        except TropiPayError as e:
            logging.warning(
                f"Could not load beneficiaries during login: {e.message}",
                extra={"user_id": user_id, "error_code": e.code},
            )
            beneficiaries = []
        await self._save_beneficiaries(user_id, beneficiaries)

    async def logout_user(self, user_id: int) -> bool:
        sdk = self._sessions.pop(user_id, None)
        if sdk is None:
            return False
        await sdk.auth.logout()
        logging.info("User logged out", extra={"user_id": user_id})
        return True

    # ========== Cache ==========

    def _upsert_user(self, client_id: str, profile: Dict[str, Any], environment: str):
        with self._session_factory() as db:
            return UserRepository(db).upsert(client_id, profile, environment)

    def _write_accounts(self, user_id: int, accounts: List[Account]) -> None:
        with self._session_factory() as db:
            AccountCacheRepository(db).save(user_id, accounts)

    def _read_accounts(self, user_id: int) -> List[Account]:
        with self._session_factory() as db:
            return AccountCacheRepository(db).get(user_id)

    def _write_beneficiaries(self, user_id: int, beneficiaries: List[Beneficiary]) -> None:
        with self._session_factory() as db:
            BeneficiaryCacheRepository(db).save(user_id, beneficiaries)

    def _read_beneficiaries(self, user_id: int) -> List[Beneficiary]:
        with self._session_factory() as db:
            return BeneficiaryCacheRepository(db).get(user_id)

    async def _save_accounts(self, user_id: int, accounts: List[Account]) -> None:
        try:
            await run_in_threadpool(self._write_accounts, user_id, accounts)
        except Exception as e:
            logging.error(f"Account cache write failed: {e}", extra={"user_id": user_id})

    async def _save_beneficiaries(self, user_id: int, beneficiaries: List[Beneficiary]) -> None:
        try:
            await run_in_threadpool(self._write_beneficiaries, user_id, beneficiaries)
        except Exception as e:
            logging.error(f"Beneficiary cache write failed: {e}", extra={"user_id": user_id})

    # ========== Accounts ==========

    async def get_accounts(self, user_id: int) -> List[Dict[str, Any]]:
        """Live accounts, or the last cached list when TropiPay cannot be reached"""
        sdk = self._get_sdk(user_id)
        try:
            accounts = await sdk.accounts.fetch()
        except FALLBACK_ERRORS as e:
            cached = await run_in_threadpool(self._read_accounts, user_id)
            cache_fallback_counter.labels(resource="accounts").inc()
            logging.warning(
                f"Serving cached accounts: {e.message}",
                extra={"user_id": user_id, "error_code": e.code, "cached_count": len(cached)},
            )
            return [account.to_dict() for account in cached]

        sdk.session.accounts = accounts
        await self._save_accounts(user_id, accounts)
        return [account.to_dict() for account in accounts]

    async def get_movements(
        self, user_id: int, account_id: str, offset: int = 0, limit: int = 20
    ) -> List[Dict[str, Any]]:
        sdk = self._get_sdk(user_id)
        return await sdk.accounts.get_movements(account_id, offset=offset, limit=limit)

    # ========== Beneficiaries ==========

    async def get_beneficiaries(self, user_id: int, offset: int = 0, limit: int = 20) -> List[Dict[str, Any]]:
        """Live beneficiaries page; only the first page refreshes the cache"""
        sdk = self._get_sdk(user_id)
        try:
            beneficiaries = await sdk.beneficiaries.fetch(offset=offset, limit=limit)
        except FALLBACK_ERRORS as e:
            cached = await run_in_threadpool(self._read_beneficiaries, user_id)
            cache_fallback_counter.labels(resource="beneficiaries").inc()
            logging.warning(
                f"Serving cached beneficiaries: {e.message}",
                extra={"user_id": user_id, "error_code": e.code, "cached_count": len(cached)},
            )
            return [beneficiary.to_dict() for beneficiary in cached[offset : offset + limit]]

        if offset == 0:
            await self._save_beneficiaries(user_id, beneficiaries)
        return [beneficiary.to_dict() for beneficiary in beneficiaries]

    async def create_beneficiary(self, user_id: int, data: Mapping[str, Any]) -> Any:
        """Forward the beneficiary to TropiPay, then refresh the cached list"""
        sdk = self._get_sdk(user_id)
        created = await sdk.token_manager.post(Endpoints.BENEFICIARIES, json=dict(data))
        try:
            await self._save_beneficiaries(user_id, await sdk.beneficiaries.fetch(offset=0, limit=50))
        except TropiPayError as e:
            logging.warning(f"Beneficiary list refresh failed: {e.message}", extra={"user_id": user_id})
        return created

    async def validate_account_number(self, user_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        sdk = self._get_sdk(user_id)
        return await sdk.beneficiaries.validate_account_number(
            data.get("accountNumber"), data.get("country"), data.get("bankCode")
        )

    async def validate_swift_code(self, user_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        sdk = self._get_sdk(user_id)
        return await sdk.beneficiaries.validate_swift_code(data.get("swiftCode"))

    # ========== Transfers ==========

    @staticmethod
    def _transfer_params(data: Mapping[str, Any]) -> Dict[str, Any]:
        amount = data.get("amountToPay")
        return {
            "from_account_id": data.get("fromAccountId") or data.get("accountId"),
            "beneficiary_id": (
                data.get("beneficiaryId") or data.get("depositaccountId") or data.get("destinationAccount")
            ),
            "amount": amount if amount is not None else data.get("amount"),
            "currency": data.get("currency") or data.get("currencyToPay"),
            "reason": data.get("reason") or data.get("concept") or data.get("description") or "",
        }

    async def simulate_transfer(self, user_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        sdk = self._get_sdk(user_id)
        workflow = sdk.transfers.start(**self._transfer_params(data))
        workflow.user_id = user_id
        simulation = await workflow.simulate()
        return simulation.to_dict()

    async def execute_transfer(self, user_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Fresh simulation followed by execution in the same call.

        ``securityCode`` goes out as googleAuthCode for authenticator users
        (profile twoFaType 2), otherwise as smsCode.
        """
        sdk = self._get_sdk(user_id)
        workflow = sdk.transfers.start(**self._transfer_params(data))
        workflow.user_id = user_id
        await workflow.simulate()

        code = data.get("securityCode") or data.get("smsCode") or data.get("googleAuthCode")
        if sdk.session.profile.get("twoFaType") == TWO_FA_AUTHENTICATOR:
            result = await workflow.execute(authenticator_code=code, reference=data.get("reference"))
        else:
            result = await workflow.execute(sms_code=code, reference=data.get("reference"))
        return result.to_dict()

    async def request_transfer_sms(self, user_id: int, phone_number: str | None = None) -> Dict[str, Any]:
        sdk = self._get_sdk(user_id)
        if sdk.session.profile.get("twoFaType") == TWO_FA_AUTHENTICATOR:
            return {
                "success": True,
                "message": "User has an authenticator app configured",
                "skipSMS": True,
            }

        if sdk.environment == "development":
            code = self.settings.demo_sms_code
            logging.info("Demo environment, SMS bypass enabled", extra={"user_id": user_id})
            return {
                "success": True,
                "message": f"Demo environment: use code {code}",
                "skipSMS": False,
                "isDemoMode": True,
                "demoCode": code,
            }

        data = await sdk.transfers.request_sms_code(phone_number)
        return {"success": True, "message": "SMS code sent", "skipSMS": False, "data": data}
