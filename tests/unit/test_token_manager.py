"""Unit tests for token lifecycle and 401 re-authentication"""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from tropipay_wallet.domain.exceptions import APIError, AuthenticationError
from tropipay_wallet.infrastructure.auth.token_manager import TokenManager
from tropipay_wallet.infrastructure.clients.tropipay import TropiPayClient


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeTropiPay:
    """Token endpoint issuing t1, t2, ... plus token-protected resources"""

    def __init__(self):
        self.issued = 0
        self.valid_tokens = set()
        self.token_status = 200
        self.accounts_status = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/access/token"):
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"message": "rejected"})
            self.issued += 1
            token = f"t{self.issued}"
            self.valid_tokens.add(token)
            return httpx.Response(200, json={"access_token": token, "expires_in": 3600})

        token = request.headers.get("Authorization", "").replace("Bearer ", "")
        if token not in self.valid_tokens:
            return httpx.Response(401, json={"message": "Token expired"})
        if path.endswith("/users/profile"):
            return httpx.Response(200, json={"id": "usr-1", "twoFaType": 1})
        if path.endswith("/accounts/"):
            if self.accounts_status != 200:
                return httpx.Response(self.accounts_status, json={"message": "unavailable"})
            return httpx.Response(200, json=[{"accountId": "acc-1", "currency": "USD", "balance": 1000}])
        if path.endswith("/auth/logout"):
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404, json={"message": "not found"})


@pytest.fixture
def remote() -> FakeTropiPay:
    return FakeTropiPay()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def make_manager(remote: FakeTropiPay, clock: FakeClock):
    clients = []

    def factory(auto_refresh: bool = True) -> TokenManager:
        client = TropiPayClient(base_url="http://tropipay.test/api/v3", transport=httpx.MockTransport(remote))
        clients.append(client)
        return TokenManager(
            client,
            client_id="id",
            client_secret="secret",
            auto_refresh=auto_refresh,
            expiry_buffer_seconds=300,
            clock=clock,
        )

    yield factory
    for client in clients:
        await client.aclose()


async def test_authenticate_loads_profile_and_accounts(make_manager, clock: FakeClock):
    manager = make_manager()
    events = []
    manager.events.on("authenticated", events.append)

    session = await manager.authenticate()

    assert session.access_token == "t1"
    assert session.token_expires_at == clock.now + timedelta(seconds=3600)
    assert session.profile["twoFaType"] == 1
    assert [account.account_id for account in session.accounts] == ["acc-1"]
    assert session.accounts[0].available.minor == 1000
    assert len(events) == 1


async def test_authenticate_survives_account_fetch_failure(make_manager, remote: FakeTropiPay):
    remote.accounts_status = 503
    manager = make_manager()

    session = await manager.authenticate()

    assert session.access_token == "t1"
    assert session.accounts == []


async def test_rejected_credentials(make_manager, remote: FakeTropiPay):
    remote.token_status = 401
    manager = make_manager()
    failures = []
    manager.events.on("authentication_failed", failures.append)

    with pytest.raises(AuthenticationError, match="Invalid client credentials"):
        await manager.authenticate()

    assert manager.access_token is None
    assert len(failures) == 1


async def test_forbidden_credentials(make_manager, remote: FakeTropiPay):
    remote.token_status = 403
    manager = make_manager()

    with pytest.raises(AuthenticationError) as exc_info:
        await manager.authenticate()

    assert exc_info.value.status_code == 403


async def test_is_authenticated_honours_expiry_buffer(make_manager, clock: FakeClock):
    manager = make_manager()
    await manager.authenticate()

    # 10 minutes left, outside the 5 minute buffer
    clock.advance(minutes=50)
    assert manager.is_authenticated()

    # 4 minutes left, inside the buffer
    clock.advance(minutes=6)
    assert not manager.is_authenticated()


async def test_request_without_session_raises(make_manager, remote: FakeTropiPay):
    # Stored credentials alone never start a session
    manager = make_manager()
    with pytest.raises(AuthenticationError, match=r"call authenticate\(\) first"):
        await manager.get("/accounts/")

    assert remote.issued == 0
    assert manager.access_token is None


async def test_token_inside_buffer_refreshed_before_request(make_manager, remote: FakeTropiPay, clock: FakeClock):
    manager = make_manager()
    await manager.authenticate()
    clock.advance(minutes=56)

    await manager.get("/accounts/")

    assert remote.issued == 2
    assert manager.access_token == "t2"


async def test_failed_refresh_inside_buffer_keeps_valid_token(make_manager, remote: FakeTropiPay, clock: FakeClock):
    manager = make_manager()
    await manager.authenticate()
    clock.advance(minutes=57)
    remote.token_status = 503

    accounts = await manager.get("/accounts/")

    assert accounts[0]["accountId"] == "acc-1"
    assert manager.access_token == "t1"
    assert manager.profile["twoFaType"] == 1
    assert remote.issued == 1

    # Once the buffer refresh succeeds the new token takes over
    remote.token_status = 200
    await manager.get("/accounts/")
    assert manager.access_token == "t2"


async def test_failed_refresh_after_expiry_raises(make_manager, remote: FakeTropiPay, clock: FakeClock):
    manager = make_manager()
    await manager.authenticate()
    clock.advance(minutes=61)
    remote.token_status = 503

    with pytest.raises(APIError):
        await manager.get("/accounts/")

    assert manager.access_token is None

async def test_401_triggers_single_reauthentication_for_concurrent_callers(make_manager, remote: FakeTropiPay):
    manager = make_manager()
    await manager.authenticate()
    expired = []
    manager.events.on("token_expired", lambda: expired.append(True))

    # Server revokes t1
    remote.valid_tokens.clear()
    results = await asyncio.gather(*(manager.get("/accounts/") for _ in range(5)))

    assert all(result[0]["accountId"] == "acc-1" for result in results)
    assert remote.issued == 2
    assert manager.access_token == "t2"
    assert len(expired) == 1


async def test_401_after_failed_reauthentication_surfaces_original_error(make_manager, remote: FakeTropiPay):
    manager = make_manager()
    await manager.authenticate()
    remote.valid_tokens.clear()
    remote.token_status = 401

    with pytest.raises(AuthenticationError, match="Token expired"):
        await manager.get("/accounts/")


async def test_401_without_auto_refresh_clears_token(make_manager, remote: FakeTropiPay):
    manager = make_manager(auto_refresh=False)
    await manager.authenticate()
    remote.valid_tokens.clear()

    with pytest.raises(AuthenticationError):
        await manager.get("/accounts/")

    assert manager.access_token is None
    assert remote.issued == 1


async def test_validate_token(make_manager, remote: FakeTropiPay):
    manager = make_manager()
    assert await manager.validate_token() is False

    await manager.authenticate()
    assert await manager.validate_token() is True

    remote.valid_tokens.clear()
    assert await manager.validate_token() is False


async def test_logout_clears_session(make_manager):
    manager = make_manager()
    await manager.authenticate()
    logouts = []
    manager.events.on("logout", lambda: logouts.append(True))

    await manager.logout()

    assert manager.access_token is None
    assert manager.profile == {}
    assert not manager.is_authenticated()
    assert logouts == [True]
    with pytest.raises(AuthenticationError):
        await manager.get("/accounts/")
