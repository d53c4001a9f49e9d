"""Pytest fixtures for testing"""

from typing import Generator, Set

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from mock_server.tropipay import main as mock_tropipay_main
from tropipay_wallet.api.main import create_app
from tropipay_wallet.application.wallet_service import WalletService
from tropipay_wallet.config import Settings
from tropipay_wallet.infrastructure.database.session import create_db_engine, create_session_factory, init_db

TEST_API_URL = "http://tropipay.test/api/v3"
TEST_CLIENT_ID = "test-client"
TEST_CLIENT_SECRET = "test-secret"


class SwitchableTransport(httpx.AsyncBaseTransport):
    """Routes requests to the mock TropiPay app unless the path is switched off"""

    def __init__(self, app):
        self._inner = httpx.ASGITransport(app=app)
        self.offline = False
        self.offline_paths: Set[str] = set()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if self.offline or any(path.endswith(p) for p in self.offline_paths):
            raise httpx.ConnectError("Connection refused", request=request)
        return await self._inner.handle_async_request(request)


@pytest.fixture
def mock_tropipay():
    """Mock TropiPay module with freshly reset state"""
    mock_tropipay_main.reset()
    yield mock_tropipay_main
    mock_tropipay_main.reset()


@pytest.fixture
def transport(mock_tropipay) -> SwitchableTransport:
    return SwitchableTransport(mock_tropipay.app)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        tropipay_dev_api_url=TEST_API_URL,
        tropipay_prod_api_url="http://tropipay-prod.test/api/v3",
        tropipay_default_env="development",
        frontend_url="http://localhost:3000",
        default_retry_after_seconds=0.01,
    )


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory cache database"""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Generator[Session, None, None]:
    session = create_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def wallet_service(test_settings: Settings, engine: Engine, transport: SwitchableTransport) -> WalletService:
    return WalletService(test_settings, engine=engine, transport=transport)


@pytest.fixture
def client(wallet_service: WalletService, test_settings: Settings) -> Generator[TestClient, None, None]:
    """FastAPI test client wired to the mock TropiPay server"""
    with TestClient(create_app(wallet_service, test_settings)) as test_client:
        yield test_client


@pytest.fixture
def logged_in(client: TestClient) -> dict:
    """Login response for the default mock client"""
    response = client.post(
        "/auth/login",
        json={"client_id": TEST_CLIENT_ID, "client_secret": TEST_CLIENT_SECRET, "environment": "development"},
    )
    assert response.status_code == 200, response.text
    return response.json()
