"""SDK authentication module"""

from typing import Any, Dict

from tropipay_wallet.domain.constants import Endpoints
from tropipay_wallet.domain.exceptions import AuthenticationError
from tropipay_wallet.domain.models import Session


class AuthModule:
    def __init__(self, sdk):
        self.sdk = sdk
        self._tokens = sdk.token_manager

    async def authenticate(self, client_id: str | None = None, client_secret: str | None = None) -> Session:
        """
        Exchange client credentials for an access token.

        Returns:
            The session with token, expiry, profile and accounts (display units)

        Raises:
            AuthenticationError: credentials rejected
        """
        return await self._tokens.authenticate(client_id, client_secret)

    async def get_current_profile(self) -> Dict[str, Any]:
        profile = await self._tokens.get(Endpoints.USER_PROFILE)
        self._tokens.session.profile = profile or {}
        return self._tokens.session.profile

    async def validate_token(self, access_token: str | None = None) -> bool:
        return await self._tokens.validate_token(access_token)

    async def refresh_token(self, *args: Any) -> None:
        raise AuthenticationError(
            "Token refresh is not supported with client credentials. Please call authenticate() again."
        )

    async def logout(self) -> None:
        await self._tokens.logout()
