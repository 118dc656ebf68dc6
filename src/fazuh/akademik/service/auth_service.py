from typing import Any

from loguru import logger

from fazuh.akademik.api.client import ApiClient
from fazuh.akademik.api.path import Endpoint
from fazuh.akademik.error import AkademikError
from fazuh.akademik.error import ApiError


class AuthService:
    """Signs the user in and out of the backend.

    The token and user returned by `/login` are kept in the client's
    `AppContext`, which every later request reads its bearer token from.
    """

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.context = client.context

    async def login(self, login: str, password: str) -> dict[str, Any]:
        """Authenticates with username/NIP/NID/NIM/email and password.

        Returns:
            dict: The signed-in user as reported by the backend.
        """
        data = await self.client.post(Endpoint.LOGIN, json={"login": login, "password": password})
        token = (data or {}).get("access_token")
        if not token:
            raise ApiError(200, "Login response did not contain an access token.")

        user = data.get("user") or {}
        self.context.store(token, user)
        logger.success(f"Logged in as {self.context.display_name} ({self.context.role}).")
        return user

    async def logout(self):
        """Revokes the token on the backend. Local credentials are cleared either way."""
        try:
            if self.context.is_authenticated:
                await self.client.post(Endpoint.LOGOUT)
        except AkademikError as e:
            logger.warning(f"Logout request failed: {e.message}")
        finally:
            self.context.clear()
        logger.info("Logged out.")

    async def me(self) -> dict[str, Any]:
        """Refreshes the stored user identity from `/me`."""
        user = await self.client.get(Endpoint.ME) or {}
        self.context.update_user(user)
        return user
