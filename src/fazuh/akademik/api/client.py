import asyncio
from typing import Any

from loguru import logger
import requests

from fazuh.akademik.api.path import Endpoint
from fazuh.akademik.config import Config
from fazuh.akademik.error import ApiError
from fazuh.akademik.error import SessionExpiredError
from fazuh.akademik.error import TransportError
from fazuh.akademik.session import AppContext

REVOKED_MESSAGE = "Token has been revoked"


class ApiClient:
    """Authenticated client for the academic backend REST API.

    Every request carries the bearer token of the current `AppContext`. The
    blocking `requests` call runs in a worker thread so that the event loop
    (and the metrics ticker running on it) is never stalled. There is no retry
    policy: a failure is classified and raised once.
    """

    def __init__(self, config: Config, context: AppContext):
        self.config = config
        self.context = context

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def post_multipart(
        self, path: str, data: dict[str, str], files: dict[str, tuple[str, bytes, str]]
    ) -> Any:
        """POST a multipart/form-data body. `files` maps field -> (name, content, mime)."""
        return await self.request("POST", path, data=data, files=files)

    async def download(self, path: str, json: Any = None) -> bytes:
        """POST and return the raw response body (e.g. a backup file)."""
        return await self.request("POST", path, json=json, raw=True)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        data: dict[str, str] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
        raw: bool = False,
    ) -> Any:
        url = f"{self.config.api_base_url}{path}"
        headers = {"Accept": "application/json"}
        if self.context.token:
            headers["Authorization"] = f"Bearer {self.context.token}"

        logger.debug(f"{method} {url}")
        try:
            resp = await asyncio.to_thread(
                requests.request,
                method,
                url,
                headers=headers,
                params=params,
                json=json,
                data=data,
                files=files,
                timeout=self.config.api_timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Tidak dapat terhubung ke server: {e}")

        if not resp.ok:
            self._raise_for_status(resp, path)

        if raw:
            return resp.content
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            raise ApiError(resp.status_code, "Server returned non-JSON response.")

    def _raise_for_status(self, resp: requests.Response, path: str):
        message = self._extract_message(resp)

        if resp.status_code == 401 and path != Endpoint.LOGIN:
            self.context.clear()
            if message == REVOKED_MESSAGE:
                text = "Akun Anda telah login di perangkat lain. Silakan login kembali."
            else:
                text = "Sesi Anda telah berakhir. Silakan login kembali."
            logger.warning(f"{resp.status_code} on {path}; stored credentials cleared.")
            raise SessionExpiredError(resp.status_code, text)

        raise ApiError(resp.status_code, message)

    @staticmethod
    def _extract_message(resp: requests.Response) -> str:
        """Returns the backend's JSON `message`, or a generic text for non-JSON bodies."""
        try:
            body = resp.json()
        except ValueError:
            return f"Server error ({resp.status_code}): {resp.reason}"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"Server error ({resp.status_code}): {resp.reason}"
