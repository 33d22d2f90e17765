from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_delay,
    stop_never,
    wait_fixed,
)

from copilot_terminal.errors import CopilotError, ErrorKind
from copilot_terminal.http_client import JSON_HEADERS

DEFAULT_CLIENT_ID = "Iv1.b507a08c87ecfe98"
DEFAULT_SCOPES = "read:user,copilot"
DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"


@dataclass(frozen=True)
class DeviceCode:
    device_code: str
    user_code: str
    verification_uri: str
    expires_in: int
    interval: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeviceCode:
        return cls(
            device_code=str(data["device_code"]),
            user_code=str(data["user_code"]),
            verification_uri=str(data["verification_uri"]),
            expires_in=int(data.get("expires_in", 900)),
            interval=int(data.get("interval", 5)),
        )


class AuthorizationPending(Exception):
    """The user has not finished the browser step yet."""


def _on_poll_retry(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    if isinstance(exc, AuthorizationPending):
        logger.debug(f"Authorization pending ({exc}). Polling again in {wait:.0f}s (attempt {retry_state.attempt_number})")
    else:
        logger.warning(f"Error polling for token: {exc}. Retrying in {wait:.0f}s (attempt {retry_state.attempt_number})")


class IdentityAuthenticator:
    """GitHub OAuth device-authorization flow producing the identity token."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = "https://github.com",
        client_id: str = DEFAULT_CLIENT_ID,
        scopes: str = DEFAULT_SCOPES,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._client_id = client_id
        self._scopes = scopes
        self._sleep = sleep

    async def request_device_code(self) -> DeviceCode:
        try:
            resp = await self._client.post(
                f"{self._base_url}/login/device/code",
                headers=JSON_HEADERS,
                json={"client_id": self._client_id, "scope": self._scopes},
            )
        except httpx.TransportError as ex:
            logger.debug(f"Device code request failed: {ex}")
            raise CopilotError(ErrorKind.TRANSPORT_UNAVAILABLE) from ex

        if not 200 <= resp.status_code < 300:
            logger.debug(f"Device code error response: {resp.text}")
            raise CopilotError(
                ErrorKind.DEVICE_CODE_FAILED,
                f"Failed to get device code: {resp.reason_phrase}",
            )
        return DeviceCode.from_dict(resp.json())

    async def poll_for_token(
        self,
        device_code: str,
        interval: float,
        *,
        expires_in: float | None = None,
    ) -> str:
        """Poll the token endpoint until the user authorizes the device.

        Without ``expires_in`` this never gives up: every failure, pending or
        not, is followed by another attempt after ``interval`` seconds. With
        ``expires_in`` the loop stops once that many seconds have elapsed.
        """
        retrying = AsyncRetrying(
            sleep=self._sleep,
            retry=retry_if_exception_type(Exception),
            wait=wait_fixed(interval),
            stop=stop_never if expires_in is None else stop_after_delay(expires_in),
            before_sleep=_on_poll_retry,
        )
        try:
            return await retrying(self._exchange_device_code, device_code)
        except RetryError as ex:
            logger.debug(f"Gave up polling after {ex.last_attempt.attempt_number} attempt(s)")
            raise CopilotError(ErrorKind.DEVICE_CODE_EXPIRED) from ex

    async def _exchange_device_code(self, device_code: str) -> str:
        resp = await self._client.post(
            f"{self._base_url}/login/oauth/access_token",
            headers=JSON_HEADERS,
            json={
                "client_id": self._client_id,
                "device_code": device_code,
                "grant_type": DEVICE_GRANT_TYPE,
            },
        )
        if not 200 <= resp.status_code < 300:
            raise RuntimeError(f"Failed to get token: {resp.reason_phrase}")

        data = resp.json()
        token = data.get("access_token") if isinstance(data, dict) else None
        if token:
            return str(token)
        reason = data.get("error", "authorization_pending") if isinstance(data, dict) else "authorization_pending"
        raise AuthorizationPending(reason)
