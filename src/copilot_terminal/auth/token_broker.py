from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import httpx
from loguru import logger

from copilot_terminal.auth.credential_store import CredentialStore, parse_expiry
from copilot_terminal.errors import (
    STAGE_TOKEN,
    CopilotError,
    ErrorKind,
    TokenExpiredError,
    classify_status,
    user_message,
)
from copilot_terminal.http_client import EDITOR_PLUGIN_VERSION, EDITOR_VERSION, USER_AGENT


def utc_now() -> datetime:
    return datetime.now(UTC)


class ServiceTokenBroker:
    """Hands out the short-lived Copilot token, refreshing it on demand."""

    def __init__(
        self,
        store: CredentialStore,
        client: httpx.AsyncClient,
        *,
        api_base_url: str = "https://api.github.com",
        now: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._client = client
        self._api_base_url = api_base_url.rstrip("/")
        self._now = now

    async def get_service_token(self, identity_token: str) -> str:
        cached = self._store.get_service_token()
        if cached is not None:
            token, expires_at = cached
            if expires_at > self._now():
                return token
            logger.debug(f"Cached Copilot token expired at {expires_at.isoformat()}")

        try:
            resp = await self._client.get(
                f"{self._api_base_url}/copilot_internal/v2/token",
                headers={
                    "Authorization": f"token {identity_token}",
                    "User-Agent": USER_AGENT,
                    "Editor-Version": EDITOR_VERSION,
                    "Editor-Plugin-Version": EDITOR_PLUGIN_VERSION,
                },
            )
        except httpx.TransportError as ex:
            logger.debug(f"Token refresh transport error: {ex}")
            raise CopilotError(ErrorKind.TRANSPORT_UNAVAILABLE) from ex

        kind = classify_status(resp.status_code, stage=STAGE_TOKEN)
        if kind is not None:
            logger.debug(f"Token refresh error (HTTP {resp.status_code}): {resp.text}")
            if kind is ErrorKind.IDENTITY_EXPIRED:
                self._store.clear_service_token()
                raise TokenExpiredError(kind, "github")
            raise CopilotError(kind, user_message(kind, STAGE_TOKEN))

        data = resp.json()
        token = data.get("token")
        expires_at = parse_expiry(data.get("expires_at"))
        if not token or expires_at is None:
            logger.debug(f"Token response missing token or expiry: {sorted(data)}")
            raise CopilotError(ErrorKind.AUTHENTICATION_FAILED)

        if self._store.get_identity_token() is None:
            logger.debug("No identity token on disk; not caching the Copilot token")
        else:
            self._store.save_service_token(token, expires_at)
        return token

    def clear_cache(self) -> None:
        self._store.clear_service_token()
