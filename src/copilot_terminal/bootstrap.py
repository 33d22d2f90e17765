from __future__ import annotations

from dataclasses import dataclass

import httpx

from copilot_terminal.app_config import AppConfig
from copilot_terminal.auth import CredentialStore, IdentityAuthenticator, ServiceTokenBroker
from copilot_terminal.http_client import create_http_client
from copilot_terminal.logging_config import setup_logging
from copilot_terminal.sessions import SessionLog, SessionStore
from copilot_terminal.suggestion_service import SuggestionService


@dataclass
class AppRuntime:
    config: AppConfig
    client: httpx.AsyncClient
    credential_store: CredentialStore
    session_store: SessionStore
    authenticator: IdentityAuthenticator
    broker: ServiceTokenBroker
    suggestions: SuggestionService
    session_log: SessionLog
    log_descriptions: list[str]

    async def close(self) -> None:
        await self.client.aclose()


async def bootstrap_runtime(app: AppConfig) -> AppRuntime:
    log_descriptions = setup_logging(
        level=app.log_level,
        consumers=app.log_consumers,
        log_file=app.log_file,
    )

    client = create_http_client(app.http_timeout_seconds)
    credential_store = CredentialStore(app.token_file)
    session_store = SessionStore(app.sessions_dir)

    authenticator = IdentityAuthenticator(
        client,
        base_url=app.github_base_url,
        client_id=app.client_id,
        scopes=app.scopes,
    )
    broker = ServiceTokenBroker(credential_store, client, api_base_url=app.github_api_base_url)
    suggestions = SuggestionService(
        broker,
        client,
        model=app.model,
        api_base_url=app.copilot_api_base_url,
        context_limit=app.context_limit,
    )
    session_log = SessionLog.start(session_store, max_output_chars=app.output_preview_chars)

    return AppRuntime(
        config=app,
        client=client,
        credential_store=credential_store,
        session_store=session_store,
        authenticator=authenticator,
        broker=broker,
        suggestions=suggestions,
        session_log=session_log,
        log_descriptions=log_descriptions,
    )
