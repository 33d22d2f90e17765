from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from copilot_terminal.auth.token_broker import ServiceTokenBroker
from copilot_terminal.errors import (
    STAGE_COMPLETION,
    CopilotError,
    ErrorKind,
    TokenExpiredError,
    classify_status,
)
from copilot_terminal.http_client import EDITOR_VERSION
from copilot_terminal.sessions.session_log import SessionLog

DEFAULT_MODEL = "claude-3.5-sonnet"

_ASSISTANT_INSTRUCTIONS = (
    "You are a command-line assistant. Generate accurate terminal commands based on user requests. "
    "Consider the context of previous commands when applicable."
)


def build_messages(prompt: str, session_context: str = "") -> list[dict[str, str]]:
    messages: list[dict[str, str]] = []
    if session_context:
        messages.append({"role": "system", "content": f"{session_context}\n\n{_ASSISTANT_INSTRUCTIONS}"})
    messages.append({
        "role": "user",
        "content": f"Generate a terminal command for: {prompt}\nProvide only the command, no explanation.",
    })
    return messages


def build_request(model: str, messages: list[dict[str, str]]) -> dict[str, Any]:
    return {
        "intent": False,
        "model": model,
        "temperature": 0,
        "top_p": 1,
        "n": 1,
        "stream": False,
        "messages": messages,
    }


def extract_suggestion(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    if not isinstance(content, str):
        return ""
    return content.strip()


class SuggestionService:
    def __init__(
        self,
        broker: ServiceTokenBroker,
        client: httpx.AsyncClient,
        *,
        model: str = DEFAULT_MODEL,
        api_base_url: str = "https://api.githubcopilot.com",
        context_limit: int = 5,
    ):
        self._broker = broker
        self._client = client
        self._model = model
        self._api_base_url = api_base_url.rstrip("/")
        self._context_limit = context_limit

    async def suggest(self, prompt: str, identity_token: str, session: SessionLog | None = None) -> str:
        """Return a shell command for ``prompt``.

        Every failure surfaces as a ``CopilotError`` with a user-safe message.
        ``TokenExpiredError`` is re-raised untouched so the caller can decide
        whether to re-run the device flow.
        """
        try:
            return await self._suggest(prompt, identity_token, session)
        except TokenExpiredError:
            raise
        except CopilotError as ex:
            logger.debug(f"Suggestion failed: {ex.kind.value}: {ex}")
            raise
        except Exception as ex:
            logger.debug(f"Suggestion failed: {type(ex).__name__}: {ex}")
            raise _translate(ex) from ex

    async def _suggest(self, prompt: str, identity_token: str, session: SessionLog | None) -> str:
        service_token = await self._broker.get_service_token(identity_token)

        session_context = ""
        if session is not None and len(session) > 0:
            session_context = session.context(self._context_limit)

        messages = build_messages(prompt, session_context)
        logger.debug(f"Completion request: model={self._model}, messages={len(messages)}")

        resp = await self._client.post(
            f"{self._api_base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {service_token}",
                "Editor-Version": EDITOR_VERSION,
                "Content-Type": "application/json",
            },
            json=build_request(self._model, messages),
        )

        kind = classify_status(resp.status_code, stage=STAGE_COMPLETION)
        if kind is not None:
            logger.debug(f"Completion error (HTTP {resp.status_code}): {resp.text}")
            if kind is ErrorKind.SERVICE_TOKEN_EXPIRED:
                self._broker.clear_cache()
                raise TokenExpiredError(kind, "copilot")
            raise CopilotError(kind)

        suggestion = extract_suggestion(resp.json())
        if not suggestion:
            raise CopilotError(ErrorKind.EMPTY_RESULT)
        return suggestion


def _translate(ex: Exception) -> CopilotError:
    if isinstance(ex, httpx.TransportError):
        return CopilotError(ErrorKind.TRANSPORT_UNAVAILABLE)
    return CopilotError(ErrorKind.UNKNOWN)
