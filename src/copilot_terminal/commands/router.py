from __future__ import annotations

from collections.abc import Awaitable, Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_logout: Callable[[], Awaitable[None]],
        on_sessions: Callable[[str], Awaitable[None]],
        on_run: Callable[[str], Awaitable[None]],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_logout = on_logout
        self._on_sessions = on_sessions
        self._on_run = on_run
        self._on_unknown = on_unknown

    async def try_handle(self, line: str) -> bool:
        """Dispatch local commands. Returns False when ``line`` is a prompt for Copilot."""
        trimmed = line.strip()

        if trimmed.startswith("!"):
            await self._on_run(trimmed[1:].strip())
            return True

        if not trimmed.startswith("/"):
            return False

        if trimmed == "/help":
            await self._on_help()
            return True
        if trimmed == "/logout":
            await self._on_logout()
            return True
        if trimmed.startswith("/session"):
            await self._on_sessions(trimmed)
            return True

        self._on_unknown(trimmed)
        return True
