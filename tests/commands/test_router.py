import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from copilot_terminal.commands.router import CommandRouter


class CommandRouterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.on_help = AsyncMock()
        self.on_logout = AsyncMock()
        self.on_sessions = AsyncMock()
        self.on_run = AsyncMock()
        self.on_unknown = MagicMock()
        self.router = CommandRouter(
            on_help=self.on_help,
            on_logout=self.on_logout,
            on_sessions=self.on_sessions,
            on_run=self.on_run,
            on_unknown=self.on_unknown,
        )

    def _handle(self, line: str) -> bool:
        return asyncio.run(self.router.try_handle(line))

    def test_plain_prompt_is_not_handled(self) -> None:
        self.assertFalse(self._handle("list all python files"))
        self.on_unknown.assert_not_called()

    def test_help(self) -> None:
        self.assertTrue(self._handle("/help"))
        self.on_help.assert_awaited_once()

    def test_logout(self) -> None:
        self.assertTrue(self._handle("  /logout  "))
        self.on_logout.assert_awaited_once()

    def test_session_commands_receive_trimmed_line(self) -> None:
        self.assertTrue(self._handle("/session delete abc "))
        self.on_sessions.assert_awaited_once_with("/session delete abc")

    def test_sessions_alias(self) -> None:
        self.assertTrue(self._handle("/sessions"))
        self.on_sessions.assert_awaited_once_with("/sessions")

    def test_bang_runs_command(self) -> None:
        self.assertTrue(self._handle("! ls -la"))
        self.on_run.assert_awaited_once_with("ls -la")

    def test_unknown_slash_command(self) -> None:
        self.assertTrue(self._handle("/frobnicate"))
        self.on_unknown.assert_called_once_with("/frobnicate")
