from __future__ import annotations

from collections.abc import Awaitable, Callable

from loguru import logger

from copilot_terminal.bootstrap import AppRuntime
from copilot_terminal.commands.router import CommandRouter
from copilot_terminal.errors import CopilotError, TokenExpiredError
from copilot_terminal.services.session_controller import SessionController
from copilot_terminal.shell_runner import CommandResult, run_shell_command

_HELP_LINES = [
    "Type a request in plain English to get a shell command suggestion.",
    "  !<command>              run a command directly",
    "  /sessions               list saved sessions",
    "  /session delete <id>    delete a saved session",
    "  /logout                 forget stored GitHub credentials",
    "  /help                   show this help",
    "  exit | quit             leave",
]


class TerminalAssistant:
    _LINE_PREFIX = "copilot> "

    def __init__(
        self,
        runtime: AppRuntime,
        *,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
        runner: Callable[[str], Awaitable[CommandResult]] = run_shell_command,
    ):
        self._runtime = runtime
        self._input = input_fn
        self._output = output_fn
        self._runner = runner
        self._identity_token: str | None = None
        self._session_controller = SessionController(line_prefix=self._LINE_PREFIX)
        self._command_router = CommandRouter(
            on_help=self._on_help,
            on_logout=self._on_logout,
            on_sessions=self._on_sessions,
            on_run=self._run_direct,
            on_unknown=self._on_unknown,
        )

    @property
    def identity_token(self) -> str | None:
        return self._identity_token

    async def ensure_logged_in(self) -> str:
        token = self._runtime.credential_store.get_identity_token()
        if token:
            self._identity_token = token
            return token
        return await self.login()

    async def login(self) -> str:
        auth = self._runtime.authenticator
        self._output("No valid GitHub token found. Starting device authorization flow...\n")
        device = await auth.request_device_code()
        self._output("To authorize this application, visit:")
        self._output(device.verification_uri)
        self._output(f"\nAnd enter the code: {device.user_code}")
        self._output("\nWaiting for authorization...")

        expires_in = device.expires_in if self._runtime.config.enforce_device_code_expiry else None
        token = await auth.poll_for_token(device.device_code, device.interval, expires_in=expires_in)
        self._runtime.credential_store.save_identity_token(token)
        self._identity_token = token
        self._output("Authorization successful!\n")
        return token

    async def handle_line(self, line: str) -> None:
        if await self._command_router.try_handle(line):
            return
        await self.handle_prompt(line.strip())

    async def handle_prompt(self, prompt: str) -> None:
        session_log = self._runtime.session_log
        if self._identity_token is None:
            await self.ensure_logged_in()

        try:
            command = await self._suggest(prompt)
        except CopilotError as ex:
            self._output(f"{self._LINE_PREFIX}{ex.message}")
            session_log.append(prompt)
            return

        self._output(f"{self._LINE_PREFIX}{command}")
        session_log.append(prompt, command)
        answer = self._input("Run this command? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            session_log.update_last(command, executed=False)
            return

        result = await self._runner(command)
        if result.output:
            self._output(result.output)
        session_log.update_last(command, executed=result.executed, output=result.output)

    async def _suggest(self, prompt: str) -> str:
        suggestions = self._runtime.suggestions
        session_log = self._runtime.session_log
        try:
            return await suggestions.suggest(prompt, self._identity_token, session_log)
        except TokenExpiredError as ex:
            if ex.token_type != "github":
                raise CopilotError(ex.kind, "Copilot token expired. Please try your request again.") from ex
            logger.info("GitHub token rejected; re-running device authorization")

        await self.login()
        return await suggestions.suggest(prompt, self._identity_token, session_log)

    async def _run_direct(self, command: str) -> None:
        if not command:
            return
        self._runtime.session_log.append(command, command)
        result = await self._runner(command)
        if result.output:
            self._output(result.output)
        self._runtime.session_log.update_last(command, executed=result.executed, output=result.output)

    async def _on_help(self) -> None:
        for line in _HELP_LINES:
            self._output(line)

    async def _on_logout(self) -> None:
        self._runtime.credential_store.clear_all()
        self._identity_token = None
        self._output(f"{self._LINE_PREFIX}Logged out. You will be asked to authorize on the next request.")

    async def _on_sessions(self, command: str) -> None:
        store = self._runtime.session_store
        active_id = self._runtime.session_log.session.id
        parts = command.split()

        if parts[0] == "/sessions" or parts[1:2] == ["list"]:
            for line in self._session_controller.format_session_list(
                store.list_sessions(), active_session_id=active_id
            ):
                self._output(line)
            return

        if parts[1:2] == ["delete"] and len(parts) == 3:
            try:
                session_id = self._session_controller.resolve_session_id(store.list_sessions(), parts[2])
            except ValueError as ex:
                self._output(f"{self._LINE_PREFIX}{ex}")
                return
            if session_id is None:
                self._output(f"{self._LINE_PREFIX}Session not found: {parts[2]}")
            elif session_id == active_id:
                self._output(f"{self._LINE_PREFIX}Cannot delete the active session.")
            elif store.delete_session(session_id):
                self._output(f"{self._LINE_PREFIX}Deleted session {session_id}")
            else:
                self._output(f"{self._LINE_PREFIX}Could not delete session {session_id}")
            return

        self._output(f"{self._LINE_PREFIX}Usage: /sessions | /session delete <id>")

    def _on_unknown(self, command: str) -> None:
        self._output(f"{self._LINE_PREFIX}Unknown command: {command}. Type /help for commands.")

    async def run_loop(self) -> None:
        while True:
            try:
                line = self._input("? ")
            except (EOFError, KeyboardInterrupt):
                break

            trimmed = line.strip()
            if trimmed in ("exit", "quit"):
                break
            if not trimmed:
                continue

            try:
                await self.handle_line(trimmed)
            except CopilotError as ex:
                self._output(f"{self._LINE_PREFIX}{ex.message}")
            except Exception as ex:
                logger.error(f"Unhandled error: {ex}")
