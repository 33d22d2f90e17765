from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from copilot_terminal.errors import StorageError
from copilot_terminal.sessions.models import Session, SessionEntry
from copilot_terminal.sessions.store import SessionStore, now_ms

MAX_OUTPUT_CHARS = 500
TRUNCATION_MARKER = "... [output truncated]"
CONTEXT_HEADER = "Previous commands:\n\n"


class SessionLog:
    """Append-only log for the current run, persisted after every mutation."""

    def __init__(
        self,
        store: SessionStore,
        session: Session,
        *,
        clock: Callable[[], int] = now_ms,
        max_output_chars: int = MAX_OUTPUT_CHARS,
    ):
        self._store = store
        self._session = session
        self._clock = clock
        self._max_output_chars = max_output_chars

    @classmethod
    def start(cls, store: SessionStore, *, clock: Callable[[], int] = now_ms, **kwargs) -> SessionLog:
        log = cls(store, store.new_session(), clock=clock, **kwargs)
        log._persist()
        return log

    @property
    def session(self) -> Session:
        return self._session

    @property
    def entries(self) -> list[SessionEntry]:
        return self._session.entries

    def __len__(self) -> int:
        return len(self._session.entries)

    def append(self, prompt: str, command: str | None = None, executed: bool = False) -> Session:
        entry = SessionEntry(timestamp=self._stamp(), prompt=prompt, command=command, executed=executed)
        self._session.entries.append(entry)
        self._session.last_updated_at = entry.timestamp
        self._persist()
        return self._session

    def update_last(
        self,
        command: str | None = None,
        executed: bool = False,
        output: str | None = None,
    ) -> Session:
        if not self._session.entries:
            return self._session

        last = self._session.entries[-1]
        if command is not None:
            last.command = command
        last.executed = executed
        if output is not None:
            last.output = output
        last.timestamp = self._stamp()
        self._session.last_updated_at = last.timestamp
        self._persist()
        return self._session

    def context(self, limit: int = 5) -> str:
        if limit <= 0 or not self._session.entries:
            return ""
        return render_context(self._session.entries[-limit:], self._max_output_chars)

    def _stamp(self) -> int:
        # Never step backwards, even if the wall clock does.
        return max(self._clock(), self._session.last_updated_at)

    def _persist(self) -> None:
        # The in-memory log stays authoritative for this run when the disk write fails.
        try:
            self._store.save_session(self._session)
        except StorageError as ex:
            logger.warning(ex.message)


def render_context(entries: list[SessionEntry], max_output_chars: int = MAX_OUTPUT_CHARS) -> str:
    parts = [CONTEXT_HEADER]
    for index, entry in enumerate(entries, 1):
        parts.append(f"[{index}] User: {entry.prompt}\n")
        if entry.command:
            parts.append(f"    Command: {entry.command}\n")
            parts.append(f"    Executed: {'Yes' if entry.executed else 'No'}\n")
            if entry.output:
                output = entry.output
                if len(output) > max_output_chars:
                    output = output[:max_output_chars] + TRUNCATION_MARKER
                indented = output.replace("\n", "\n      ")
                parts.append(f"    Output: {indented}\n")
        parts.append("\n")
    return "".join(parts)
