from __future__ import annotations

from datetime import UTC, datetime

from copilot_terminal.sessions.models import Session


def format_ms(value: int) -> str:
    try:
        return datetime.fromtimestamp(value / 1000, UTC).isoformat(timespec="seconds")
    except (OverflowError, OSError, ValueError):
        return str(value)


class SessionController:
    def __init__(self, *, line_prefix: str, short_id_len: int = 8):
        self._line_prefix = line_prefix
        self._short_id_len = short_id_len

    def short_id(self, value: str) -> str:
        if len(value) <= self._short_id_len:
            return value
        return value[: self._short_id_len]

    def format_session_list_entry(self, session: Session, *, active_session_id: str | None) -> str:
        marker = "*" if session.id == active_session_id else " "
        return (
            f"{self._line_prefix}{marker} [{self.short_id(session.id)}] (id={session.id}) "
            f"(entries={len(session.entries)}, created={format_ms(session.created_at)}, "
            f"updated={format_ms(session.last_updated_at)})"
        )

    def format_session_list(self, sessions: list[Session], *, active_session_id: str | None) -> list[str]:
        if not sessions:
            return [f"{self._line_prefix}No saved sessions."]
        return [self.format_session_list_entry(s, active_session_id=active_session_id) for s in sessions]

    def resolve_session_id(self, sessions: list[Session], identifier: str) -> str | None:
        """Match a full id or an unambiguous id prefix."""
        needle = identifier.strip()
        if not needle:
            return None
        for session in sessions:
            if session.id == needle:
                return session.id
        matches = [s.id for s in sessions if s.id.startswith(needle)]
        if len(matches) > 1:
            raise ValueError(f"Ambiguous session id prefix: {needle}")
        return matches[0] if matches else None
