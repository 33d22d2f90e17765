from copilot_terminal.sessions.models import Session, SessionEntry
from copilot_terminal.sessions.session_log import SessionLog, render_context
from copilot_terminal.sessions.store import SessionStore

__all__ = [
    "Session",
    "SessionEntry",
    "SessionLog",
    "SessionStore",
    "render_context",
]
