from __future__ import annotations

import json
import time
from collections.abc import Callable
from pathlib import Path
from uuid import uuid4

from loguru import logger

from copilot_terminal.errors import StorageError
from copilot_terminal.sessions.models import Session


def now_ms() -> int:
    return int(time.time() * 1000)


class SessionStore:
    """One JSON file per session, named ``<id>.json``, under ``directory``."""

    def __init__(self, directory: str | Path, *, clock: Callable[[], int] = now_ms):
        self._directory = Path(directory)
        self._clock = clock

    @property
    def directory(self) -> Path:
        return self._directory

    def new_session(self, session_id: str | None = None) -> Session:
        now = self._clock()
        return Session(id=session_id or str(uuid4()), created_at=now, last_updated_at=now)

    def create_session(self, session_id: str | None = None) -> Session:
        session = self.new_session(session_id)
        self.save_session(session)
        return session

    def load_session(self, session_id: str) -> Session | None:
        path = self._session_path(session_id)
        try:
            with open(path, encoding="utf-8") as f:
                return Session.from_dict(json.load(f))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as ex:
            logger.warning(f"Error loading session {session_id}: {ex}")
            return None

    def save_session(self, session: Session) -> None:
        path = self._session_path(session.id)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(session.to_dict(), f, indent=2)
        except OSError as ex:
            raise StorageError(f"Could not save session {session.id}: {ex}") from ex

    def list_sessions(self) -> list[Session]:
        if not self._directory.exists():
            return []
        sessions: list[Session] = []
        for path in self._directory.glob("*.json"):
            try:
                session = self.load_session(path.stem)
            except ValueError:
                logger.debug(f"Skipping unexpected file in sessions directory: {path.name}")
                continue
            if session is not None:
                sessions.append(session)
        return sorted(sessions, key=lambda s: s.last_updated_at, reverse=True)

    def delete_session(self, session_id: str) -> bool:
        path = self._session_path(session_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as ex:
            logger.warning(f"Error deleting session {session_id}: {ex}")
            return False
        return True

    def _session_path(self, session_id: str) -> Path:
        if not session_id or session_id in (".", "..") or Path(session_id).name != session_id:
            raise ValueError(f"Invalid session id: {session_id!r}")
        return self._directory / f"{session_id}.json"
