from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from loguru import logger

from copilot_terminal.errors import StorageError

SLOT_IDENTITY = "identity"
SLOT_SERVICE = "service"
SLOT_SERVICE_EXPIRY = "serviceExpiry"

# Logical slot -> key in the persisted JSON blob.
_SLOT_KEYS = {
    SLOT_IDENTITY: "githubToken",
    SLOT_SERVICE: "copilotToken",
    SLOT_SERVICE_EXPIRY: "copilotTokenExpiresAt",
}

# The service token and its expiry are only ever written or removed together.
_PAIRED_SLOTS = (SLOT_SERVICE, SLOT_SERVICE_EXPIRY)


def _from_epoch(seconds: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(seconds, UTC)
    except (OverflowError, OSError, ValueError):
        return None


def parse_expiry(value: Any) -> datetime | None:
    """Accept an ISO-8601 string or seconds since the epoch."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        return _from_epoch(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            seconds = float(text)
        except ValueError:
            pass
        else:
            return _from_epoch(seconds)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


def format_expiry(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


@dataclass(frozen=True)
class CredentialRecord:
    identity_token: str
    service_token: str | None = None
    service_token_expiry: datetime | None = None

    def to_blob(self) -> dict[str, Any]:
        blob: dict[str, Any] = {_SLOT_KEYS[SLOT_IDENTITY]: self.identity_token}
        if self.service_token and self.service_token_expiry is not None:
            blob[_SLOT_KEYS[SLOT_SERVICE]] = self.service_token
            blob[_SLOT_KEYS[SLOT_SERVICE_EXPIRY]] = format_expiry(self.service_token_expiry)
        return blob

    @classmethod
    def from_blob(cls, blob: dict[str, Any]) -> CredentialRecord | None:
        identity = blob.get(_SLOT_KEYS[SLOT_IDENTITY])
        if not isinstance(identity, str) or not identity:
            return None
        service = blob.get(_SLOT_KEYS[SLOT_SERVICE])
        expiry = parse_expiry(blob.get(_SLOT_KEYS[SLOT_SERVICE_EXPIRY]))
        if not isinstance(service, str) or not service or expiry is None:
            return cls(identity_token=identity)
        return cls(identity_token=identity, service_token=service, service_token_expiry=expiry)


class CredentialStore:
    """Single-user token store backed by one JSON file.

    Every mutation is a full read-merge-write of the file, so keys this
    process does not know about survive. There is no locking: a second
    process writing the same file wins or loses silently.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CredentialRecord | None:
        blob = self._read_blob()
        if blob is None:
            return None
        return CredentialRecord.from_blob(blob)

    def save(self, record: CredentialRecord) -> None:
        blob = self._read_blob() or {}
        for slot in _PAIRED_SLOTS:
            blob.pop(_SLOT_KEYS[slot], None)
        blob.update(record.to_blob())
        self._write_blob(blob)

    def get(self, slot: str) -> str | datetime | None:
        key = _slot_key(slot)
        blob = self._read_blob()
        if blob is None:
            return None
        value = blob.get(key)
        if slot == SLOT_SERVICE_EXPIRY:
            return parse_expiry(value)
        if not isinstance(value, str) or not value:
            return None
        return value

    def set(self, slot: str, value: str | datetime | int | float) -> None:
        key = _slot_key(slot)
        blob = self._read_blob() or {}
        if slot == SLOT_SERVICE_EXPIRY:
            expiry = parse_expiry(value)
            if expiry is None:
                raise ValueError(f"Unrecognised expiry value: {value!r}")
            blob[key] = format_expiry(expiry)
        else:
            blob[key] = value
        self._write_blob(blob)

    def clear(self, slot: str) -> None:
        key = _slot_key(slot)
        if not self._path.exists():
            return
        blob = self._read_blob()
        if blob is None:
            logger.debug(f"Credential file {self._path} is unreadable; nothing to clear")
            return
        keys = [_SLOT_KEYS[s] for s in _PAIRED_SLOTS] if slot in _PAIRED_SLOTS else [key]
        if not any(k in blob for k in keys):
            return
        for k in keys:
            blob.pop(k, None)
        self._write_blob(blob, action="clear")

    def get_identity_token(self) -> str | None:
        value = self.get(SLOT_IDENTITY)
        return value if isinstance(value, str) else None

    def save_identity_token(self, token: str) -> None:
        self.set(SLOT_IDENTITY, token)

    def get_service_token(self) -> tuple[str, datetime] | None:
        record = self.load()
        if record is None or record.service_token is None or record.service_token_expiry is None:
            return None
        return record.service_token, record.service_token_expiry

    def save_service_token(self, token: str, expires_at: datetime) -> None:
        blob = self._read_blob() or {}
        blob[_SLOT_KEYS[SLOT_SERVICE]] = token
        blob[_SLOT_KEYS[SLOT_SERVICE_EXPIRY]] = format_expiry(expires_at)
        self._write_blob(blob)

    def clear_service_token(self) -> None:
        self.clear(SLOT_SERVICE)

    def clear_all(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as ex:
            logger.error(f"Error clearing tokens: {ex}")
            raise StorageError("Could not clear authentication tokens. Check file permissions.") from ex

    def _read_blob(self) -> dict[str, Any] | None:
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as ex:
            logger.debug(f"Error reading credential file {self._path}: {ex}")
            return None
        if not isinstance(data, dict):
            return None
        return data

    def _write_blob(self, blob: dict[str, Any], *, action: str = "save") -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(blob, f, indent=2)
        except OSError as ex:
            logger.error(f"Error writing credential file {self._path}: {ex}")
            if action == "clear":
                raise StorageError("Could not clear Copilot token. Check file permissions.") from ex
            raise StorageError(
                "Could not save authentication tokens. Check file permissions in your home directory."
            ) from ex


def _slot_key(slot: str) -> str:
    try:
        return _SLOT_KEYS[slot]
    except KeyError:
        raise ValueError(f"Unknown credential slot: {slot!r}") from None
