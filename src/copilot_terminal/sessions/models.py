from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SessionEntry:
    timestamp: int
    prompt: str
    command: str | None = None
    executed: bool | None = None
    output: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"timestamp": self.timestamp, "prompt": self.prompt}
        if self.command is not None:
            data["command"] = self.command
        if self.executed is not None:
            data["executed"] = self.executed
        if self.output is not None:
            data["output"] = self.output
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionEntry:
        return cls(
            timestamp=int(data.get("timestamp", 0)),
            prompt=str(data.get("prompt", "")),
            command=data.get("command"),
            executed=data.get("executed"),
            output=data.get("output"),
        )


@dataclass
class Session:
    """One run's prompt/command log. Timestamps are epoch milliseconds."""

    id: str
    created_at: int
    last_updated_at: int
    entries: list[SessionEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "lastUpdatedAt": self.last_updated_at,
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        return cls(
            id=str(data["id"]),
            created_at=int(data.get("createdAt", 0)),
            last_updated_at=int(data.get("lastUpdatedAt", 0)),
            entries=[SessionEntry.from_dict(e) for e in data.get("entries", []) if isinstance(e, dict)],
        )
