"""Persisted records shared by the guest and account stores."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum


class SourceType(str, Enum):
    URL = "url"
    PDF = "pdf"


def utc_now() -> str:
    """ISO-8601 UTC timestamp with fixed precision, so strings sort by time."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class HistoryRecord:
    """One instance of content being loaded. Never mutated after insertion."""

    title: str
    source_type: SourceType
    content_preview: str = ""
    source_url: str | None = None
    id: str = field(default_factory=new_id)
    read_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["source_type"] = self.source_type.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> HistoryRecord:
        return cls(
            id=data["id"],
            title=data["title"],
            source_type=SourceType(data["source_type"]),
            source_url=data.get("source_url"),
            content_preview=data.get("content_preview", ""),
            read_at=data["read_at"],
        )


@dataclass(frozen=True)
class Bookmark:
    """Saved playback position for one content key."""

    content_key: str
    position: int
    total_units: int
    updated_at: str = field(default_factory=utc_now)

    @property
    def progress_ratio(self) -> float:
        return self.position / self.total_units if self.total_units > 0 else 0.0

    def to_dict(self) -> dict:
        # Field names follow the account table so guest and account rows read alike.
        return {
            "history_id": self.content_key,
            "position": self.position,
            "total_words": self.total_units,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Bookmark:
        return cls(
            content_key=data["history_id"],
            position=int(data["position"]),
            total_units=int(data["total_words"]),
            updated_at=data["updated_at"],
        )
