"""Records handed from the share process to the main application."""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class EntryKind(str, Enum):
    URL = "url"
    PDF = "pdf"
    TEXT = "text"


@dataclass(frozen=True)
class SharedEntry:
    """One captured item waiting in the shared queue."""

    kind: EntryKind
    content: str
    filename: str | None = None
    size: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.kind.value, "content": self.content}
        if self.filename is not None:
            data["filename"] = self.filename
        if self.size is not None:
            data["size"] = self.size
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SharedEntry":
        """Create an entry from its stored map.

        Raises:
            ValueError: If the map has an unknown ``type``.
        """
        kind = EntryKind(data.get("type"))
        filename = data.get("filename")
        size = data.get("size")
        content = data.get("content")
        return cls(
            kind=kind,
            content=content if isinstance(content, str) else "",
            filename=filename if isinstance(filename, str) else None,
            size=size if isinstance(size, int) else None,
        )


@dataclass(frozen=True)
class PendingItem:
    """A consumed entry held by the main application."""

    entry: SharedEntry
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    captured_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def kind(self) -> EntryKind:
        return self.entry.kind

    @property
    def content(self) -> str:
        return self.entry.content

    @property
    def filename(self) -> str | None:
        return self.entry.filename

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "captured_at": self.captured_at.isoformat(),
            **self.entry.to_dict(),
        }


@dataclass
class FailedAttachment:
    """An attachment that could not be queued."""

    description: str
    reason: str
