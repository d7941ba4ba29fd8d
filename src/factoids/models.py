"""Data models for the factoid store."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Intent(str, Enum):
    """How a factoid's message is delivered.

    ALIAS marks a factoid whose message is the key of another factoid.
    """

    SAY = "say"
    ACT = "act"
    ALIAS = "alias"


def now() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Content:
    """The readable part of a factoid.

    Attributes:
        intent: Delivery intent.
        message: Display text, or the target key for aliases.
    """

    intent: Intent
    message: str


@dataclass(frozen=True)
class Factoid:
    """A complete factoid revision.

    Attributes:
        key: Normalized key.
        intent: Delivery intent.
        message: Display text, or the target key for aliases.
        editor: Identity of the last editor (e.g. a full hostmask).
        time: ISO timestamp of the edit that produced this revision.
        frozen: Whether only admins may edit the factoid.
    """

    key: str
    intent: Intent
    message: str
    editor: str
    time: str
    frozen: bool = False

    @property
    def content(self) -> Content:
        return Content(intent=self.intent, message=self.message)

    def to_record(self) -> "FactoidRecord":
        return FactoidRecord(
            content=self.content,
            editor=self.editor,
            time=self.time,
            frozen=self.frozen,
        )


@dataclass(frozen=True)
class FactoidRecord:
    """What the durable map holds for a key.

    A record without content is a tombstone (left behind by delete) or a
    frozen-only stub (a key frozen before it was ever set). Either way it
    reads as nonexistent but keeps its lock and edit metadata.
    """

    content: Content | None = None
    editor: str | None = None
    time: str | None = None
    frozen: bool = False

    @property
    def exists(self) -> bool:
        """True if the record has readable content."""
        return self.content is not None

    def with_frozen(self, frozen: bool) -> "FactoidRecord":
        return FactoidRecord(
            content=self.content,
            editor=self.editor,
            time=self.time,
            frozen=frozen,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the stored value shape, omitting absent fields."""
        data: dict[str, Any] = {}
        if self.content is not None:
            data["intent"] = self.content.intent.value
            data["message"] = self.content.message
        if self.editor is not None:
            data["editor"] = self.editor
        if self.time is not None:
            data["time"] = self.time
        data["frozen"] = self.frozen
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FactoidRecord":
        """Create from a stored value."""
        content = None
        if data.get("intent") and data.get("message"):
            content = Content(intent=Intent(data["intent"]), message=data["message"])
        return cls(
            content=content,
            editor=data.get("editor"),
            time=data.get("time"),
            frozen=bool(data.get("frozen", False)),
        )
