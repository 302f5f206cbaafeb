from __future__ import annotations
import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional
from pydantic import BaseModel, Field
from pydantic import ConfigDict


class LineMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    type: str
    text: Optional[str] = None


class LineEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    timestamp: int
    message: Optional[LineMessage] = None

    def is_text_message(self) -> bool:
        return (
            self.type == "message"
            and self.message is not None
            and self.message.type == "text"
            and isinstance(self.message.text, str)
        )


class LineWebhookBody(BaseModel):
    """Inbound LINE webhook envelope.

    Only the fields the append pipeline reads are modelled; everything else in
    the delivery (destination, replyToken, source, ...) is ignored.
    """

    model_config = ConfigDict(extra="ignore")

    events: List[LineEvent] = Field(default_factory=list)


@dataclass(frozen=True)
class InboundMessage:
    text: str
    timestamp_ms: int
    message_id: Optional[str] = None

    @classmethod
    def from_event(cls, event: LineEvent) -> "InboundMessage":
        if not event.is_text_message():
            raise ValueError("event is not a text message")
        return cls(
            text=event.message.text.strip(),
            timestamp_ms=event.timestamp,
            message_id=event.message.id,
        )


@dataclass(frozen=True)
class TimeParts:
    year: str
    date: str
    time: str


@dataclass(frozen=True)
class LogEntry:
    clock_time: str
    content: str

    def render(self) -> str:
        return f"- {self.clock_time} {self.content}\n"


@dataclass(frozen=True)
class CommitIdentity:
    name: str
    email: str


@dataclass
class WorkingCopy:
    """Invocation-scoped clone of the vault.

    ``handle`` is whatever the version-control binding returned from clone
    (a ``git.Repo`` for the GitPython binding).
    """

    root: Path
    handle: Any


class TargetKind(str, enum.Enum):
    TIMELINE = "timeline"
    TOPIC = "topic"


class DedupPolicy(str, enum.Enum):
    CONTENT = "content"
    MARKER = "marker"
    STRICT = "strict"


class FileState(str, enum.Enum):
    ABSENT = "absent"
    DUPLICATE = "duplicate"
    MERGEABLE = "mergeable"


@dataclass(frozen=True)
class MergeResult:
    applied: bool
    state: FileState
    path: Path


class Outcome(str, enum.Enum):
    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
