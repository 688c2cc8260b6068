"""Data models for the watch supervisor package."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional
import time

from .exceptions import ProtocolError
from .paths import simplified


class RawEventKind(Enum):
    """Primitive event kinds delivered by the filesystem event source."""
    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    RENAME = "rename"
    # Informational kinds, never turned into file events
    NOTICE_WRITE = "notice_write"
    NOTICE_REMOVE = "notice_remove"
    CHMOD = "chmod"
    RESCAN = "rescan"
    ERROR = "error"


INFORMATIONAL_KINDS = frozenset({
    RawEventKind.NOTICE_WRITE,
    RawEventKind.NOTICE_REMOVE,
    RawEventKind.CHMOD,
    RawEventKind.RESCAN,
    RawEventKind.ERROR,
})


class EventAction(Enum):
    """Watch-scoped actions reported to the client."""
    MODIFIED = "modified"
    CREATED = "created"
    DELETED = "deleted"
    RENAMED = "renamed"


class CommandType(Enum):
    """Types of commands accepted on standard input."""
    WATCH = "watch"
    UNWATCH = "unwatch"


class ResponseType(Enum):
    """Types of command responses."""
    OK = "ok"
    ERROR = "error"


@dataclass(frozen=True)
class Watch:
    """
    One active subscription.

    Attributes:
        id: Client supplied watch identifier
        root: Canonical absolute path of the watched subtree
    """
    id: int
    root: Path


@dataclass(frozen=True)
class RawEvent:
    """
    Debounced primitive event from the filesystem event source.

    Attributes:
        kind: The primitive event kind
        path: Affected path (source path for RENAME); None for RESCAN
        dest_path: Destination path for RENAME events
        timestamp: Unix timestamp when the event was first seen
    """
    kind: RawEventKind
    path: Optional[Path] = None
    dest_path: Optional[Path] = None
    timestamp: float = field(default=0.0, compare=False)

    @classmethod
    def create(cls, path: Path, timestamp: Optional[float] = None) -> "RawEvent":
        return cls(RawEventKind.CREATE, path, timestamp=_now(timestamp))

    @classmethod
    def write(cls, path: Path, timestamp: Optional[float] = None) -> "RawEvent":
        return cls(RawEventKind.WRITE, path, timestamp=_now(timestamp))

    @classmethod
    def remove(cls, path: Path, timestamp: Optional[float] = None) -> "RawEvent":
        return cls(RawEventKind.REMOVE, path, timestamp=_now(timestamp))

    @classmethod
    def rename(cls, old_path: Path, new_path: Path, timestamp: Optional[float] = None) -> "RawEvent":
        return cls(RawEventKind.RENAME, old_path, new_path, timestamp=_now(timestamp))

    @property
    def is_informational(self) -> bool:
        return self.kind in INFORMATIONAL_KINDS


@dataclass(frozen=True)
class FileEvent:
    """
    A change as seen from one watch.

    Attributes:
        action: What happened to the path, from this watch's point of view
        watch_id: The watch this event belongs to
        path: Affected path (new path for RENAMED)
        old_path: Previous path for RENAMED events
    """
    action: EventAction
    watch_id: int
    path: Path
    old_path: Optional[Path] = None

    def __post_init__(self):
        if self.action == EventAction.RENAMED and self.old_path is None:
            raise ValueError("renamed events require old_path")
        if self.action != EventAction.RENAMED and self.old_path is not None:
            raise ValueError(f"{self.action.value} events do not carry old_path")

    @classmethod
    def modified(cls, watch_id: int, path: Path) -> "FileEvent":
        return cls(EventAction.MODIFIED, watch_id, path)

    @classmethod
    def created(cls, watch_id: int, path: Path) -> "FileEvent":
        return cls(EventAction.CREATED, watch_id, path)

    @classmethod
    def deleted(cls, watch_id: int, path: Path) -> "FileEvent":
        return cls(EventAction.DELETED, watch_id, path)

    @classmethod
    def renamed(cls, watch_id: int, old_path: Path, new_path: Path) -> "FileEvent":
        return cls(EventAction.RENAMED, watch_id, new_path, old_path)

    def to_dict(self) -> dict:
        """Convert to the wire representation."""
        data = {
            "action": self.action.value,
            "watchId": self.watch_id,
            "path": simplified(self.path),
        }
        if self.old_path is not None:
            data["oldPath"] = simplified(self.old_path)
        return data


@dataclass(frozen=True)
class Command:
    """
    Command read from standard input.

    Attributes:
        command_type: The type of command
        id: Watch id the command applies to
        root: Requested root path (WATCH only), not yet canonicalized
    """
    command_type: CommandType
    id: int
    root: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Command":
        """
        Create from a decoded JSON value.

        Raises:
            ProtocolError: If the value is not a well-formed command
        """
        if not isinstance(data, dict):
            raise ProtocolError(f"Expected a JSON object, got {type(data).__name__}")

        watch_id = data.get("id")
        if not _is_int(watch_id):
            raise ProtocolError("Field 'id' must be an integer")

        try:
            command_type = CommandType(data.get("type"))
        except ValueError:
            raise ProtocolError(f"Unknown command type: {data.get('type')!r}", watch_id)

        if command_type == CommandType.WATCH:
            root = data.get("root")
            if not isinstance(root, str) or not root:
                raise ProtocolError("Field 'root' must be a non-empty string", watch_id)
            return cls(command_type, watch_id, Path(root))

        return cls(command_type, watch_id)


@dataclass(frozen=True)
class Response:
    """
    Reply to a single command.

    Attributes:
        response_type: OK or ERROR
        id: Id of the originating command; None if the line had no usable id
        description: Human readable reason for ERROR responses
    """
    response_type: ResponseType
    id: Optional[int]
    description: Optional[str] = None

    @classmethod
    def ok(cls, watch_id: int) -> "Response":
        return cls(ResponseType.OK, watch_id)

    @classmethod
    def error(cls, watch_id: Optional[int], description: str) -> "Response":
        return cls(ResponseType.ERROR, watch_id, description)

    @property
    def is_ok(self) -> bool:
        return self.response_type == ResponseType.OK

    def to_dict(self) -> dict:
        """Convert to the wire representation."""
        data = {"type": self.response_type.value, "id": self.id}
        if self.response_type == ResponseType.ERROR:
            data["description"] = self.description or ""
        return data


def _is_int(value: Any) -> bool:
    # bool is an int subclass; true/false are not ids
    return isinstance(value, int) and not isinstance(value, bool)


def _now(timestamp: Optional[float]) -> float:
    return time.time() if timestamp is None else timestamp
