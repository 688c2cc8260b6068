"""
Watch Supervisor Package

A long-lived process that multiplexes filesystem change notifications
across independently registered watch roots and speaks newline-delimited
JSON over standard input/output.

Features:
- Any number of watches, each identified by a client supplied id
- One shared OS watch handle, reference counted per root
- Debounced events: created, modified, deleted, renamed
- Renames across a watch root reported as created/deleted for that watch
- Malformed commands answered with an error instead of stopping
"""

from .models import (
    RawEventKind,
    EventAction,
    CommandType,
    ResponseType,
    Watch,
    RawEvent,
    FileEvent,
    Command,
    Response,
)

from .config import SupervisorConfig

from .exceptions import (
    WatchmuxError,
    WatchError,
    DuplicateWatchIdError,
    UnknownWatchIdError,
    UnresolvablePathError,
    SubscriptionError,
    ProtocolError,
    SupervisorNotRunningError,
    SupervisorAlreadyRunningError,
)

from .paths import is_under, canonicalize, simplified
from .classifier import classify
from .registry import WatchRegistry
from .debounce import EventDebouncer
from .fs_watcher import FSEventSource, FSEventHandler
from .protocol import JsonLineEmitter, decode_command, encode
from .supervisor import Supervisor


__all__ = [
    # Models
    "RawEventKind",
    "EventAction",
    "CommandType",
    "ResponseType",
    "Watch",
    "RawEvent",
    "FileEvent",
    "Command",
    "Response",
    # Config
    "SupervisorConfig",
    # Exceptions
    "WatchmuxError",
    "WatchError",
    "DuplicateWatchIdError",
    "UnknownWatchIdError",
    "UnresolvablePathError",
    "SubscriptionError",
    "ProtocolError",
    "SupervisorNotRunningError",
    "SupervisorAlreadyRunningError",
    # Components
    "is_under",
    "canonicalize",
    "simplified",
    "classify",
    "WatchRegistry",
    "EventDebouncer",
    "FSEventSource",
    "FSEventHandler",
    "JsonLineEmitter",
    "decode_command",
    "encode",
    # Supervisor
    "Supervisor",
]

__version__ = "0.1.0"
