"""File system event source using watchdog library."""

import logging
import os
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from watchdog.observers import Observer
from watchdog.observers.api import ObservedWatch
from watchdog.events import FileSystemEvent, FileSystemEventHandler

from .config import SupervisorConfig
from .debounce import EventDebouncer
from .exceptions import SubscriptionError
from .models import RawEvent, RawEventKind
from .paths import is_under

logger = logging.getLogger(__name__)


class FSEventHandler(FileSystemEventHandler):
    """Handler that converts watchdog events to RawEvent."""

    def __init__(
        self,
        callback: Callable[[RawEvent], None],
        config: SupervisorConfig,
    ):
        super().__init__()
        self.callback = callback
        self.config = config

    def _should_ignore(self, path: Path) -> bool:
        """Check if the path should be ignored."""
        return self.config.should_ignore(path)

    def _emit(self, kind: RawEventKind, src_path: Path, dest_path: Optional[Path] = None):
        """Emit a RawEvent to the callback."""
        if dest_path is None:
            if self._should_ignore(src_path):
                return
        elif self._should_ignore(src_path) and self._should_ignore(dest_path):
            return

        self.callback(RawEvent(kind, src_path, dest_path, timestamp=time.time()))

    def on_created(self, event: FileSystemEvent):
        self._emit(RawEventKind.CREATE, _path(event.src_path))

    def on_deleted(self, event: FileSystemEvent):
        self._emit(RawEventKind.REMOVE, _path(event.src_path))

    def on_modified(self, event: FileSystemEvent):
        # Directory mtime changes only mirror changes to their children
        kind = RawEventKind.NOTICE_WRITE if event.is_directory else RawEventKind.WRITE
        self._emit(kind, _path(event.src_path))

    def on_moved(self, event: FileSystemEvent):
        self._emit(
            RawEventKind.RENAME,
            _path(event.src_path),
            _path(event.dest_path),
        )


class FSEventSource:
    """
    Single OS watch handle shared by every watch.

    Owns one watchdog observer, subscribes roots on it recursively and
    feeds everything it reports through a debouncer into a queue that
    the supervisor drains with ``next_event``.

    Subscriptions are reference counted per root. Only the outermost
    subscribed roots get observer watches, so a change under nested or
    repeated roots is reported once.
    """

    def __init__(self, config: Optional[SupervisorConfig] = None):
        """
        Initialize the event source.

        Args:
            config: Supervisor configuration
        """
        self.config = config or SupervisorConfig()
        self._debouncer = EventDebouncer(self.config.debounce_ms)
        self._handler = FSEventHandler(self._debouncer.add, self.config)
        self._observer = Observer()
        self._watches: Dict[Path, ObservedWatch] = {}
        self._refcounts: Dict[Path, int] = {}
        self._events: "queue.Queue[Optional[RawEvent]]" = queue.Queue()
        self._stop_event = threading.Event()
        self._flush_thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._closed = False

    def start(self) -> None:
        """Start the observer and the debounce flush thread."""
        self._observer.start()
        self._flush_thread = threading.Thread(
            target=self._flush_loop,
            name="DebounceFlush",
            daemon=True,
        )
        self._flush_thread.start()

    def subscribe(self, root: Path) -> bool:
        """
        Start watching a root directory recursively.

        A root inside an already scheduled root rides on the outer
        observer watch; a root that contains scheduled roots replaces
        their observer watches with its own.

        Args:
            root: Canonical path of the root directory

        Returns:
            True if a new observer watch was created, False if an existing
            one already covers the root

        Raises:
            SubscriptionError: If the observer cannot watch the root
        """
        with self._lock:
            if root in self._refcounts:
                self._refcounts[root] += 1
                return False

            if self._covering(root) is not None:
                self._refcounts[root] = 1
                logger.debug(f"{root} covered by an existing observer watch")
                return False

            self._schedule(root)
            self._refcounts[root] = 1

            # Nested roots now report through the new watch only
            for nested in [r for r in self._watches if r != root and is_under(root, r)]:
                self._unschedule(nested)
            return True

    def unsubscribe(self, root: Path) -> bool:
        """
        Drop one subscription of a root directory.

        When the last subscription of a scheduled root goes away, the
        outermost roots still subscribed beneath it get observer watches
        of their own before the root's watch is removed.

        Args:
            root: Canonical path of the root directory

        Returns:
            True if the root's observer watch was removed, False if it is
            still needed or the root never had one

        Raises:
            KeyError: If the root is not subscribed
        """
        with self._lock:
            if root not in self._refcounts:
                raise KeyError(str(root))

            self._refcounts[root] -= 1
            if self._refcounts[root] > 0:
                return False
            del self._refcounts[root]

            if root not in self._watches:
                return False

            nested = [r for r in self._refcounts if is_under(root, r)]
            for inner in _outermost(nested):
                try:
                    self._schedule(inner)
                except SubscriptionError as e:
                    logger.warning(f"Lost observer watch for nested root: {e.description}")

            self._unschedule(root)
            return True

    def _covering(self, root: Path) -> Optional[Path]:
        """Internal: scheduled root that contains root. Lock must be held."""
        for scheduled in self._watches:
            if is_under(scheduled, root):
                return scheduled
        return None

    def _schedule(self, root: Path) -> None:
        """Internal: add an observer watch. Lock must be held."""
        try:
            watch = self._observer.schedule(self._handler, str(root), recursive=True)
        except OSError as e:
            raise SubscriptionError(_describe(root, e))

        self._watches[root] = watch
        logger.debug(f"Scheduled observer watch for {root}")

    def _unschedule(self, root: Path) -> None:
        """Internal: remove an observer watch. Lock must be held."""
        watch = self._watches.pop(root)
        self._observer.unschedule(watch)
        logger.debug(f"Unscheduled observer watch for {root}")

    def next_event(self, timeout: Optional[float] = None) -> Optional[RawEvent]:
        """
        Block until the next debounced event is available.

        Args:
            timeout: Seconds to wait; waits forever when None

        Returns:
            The next raw event, or None once the source is closed

        Raises:
            queue.Empty: If the timeout expires first
        """
        return self._events.get(timeout=timeout)

    def close(self) -> None:
        """Stop the observer and wake any thread blocked in next_event."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._watches.clear()
            self._refcounts.clear()

        self._stop_event.set()
        if self._observer.is_alive():
            self._observer.stop()
            self._observer.join(timeout=5.0)
        if self._flush_thread is not None and self._flush_thread.is_alive():
            self._flush_thread.join(timeout=2.0)

        # Changes seen before shutdown are still delivered
        for event in self._debouncer.flush_all():
            self._events.put(event)
        self._events.put(None)

    def _flush_loop(self) -> None:
        """Worker loop that releases debounced events into the queue."""
        flush_interval = self.config.flush_interval_ms / 1000.0
        logger.debug(f"Flush loop started, interval={flush_interval}s")

        while not self._stop_event.is_set():
            for event in self._debouncer.flush(time.time()):
                self._events.put(event)

            self._stop_event.wait(timeout=flush_interval)

    def __len__(self) -> int:
        """Return the number of observer watches."""
        with self._lock:
            return len(self._watches)


def _outermost(roots: List[Path]) -> List[Path]:
    """Roots not contained in any other root of the list."""
    result: List[Path] = []
    for root in sorted(roots, key=lambda p: len(p.parts)):
        if not any(is_under(kept, root) for kept in result):
            result.append(root)
    return result


def _path(raw) -> Path:
    return Path(os.fsdecode(raw))


def _describe(root: Path, error: OSError) -> str:
    if error.strerror:
        return f"Cannot watch {root}: {error.strerror}"
    return f"Cannot watch {root}: {error}"
