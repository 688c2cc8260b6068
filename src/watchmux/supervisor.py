"""Watch supervisor: command handling and notification delivery."""

import logging
import sys
import threading
from pathlib import Path
from typing import IO, Callable, List, Optional, TextIO, Tuple, Union

from .classifier import classify
from .config import SupervisorConfig
from .exceptions import (
    DuplicateWatchIdError,
    ProtocolError,
    SupervisorAlreadyRunningError,
    SupervisorNotRunningError,
    UnknownWatchIdError,
    WatchError,
)
from .fs_watcher import FSEventSource
from .models import Command, CommandType, FileEvent, RawEvent, Response, Watch
from .paths import canonicalize
from .protocol import JsonLineEmitter, decode_command, iter_lines
from .registry import WatchRegistry

logger = logging.getLogger(__name__)


class Supervisor:
    """
    Multiplexes one filesystem event source across many watches.

    The main thread feeds commands in through ``serve`` (or
    ``handle_command``); a background thread pulls raw events from the
    event source and dispatches them to every registered watch.

    Both sides go through the registry lock, and every watch/unwatch
    pairs its registry change with the matching subscribe/unsubscribe
    inside that lock. Output is written after trading the registry lock
    for the emitter lock, so a watch's ``ok`` always precedes its first
    event and an unwatch's ``ok`` always follows its last one.
    """

    def __init__(
        self,
        config: Optional[SupervisorConfig] = None,
        event_source: Optional[FSEventSource] = None,
        output: Optional[TextIO] = None,
    ):
        """
        Initialize the supervisor.

        Args:
            config: Supervisor configuration
            event_source: Source of raw events; a watchdog-backed
                FSEventSource when omitted
            output: Stream receiving responses and events (default stdout)
        """
        self.config = config or SupervisorConfig()
        self._source = event_source or FSEventSource(self.config)
        self._emitter = JsonLineEmitter(output or sys.stdout)
        self._registry = WatchRegistry()

        self._running = False
        self._delivery_thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def start(self) -> None:
        """
        Start the event source and the notification delivery thread.

        Raises:
            SupervisorAlreadyRunningError: If already running
        """
        with self._lock:
            if self._running:
                raise SupervisorAlreadyRunningError("Supervisor is already running")
            self._running = True

        self._source.start()
        self._delivery_thread = threading.Thread(
            target=self._delivery_loop,
            name="NotificationDelivery",
            daemon=True,
        )
        self._delivery_thread.start()
        logger.debug("Supervisor started")

    def serve(self, stream: IO) -> None:
        """
        Handle commands from a stream, one per line, until it is closed.

        Args:
            stream: Text or binary stream of newline-delimited JSON
                commands; binary lines are decoded one at a time
        """
        for line in iter_lines(stream):
            self.handle_line(line)
        logger.info("Input closed")

    def handle_line(self, line: Union[str, bytes]) -> Response:
        """
        Decode and handle one input line.

        Malformed lines are answered with an error response; they never
        stop the supervisor.

        Args:
            line: One line of JSON, as text or UTF-8 bytes

        Returns:
            The response written for this line
        """
        try:
            command = decode_command(line)
        except ProtocolError as e:
            logger.warning(f"Rejected malformed command: {e.description}")
            response = Response.error(e.watch_id, e.description)
            self._emitter.emit(response)
            return response

        return self.handle_command(command)

    def handle_command(self, command: Command) -> Response:
        """
        Handle a decoded command and write its response.

        Raises:
            SupervisorNotRunningError: If the supervisor was not started
        """
        if not self._running:
            raise SupervisorNotRunningError("Supervisor is not running")

        if command.command_type == CommandType.WATCH:
            return self.watch(command.id, command.root)
        return self.unwatch(command.id)

    def watch(self, watch_id: int, root: Path) -> Response:
        """
        Register a watch on a root directory.

        Args:
            watch_id: Client supplied id, unique among active watches
            root: Root directory as supplied by the client

        Returns:
            OK, or ERROR for a duplicate id, an unresolvable root, or a
            root the event source refused to watch
        """
        return self._respond(self._watch_locked, watch_id, root)

    def unwatch(self, watch_id: int) -> Response:
        """
        Remove a watch.

        Args:
            watch_id: Id of an active watch

        Returns:
            OK, or ERROR if no watch has this id
        """
        return self._respond(self._unwatch_locked, watch_id)

    def dispatch(self, event: RawEvent) -> List[FileEvent]:
        """
        Classify a raw event against every active watch and emit the results.

        Args:
            event: Debounced event from the event source

        Returns:
            The file events written, in emission order
        """
        if event.is_informational:
            logger.debug(f"Ignoring {event.kind.value} event")
            return []

        with self._registry.lock:
            file_events = [
                file_event
                for watch in self._registry.snapshot()
                for file_event in classify(event, watch)
            ]
            self._emitter.acquire()
        try:
            self._emitter.write_all(file_events)
        finally:
            self._emitter.release()

        logger.debug(f"{event.kind.value} {event.path} -> {len(file_events)} event(s)")
        return file_events

    def watches(self) -> Tuple[Watch, ...]:
        """Get the active watches in registration order."""
        return self._registry.snapshot()

    def _respond(self, step: Callable[..., Response], *args) -> Response:
        """Run a command step under the registry lock, then write its response."""
        with self._registry.lock:
            response = step(*args)
            self._emitter.acquire()
        try:
            self._emitter.write_all([response])
        finally:
            self._emitter.release()
        return response

    def _watch_locked(self, watch_id: int, root: Path) -> Response:
        try:
            if watch_id in self._registry:
                raise DuplicateWatchIdError(watch_id)
            canonical = canonicalize(root)
            self._source.subscribe(canonical)
        except WatchError as e:
            logger.info(f"Watch {watch_id} rejected: {e.description}")
            return Response.error(watch_id, e.description)

        self._registry.insert(Watch(watch_id, canonical))
        logger.info(f"Watch {watch_id} active on {canonical}")
        return Response.ok(watch_id)

    def _unwatch_locked(self, watch_id: int) -> Response:
        try:
            watch = self._registry.remove(watch_id)
        except UnknownWatchIdError as e:
            logger.info(f"Unwatch {watch_id} rejected: {e.description}")
            return Response.error(watch_id, e.description)

        try:
            self._source.unsubscribe(watch.root)
        except (KeyError, OSError) as e:
            logger.warning(f"Failed to unsubscribe {watch.root} for watch {watch_id}: {e!r}")

        logger.info(f"Watch {watch_id} removed from {watch.root}")
        return Response.ok(watch_id)

    def _delivery_loop(self) -> None:
        """Worker loop that drains the event source."""
        logger.debug("Notification delivery loop started")

        try:
            while True:
                event = self._source.next_event()
                if event is None:
                    break
                self.dispatch(event)
        except Exception:
            logger.exception("Notification delivery stopped")
            return

        logger.debug("Notification delivery loop finished")

    @property
    def is_running(self) -> bool:
        """Check if the supervisor is running."""
        return self._running

    def close(self) -> None:
        """Stop the event source and the delivery thread, dropping all watches."""
        with self._lock:
            if not self._running:
                return
            self._running = False

        self._source.close()
        if self._delivery_thread is not None and self._delivery_thread.is_alive():
            self._delivery_thread.join(timeout=2.0)
        self._delivery_thread = None

        count = self._registry.clear()
        logger.debug(f"Supervisor closed, dropped {count} watch(es)")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
