"""Coalescing of rapid raw filesystem events."""

import threading
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Set

from .models import RawEvent, RawEventKind


class EventDebouncer:
    """
    Debounces rapid filesystem events.

    Coalesces events on the same path within a time window according to
    semantic rules, so each change reaches the supervisor once.
    """

    def __init__(self, debounce_ms: int = 300):
        """
        Initialize the debouncer.

        Args:
            debounce_ms: Debounce window in milliseconds
        """
        self.debounce_ms = debounce_ms
        self._pending: Dict[Path, RawEvent] = {}
        # Destinations of pending renames that were written after the rename
        self._written: Set[Path] = set()
        self._lock = threading.Lock()

    def add(self, event: RawEvent) -> None:
        """
        Add an event to the debouncer.

        Coalescing rules:
        - Repeated identical events → single event
        - Multiple WRITEs → single WRITE (latest timestamp)
        - CREATE then WRITE → single CREATE
        - CREATE then REMOVE → cancel out (no event)
        - REMOVE then CREATE → WRITE (file replaced)
        - WRITE then REMOVE → REMOVE
        - CREATE on a path with a pending CREATE, WRITE or RENAME → the
          pending event already reports the path, CREATE is dropped
        - RENAME then WRITE on the new path → RENAME followed by WRITE
        - RENAME of a pending CREATE → CREATE at the new path
        - RENAME overwrites previous events on both paths
        - REMOVE of a pending RENAME target → REMOVE of the rename source

        Informational events are dropped.

        Args:
            event: The raw event to add
        """
        if event.is_informational:
            return

        with self._lock:
            if event.kind == RawEventKind.RENAME:
                self._add_rename(event)
                return

            path = event.path
            existing = self._pending.get(path)

            if existing is None:
                self._pending[path] = event
                return

            if event.kind == RawEventKind.WRITE:
                if existing.kind == RawEventKind.WRITE:
                    self._pending[path] = replace(existing, timestamp=event.timestamp)
                elif existing.kind == RawEventKind.REMOVE:
                    self._pending[path] = event
                elif existing.kind == RawEventKind.RENAME:
                    self._pending[path] = replace(existing, timestamp=event.timestamp)
                    self._written.add(path)

            elif event.kind == RawEventKind.REMOVE:
                self._written.discard(path)
                if existing.kind == RawEventKind.CREATE:
                    del self._pending[path]
                elif existing.kind == RawEventKind.RENAME:
                    del self._pending[path]
                    source = existing.path
                    self._pending[source] = RawEvent.remove(source, event.timestamp)
                else:
                    self._pending[path] = event

            elif event.kind == RawEventKind.CREATE:
                if existing.kind == RawEventKind.REMOVE:
                    self._pending[path] = RawEvent.write(path, event.timestamp)

    def _add_rename(self, event: RawEvent) -> None:
        """Internal: fold a rename into pending state. Lock must be held."""
        old_path = event.path
        new_path = event.dest_path

        if self._pending.get(new_path) == event:
            return

        previous = self._pending.pop(old_path, None)
        written = old_path in self._written
        self._written.discard(old_path)
        self._written.discard(new_path)
        self._pending.pop(new_path, None)

        if previous is not None and previous.kind == RawEventKind.CREATE:
            self._pending[new_path] = RawEvent.create(new_path, event.timestamp)
            return

        if previous is not None and previous.kind == RawEventKind.RENAME:
            old_path = previous.path
            if old_path == new_path:
                # Renamed back to where it started
                if written:
                    self._pending[new_path] = RawEvent.write(new_path, event.timestamp)
                return

        self._pending[new_path] = RawEvent.rename(old_path, new_path, event.timestamp)
        if written:
            self._written.add(new_path)

    def flush(self, current_time: float) -> List[RawEvent]:
        """
        Flush events older than the debounce window.

        Args:
            current_time: Current timestamp

        Returns:
            List of events ready to emit, in the order first seen
        """
        window_sec = self.debounce_ms / 1000.0
        ready: List[RawEvent] = []

        with self._lock:
            to_remove = []

            for path, event in self._pending.items():
                if (current_time - event.timestamp) >= window_sec:
                    self._release(event, ready)
                    to_remove.append(path)

            for path in to_remove:
                del self._pending[path]

        return ready

    def flush_all(self) -> List[RawEvent]:
        """
        Flush all pending events regardless of time.

        Returns:
            List of all pending events
        """
        ready: List[RawEvent] = []
        with self._lock:
            for event in self._pending.values():
                self._release(event, ready)
            self._pending.clear()
        return ready

    def _release(self, event: RawEvent, ready: List[RawEvent]) -> None:
        """Internal: append a released event and its follow-up write. Lock must be held."""
        ready.append(event)
        if event.kind == RawEventKind.RENAME and event.dest_path in self._written:
            self._written.discard(event.dest_path)
            ready.append(RawEvent.write(event.dest_path, event.timestamp))
