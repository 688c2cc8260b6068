"""Thread-safe registry of active watches."""

import threading
from typing import Dict, Tuple

from .exceptions import DuplicateWatchIdError, UnknownWatchIdError
from .models import Watch


class WatchRegistry:
    """
    Thread-safe mapping from watch id to watch.

    Every method takes the registry lock. Callers that need to pair a
    registry change with another step (subscribing a root, classifying an
    event against all watches) hold ``lock`` around the whole sequence;
    it is reentrant, so the individual methods still work inside.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._watches: Dict[int, Watch] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """The lock guarding this registry."""
        return self._lock

    def insert(self, watch: Watch) -> None:
        """
        Register a watch.

        Args:
            watch: The watch to add

        Raises:
            DuplicateWatchIdError: If a watch with the same id is registered
        """
        with self._lock:
            if watch.id in self._watches:
                raise DuplicateWatchIdError(watch.id)
            self._watches[watch.id] = watch

    def remove(self, watch_id: int) -> Watch:
        """
        Unregister a watch.

        Args:
            watch_id: Id of the watch to remove

        Returns:
            The removed watch

        Raises:
            UnknownWatchIdError: If no watch has this id
        """
        with self._lock:
            watch = self._watches.pop(watch_id, None)
            if watch is None:
                raise UnknownWatchIdError(watch_id)
            return watch

    def snapshot(self) -> Tuple[Watch, ...]:
        """
        Get the active watches in registration order.

        Returns:
            Tuple of watches; it does not change if the registry does
        """
        with self._lock:
            return tuple(self._watches.values())

    def clear(self) -> int:
        """
        Remove all watches.

        Returns:
            Number of watches removed
        """
        with self._lock:
            count = len(self._watches)
            self._watches.clear()
            return count

    def __len__(self) -> int:
        """Return the number of active watches."""
        with self._lock:
            return len(self._watches)

    def __contains__(self, watch_id: int) -> bool:
        """Check if a watch id is active."""
        with self._lock:
            return watch_id in self._watches
