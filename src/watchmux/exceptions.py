"""Custom exceptions for the watch supervisor package."""

from typing import Optional


class WatchmuxError(Exception):
    """Base exception for all watchmux errors."""
    pass


class WatchError(WatchmuxError):
    """A watch command could not be carried out.

    Carries the id of the originating command, when known, so the
    supervisor can answer with an error response.
    """

    def __init__(self, description: str, watch_id: Optional[int] = None):
        super().__init__(description)
        self.watch_id = watch_id
        self.description = description


class DuplicateWatchIdError(WatchError):
    """A watch with this id is already registered."""

    def __init__(self, watch_id: int):
        super().__init__(f"Already registered a watch with id {watch_id}", watch_id)


class UnknownWatchIdError(WatchError):
    """No watch is registered under this id."""

    def __init__(self, watch_id: int):
        super().__init__(f"No watch exists with id {watch_id}", watch_id)


class UnresolvablePathError(WatchError):
    """Watch root does not exist or cannot be resolved."""
    pass


class SubscriptionError(WatchError):
    """The OS watch handle refused to subscribe a root."""
    pass


class ProtocolError(WatchmuxError):
    """An input line is not a valid command."""

    def __init__(self, description: str, watch_id: Optional[int] = None):
        super().__init__(description)
        self.watch_id = watch_id
        self.description = description


class SupervisorNotRunningError(WatchmuxError):
    """Supervisor has not been started."""
    pass


class SupervisorAlreadyRunningError(WatchmuxError):
    """Supervisor is already running."""
    pass
