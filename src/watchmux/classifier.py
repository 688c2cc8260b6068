"""Turns raw filesystem events into watch-scoped file events."""

from typing import List

from .models import FileEvent, RawEvent, RawEventKind, Watch
from .paths import is_under


def classify(event: RawEvent, watch: Watch) -> List[FileEvent]:
    """
    Describe a raw event from the point of view of one watch.

    A rename that crosses the watch root's boundary is reported as a
    deletion (path left the subtree) or a creation (path entered it),
    since the watch never saw the other side.

    Args:
        event: Debounced event from the event source
        watch: The watch to classify against

    Returns:
        Zero or one file events for this watch
    """
    kind = event.kind

    if kind == RawEventKind.RENAME:
        old_inside = is_under(watch.root, event.path)
        new_inside = is_under(watch.root, event.dest_path)
        if old_inside and new_inside:
            return [FileEvent.renamed(watch.id, event.path, event.dest_path)]
        if old_inside:
            return [FileEvent.deleted(watch.id, event.path)]
        if new_inside:
            return [FileEvent.created(watch.id, event.dest_path)]
        return []

    if kind not in _SINGLE_PATH_ACTIONS:
        # Informational kinds carry nothing a client can act on
        return []

    if not is_under(watch.root, event.path):
        return []
    return [_SINGLE_PATH_ACTIONS[kind](watch.id, event.path)]


_SINGLE_PATH_ACTIONS = {
    RawEventKind.CREATE: FileEvent.created,
    RawEventKind.WRITE: FileEvent.modified,
    RawEventKind.REMOVE: FileEvent.deleted,
}
