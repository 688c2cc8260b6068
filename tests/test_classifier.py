"""Tests for classifier module."""

import pytest
from pathlib import Path

from src.watchmux.classifier import classify
from src.watchmux.models import EventAction, FileEvent, RawEvent, RawEventKind, Watch


A = Path("/a")
WATCH = Watch(id=7, root=A)


class TestClassifySinglePath:
    """Tests for create/write/remove events."""

    def test_create_under_root(self):
        events = classify(RawEvent.create(A / "x"), WATCH)
        assert events == [FileEvent.created(7, A / "x")]

    def test_write_under_root(self):
        events = classify(RawEvent.write(A / "x"), WATCH)
        assert events == [FileEvent.modified(7, A / "x")]

    def test_remove_under_root(self):
        events = classify(RawEvent.remove(A / "x"), WATCH)
        assert events == [FileEvent.deleted(7, A / "x")]

    def test_event_on_root_itself(self):
        events = classify(RawEvent.remove(A), WATCH)
        assert events == [FileEvent.deleted(7, A)]

    @pytest.mark.parametrize("factory", [RawEvent.create, RawEvent.write, RawEvent.remove])
    def test_outside_root_ignored(self, factory):
        assert classify(factory(Path("/outside")), WATCH) == []

    def test_prefix_sibling_ignored(self):
        assert classify(RawEvent.create(Path("/ab/x")), WATCH) == []


class TestClassifyRename:
    """Tests for rename events, including renames across the root."""

    def test_rename_within_root(self):
        events = classify(RawEvent.rename(A / "x", A / "y"), WATCH)

        assert len(events) == 1
        assert events[0].action == EventAction.RENAMED
        assert events[0].old_path == A / "x"
        assert events[0].path == A / "y"
        assert events[0].watch_id == 7

    def test_rename_out_of_root_is_delete(self):
        events = classify(RawEvent.rename(A / "x", Path("/b/x")), WATCH)
        assert events == [FileEvent.deleted(7, A / "x")]

    def test_rename_into_root_is_create(self):
        events = classify(RawEvent.rename(Path("/b/x"), A / "x"), WATCH)
        assert events == [FileEvent.created(7, A / "x")]

    def test_rename_elsewhere_ignored(self):
        assert classify(RawEvent.rename(Path("/b/x"), Path("/c/x")), WATCH) == []

    def test_rename_between_subdirectories(self):
        events = classify(RawEvent.rename(A / "d1" / "f", A / "d2" / "f"), WATCH)
        assert events == [FileEvent.renamed(7, A / "d1" / "f", A / "d2" / "f")]


class TestClassifyInformational:
    """Informational events never produce file events."""

    @pytest.mark.parametrize("kind", [
        RawEventKind.NOTICE_WRITE,
        RawEventKind.NOTICE_REMOVE,
        RawEventKind.CHMOD,
        RawEventKind.ERROR,
    ])
    def test_informational_with_path(self, kind):
        assert classify(RawEvent(kind, A / "x"), WATCH) == []

    def test_rescan_without_path(self):
        assert classify(RawEvent(RawEventKind.RESCAN), WATCH) == []


class TestClassifyOverlappingWatches:
    """Each watch classifies independently."""

    def test_nested_roots_each_get_event(self):
        outer = Watch(id=1, root=A)
        inner = Watch(id=2, root=A / "sub")
        event = RawEvent.create(A / "sub" / "f")

        events = classify(event, outer) + classify(event, inner)

        assert events == [
            FileEvent.created(1, A / "sub" / "f"),
            FileEvent.created(2, A / "sub" / "f"),
        ]

    def test_rename_from_inner_to_outer(self):
        outer = Watch(id=1, root=A)
        inner = Watch(id=2, root=A / "sub")
        event = RawEvent.rename(A / "sub" / "f", A / "f")

        assert classify(event, outer) == [FileEvent.renamed(1, A / "sub" / "f", A / "f")]
        assert classify(event, inner) == [FileEvent.deleted(2, A / "sub" / "f")]

    def test_classify_is_deterministic(self):
        event = RawEvent.rename(A / "x", Path("/b/x"))
        assert classify(event, WATCH) == classify(event, WATCH)
