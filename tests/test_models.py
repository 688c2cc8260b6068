"""Tests for models module."""

import pytest
from pathlib import Path

from src.watchmux.models import (
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
from src.watchmux.exceptions import ProtocolError


class TestEnums:
    """Tests for the enums."""

    def test_event_action_values(self):
        assert EventAction.MODIFIED.value == "modified"
        assert EventAction.CREATED.value == "created"
        assert EventAction.DELETED.value == "deleted"
        assert EventAction.RENAMED.value == "renamed"

    def test_command_type_values(self):
        assert CommandType("watch") == CommandType.WATCH
        assert CommandType("unwatch") == CommandType.UNWATCH

    def test_response_type_values(self):
        assert ResponseType.OK.value == "ok"
        assert ResponseType.ERROR.value == "error"


class TestRawEvent:
    """Tests for RawEvent dataclass."""

    def test_factories(self):
        assert RawEvent.create(Path("/a")).kind == RawEventKind.CREATE
        assert RawEvent.write(Path("/a")).kind == RawEventKind.WRITE
        assert RawEvent.remove(Path("/a")).kind == RawEventKind.REMOVE

        rename = RawEvent.rename(Path("/a"), Path("/b"))
        assert rename.kind == RawEventKind.RENAME
        assert rename.path == Path("/a")
        assert rename.dest_path == Path("/b")

    def test_factories_stamp_time(self):
        assert RawEvent.create(Path("/a")).timestamp > 0
        assert RawEvent.create(Path("/a"), 12.5).timestamp == 12.5

    def test_equality_ignores_timestamp(self):
        assert RawEvent.write(Path("/a"), 1.0) == RawEvent.write(Path("/a"), 2.0)

    def test_is_informational(self):
        assert RawEvent(RawEventKind.CHMOD, Path("/a")).is_informational is True
        assert RawEvent(RawEventKind.RESCAN).is_informational is True
        assert RawEvent.create(Path("/a")).is_informational is False


class TestFileEvent:
    """Tests for FileEvent dataclass."""

    def test_created_to_dict(self):
        event = FileEvent.created(1, Path("/tmp/x/file"))
        assert event.to_dict() == {"action": "created", "watchId": 1, "path": "/tmp/x/file"}

    def test_modified_and_deleted_to_dict(self):
        assert FileEvent.modified(2, Path("/a/f")).to_dict()["action"] == "modified"
        assert FileEvent.deleted(2, Path("/a/f")).to_dict()["action"] == "deleted"

    def test_renamed_to_dict(self):
        event = FileEvent.renamed(3, Path("/a/x"), Path("/a/y"))
        assert event.to_dict() == {
            "action": "renamed",
            "watchId": 3,
            "path": "/a/y",
            "oldPath": "/a/x",
        }

    def test_renamed_requires_old_path(self):
        with pytest.raises(ValueError, match="require old_path"):
            FileEvent(EventAction.RENAMED, 1, Path("/a"))

    def test_old_path_only_for_renamed(self):
        with pytest.raises(ValueError, match="do not carry old_path"):
            FileEvent(EventAction.CREATED, 1, Path("/a"), old_path=Path("/b"))

    def test_frozen(self):
        event = FileEvent.created(1, Path("/a"))
        with pytest.raises(AttributeError):
            event.watch_id = 2


class TestCommand:
    """Tests for Command dataclass."""

    def test_watch_from_dict(self):
        command = Command.from_dict({"type": "watch", "id": 1, "root": "/tmp/x"})
        assert command == Command(CommandType.WATCH, 1, Path("/tmp/x"))

    def test_unwatch_from_dict(self):
        command = Command.from_dict({"type": "unwatch", "id": 5})
        assert command == Command(CommandType.UNWATCH, 5)

    def test_unwatch_ignores_extra_fields(self):
        command = Command.from_dict({"type": "unwatch", "id": 5, "root": "/x"})
        assert command.root is None

    def test_not_an_object(self):
        with pytest.raises(ProtocolError, match="Expected a JSON object"):
            Command.from_dict([1, 2])

    def test_missing_id(self):
        with pytest.raises(ProtocolError, match="'id'") as exc_info:
            Command.from_dict({"type": "unwatch"})
        assert exc_info.value.watch_id is None

    def test_boolean_id_rejected(self):
        with pytest.raises(ProtocolError):
            Command.from_dict({"type": "unwatch", "id": True})

    def test_string_id_rejected(self):
        with pytest.raises(ProtocolError):
            Command.from_dict({"type": "unwatch", "id": "1"})

    def test_unknown_type_keeps_id(self):
        with pytest.raises(ProtocolError, match="Unknown command type") as exc_info:
            Command.from_dict({"type": "rewatch", "id": 9})
        assert exc_info.value.watch_id == 9

    def test_watch_without_root(self):
        with pytest.raises(ProtocolError, match="'root'") as exc_info:
            Command.from_dict({"type": "watch", "id": 4})
        assert exc_info.value.watch_id == 4

    def test_watch_with_empty_root(self):
        with pytest.raises(ProtocolError):
            Command.from_dict({"type": "watch", "id": 4, "root": ""})


class TestResponse:
    """Tests for Response dataclass."""

    def test_ok_to_dict(self):
        assert Response.ok(1).to_dict() == {"type": "ok", "id": 1}
        assert Response.ok(1).is_ok is True

    def test_error_to_dict(self):
        response = Response.error(1, "No watch exists with id 1")
        assert response.to_dict() == {
            "type": "error",
            "id": 1,
            "description": "No watch exists with id 1",
        }
        assert response.is_ok is False

    def test_error_without_id(self):
        assert Response.error(None, "bad line").to_dict()["id"] is None


class TestWatch:
    """Tests for Watch dataclass."""

    def test_equality(self):
        assert Watch(1, Path("/a")) == Watch(1, Path("/a"))
        assert Watch(1, Path("/a")) != Watch(2, Path("/a"))
