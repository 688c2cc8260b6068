"""Newline-delimited JSON codec for commands, responses and events."""

import json
import threading
from typing import IO, AnyStr, Iterable, Iterator, TextIO, Union

from .exceptions import ProtocolError
from .models import Command, FileEvent, Response

Message = Union[Response, FileEvent]


def decode_command(line: Union[str, bytes]) -> Command:
    """
    Decode one input line into a command.

    Args:
        line: A single line of JSON, with or without trailing newline;
            bytes are decoded as UTF-8

    Returns:
        The decoded command

    Raises:
        ProtocolError: If the line is not UTF-8, not valid JSON or not a
            valid command
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Invalid UTF-8: {e}")

    try:
        data = json.loads(line)
    except ValueError as e:
        raise ProtocolError(f"Invalid JSON: {e}")

    return Command.from_dict(data)


def encode(message: Message) -> str:
    """Encode a response or event as a single JSON line, without newline."""
    return json.dumps(message.to_dict(), ensure_ascii=False, separators=(",", ":"))


def iter_lines(stream: IO[AnyStr]) -> Iterator[AnyStr]:
    """
    Yield non-blank lines from a text or binary stream until it is closed.

    Reads one line at a time so each command is handled as soon as it
    arrives. Lines from binary streams are yielded undecoded.
    """
    while True:
        line = stream.readline()
        if not line:
            return
        line = line.strip()
        if line:
            yield line


class JsonLineEmitter:
    """
    Writes one JSON message per line to an output stream.

    Both the command loop and the notification thread write here, so
    every write happens under ``lock``. Callers that need their output
    ordered against registry state take the lock themselves (``acquire``)
    and use ``write_all``; everyone else uses ``emit``.
    """

    def __init__(self, stream: TextIO):
        self._stream = stream
        self._lock = threading.Lock()

    def acquire(self) -> None:
        self._lock.acquire()

    def release(self) -> None:
        self._lock.release()

    def write_all(self, messages: Iterable[Message]) -> None:
        """Write messages and flush. The caller must hold the lock."""
        wrote = False
        for message in messages:
            self._stream.write(encode(message) + "\n")
            wrote = True
        if wrote:
            self._stream.flush()

    def emit(self, message: Message) -> None:
        """Write a single message under the lock."""
        with self._lock:
            self.write_all([message])

