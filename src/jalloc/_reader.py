"""Streaming access to the events of a decoded flight recording.

The binary recording format is converted by the JDK's own ``jfr`` tool
(``jfr print --json``); this module only consumes the JSON it produces, or
JSON lines files with one event object per line.
"""
import enum
import json
import logging
import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import IO
from typing import Any
from typing import Iterator
from typing import Optional
from typing import Tuple
from typing import Union

from jalloc._errors import RecordingDecodeError
from jalloc._events import Event
from jalloc._events import RecordedEvent
from jalloc._events import decode_event
from jalloc._events import format_event

logger = logging.getLogger(__name__)

JSON_LINES_SUFFIXES = frozenset({".jsonl", ".ndjson"})
RECORDING_SUFFIX = ".jfr"


class ReadStatus(enum.Enum):
    MORE = "more"
    END = "end"
    ERROR = "error"


@dataclass(frozen=True)
class ReadResult:
    status: ReadStatus
    event: Optional[Event] = None
    error: Optional[RecordingDecodeError] = None


_END = ReadResult(ReadStatus.END)


class RecordingReader:
    """Read the events of a recording one at a time.

    Decoding problems never raise out of :py:meth:`read`: they are reported
    as a :py:attr:`ReadStatus.ERROR` result, after which the reader behaves
    as if the stream had ended.
    """

    def __init__(
        self, path: Union[str, "os.PathLike[str]"], *, jfr_command: str = "jfr"
    ) -> None:
        self.path = Path(path)
        if not self.path.is_file():
            raise FileNotFoundError(f"No such file: {self.path}")
        self._jfr_executable: Optional[str] = None
        if self.path.suffix == RECORDING_SUFFIX:
            self._jfr_executable = shutil.which(jfr_command)
            if self._jfr_executable is None:
                raise FileNotFoundError(
                    f"The {jfr_command!r} tool from the JDK is needed to read "
                    f"{self.path} but it was not found in PATH"
                )
        self._raw_events = self._iter_raw_events()
        self._pending: Optional[ReadResult] = None
        self._finished = False
        self.events_read = 0

    def __enter__(self) -> "RecordingReader":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __iter__(self) -> Iterator[Event]:
        while True:
            result = self.read()
            if result.status is ReadStatus.ERROR:
                assert result.error is not None
                raise result.error
            if result.status is ReadStatus.END:
                return
            assert result.event is not None
            yield result.event

    def close(self) -> None:
        self._raw_events.close()
        self._finished = True

    def has_more(self) -> bool:
        if self._pending is None:
            self._pending = self._advance()
        return self._pending.status is not ReadStatus.END

    def read(self) -> ReadResult:
        if self._pending is not None:
            result, self._pending = self._pending, None
            return result
        return self._advance()

    def read_raw(self) -> Iterator[RecordedEvent]:
        """Yield the undecoded events; decoding errors propagate."""
        yield from self._raw_events

    def _advance(self) -> ReadResult:
        if self._finished:
            return _END
        try:
            raw = next(self._raw_events)
            event = decode_event(raw)
        except StopIteration:
            self._finished = True
            logger.info("Read %d events from %s", self.events_read, self.path)
            return _END
        except RecordingDecodeError as e:
            self._finished = True
            logger.debug("Decoding %s failed", self.path, exc_info=e)
            return ReadResult(ReadStatus.ERROR, error=e)
        self.events_read += 1
        return ReadResult(ReadStatus.MORE, event=event)

    def _iter_raw_events(self) -> Iterator[RecordedEvent]:
        if self.path.suffix in JSON_LINES_SUFFIXES:
            yield from self._iter_json_lines()
            return

        if self._jfr_executable is None:
            yield from self._iter_document(self._read_text())
            return

        output, error = self._convert_recording()
        if error is None:
            yield from self._iter_document(output)
            return
        # The tool prints the events it decoded before failing.
        salvaged = 0
        for event in _iter_complete_events(output, str(self.path)):
            salvaged += 1
            yield event
        logger.info("Kept %d events converted before the failure", salvaged)
        raise error

    def _iter_document(self, text: str) -> Iterator[RecordedEvent]:
        document = json_loads(text, source=str(self.path))
        if isinstance(document, dict):
            recording = document.get("recording")
            events = recording.get("events") if isinstance(recording, dict) else None
        else:
            events = document
        if not isinstance(events, list):
            raise RecordingDecodeError(
                f"{self.path} does not contain a list of events"
            )
        for index, obj in enumerate(events):
            yield _to_recorded_event(obj, f"{self.path}: event {index}")

    def _iter_json_lines(self) -> Iterator[RecordedEvent]:
        try:
            with open(self.path, encoding="utf-8", errors="replace") as f:
                for lineno, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    location = f"{self.path}:{lineno}"
                    obj = json_loads(line, source=location)
                    yield _to_recorded_event(obj, location)
        except OSError as e:
            raise RecordingDecodeError(f"Failed to read {self.path}: {e}") from e

    def _read_text(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise RecordingDecodeError(f"Failed to read {self.path}: {e}") from e

    def _convert_recording(self) -> Tuple[str, Optional[RecordingDecodeError]]:
        """Run ``jfr print --json`` on the recording.

        Returns the tool's output, and the error that stopped it if it failed.
        """
        assert self._jfr_executable is not None
        command = [self._jfr_executable, "print", "--json", os.fspath(self.path)]
        logger.debug("Running %s", " ".join(command))
        try:
            proc = subprocess.run(
                command, check=True, capture_output=True, text=True, errors="replace"
            )
        except subprocess.CalledProcessError as e:
            return e.stdout or "", RecordingDecodeError(
                f"{' '.join(command)} exited with code {e.returncode}: "
                f"{(e.stderr or '').strip()}"
            )
        except OSError as e:
            raise RecordingDecodeError(f"Failed to run {command[0]}: {e}") from e
        return proc.stdout, None


def json_loads(text: str, *, source: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise RecordingDecodeError(f"{source}: {e}") from e


def _iter_complete_events(text: str, source: str) -> Iterator[RecordedEvent]:
    """Yield the complete events at the start of a truncated ``jfr`` document."""
    key = text.find('"events"')
    start = text.find("[", key) if key >= 0 else -1
    if start < 0:
        return
    decoder = json.JSONDecoder()
    position = start + 1
    index = 0
    while True:
        while position < len(text) and text[position] in " \t\r\n,":
            position += 1
        if position >= len(text) or text[position] == "]":
            return
        try:
            obj, position = decoder.raw_decode(text, position)
        except json.JSONDecodeError:
            return
        yield _to_recorded_event(obj, f"{source}: event {index}")
        index += 1


def _to_recorded_event(obj: Any, location: str) -> RecordedEvent:
    if not isinstance(obj, dict) or not isinstance(obj.get("type"), str):
        raise RecordingDecodeError(f"{location}: not an event object")
    values = obj.get("values", {})
    if not isinstance(values, dict):
        raise RecordingDecodeError(f"{location}: event values are not an object")
    return RecordedEvent(obj["type"], values)


def dump_all_events(
    path: Union[str, "os.PathLike[str]"], file: Optional[IO[str]] = None
) -> int:
    """Print every event of the recording at ``path``, one per line.

    Returns the number of events printed.
    """
    out = file if file is not None else sys.stdout
    count = 0
    with RecordingReader(path) as reader:
        print(f"EVENTS {reader.path}", file=out)
        for event in reader.read_raw():
            print(format_event(event), file=out)
            count += 1
    return count
