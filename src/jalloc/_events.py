"""Typed access to the events of a flight recording."""
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Dict
from typing import List
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

from jalloc._errors import RecordingDecodeError

ThreadKey = Tuple[str, int]

THREAD_ALLOCATION_STATISTICS = "jdk.ThreadAllocationStatistics"
OBJECT_COUNT = "jdk.ObjectCount"
ALLOCATION_IN_NEW_TLAB = "jdk.ObjectAllocationInNewTLAB"
ALLOCATION_OUTSIDE_TLAB = "jdk.ObjectAllocationOutsideTLAB"

SAMPLED_EVENT_TYPES = frozenset({ALLOCATION_IN_NEW_TLAB, ALLOCATION_OUTSIDE_TLAB})


@dataclass(frozen=True)
class StackFrame:
    """A single frame of a recorded stack trace."""

    type_name: Optional[str]
    method_name: Optional[str]
    line_number: int = -1

    @property
    def location(self) -> Optional[str]:
        if not self.type_name or not self.method_name:
            return None
        return f"{self.type_name}.{self.method_name}"


@dataclass(frozen=True)
class RecordedThread:
    java_thread_id: Optional[int]
    os_thread_id: Optional[int]
    name: str = ""

    @property
    def identity(self) -> int:
        return self.key[1]

    @property
    def key(self) -> ThreadKey:
        """``("java", id)``, or ``("os", id)`` for threads without a Java id."""
        if self.java_thread_id is not None:
            return ("java", self.java_thread_id)
        assert self.os_thread_id is not None
        return ("os", self.os_thread_id)


@dataclass(frozen=True)
class RecordedEvent:
    """An event as produced by the recording decoder.

    Field accessors raise :py:class:`RecordingDecodeError` when the named
    field is absent or does not hold a value of the requested type.
    """

    type_name: str
    values: Mapping[str, Any] = field(default_factory=dict)

    def _get(self, name: str) -> Any:
        try:
            return self.values[name]
        except KeyError:
            raise RecordingDecodeError(
                f"Event {self.type_name} has no field {name!r}"
            ) from None

    def _mistyped(self, name: str, expected: str) -> RecordingDecodeError:
        return RecordingDecodeError(
            f"Field {name!r} of event {self.type_name} is not {expected}: "
            f"{self.values[name]!r}"
        )

    def has_field(self, name: str) -> bool:
        return name in self.values

    def get_integer(self, name: str) -> int:
        value = self._get(name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise self._mistyped(name, "an integer")
        return value

    def get_string(self, name: str) -> str:
        value = self._get(name)
        if not isinstance(value, str):
            raise self._mistyped(name, "a string")
        return value

    def get_class_name(self, name: str) -> str:
        value = self._get(name)
        if isinstance(value, dict):
            value = value.get("name")
        if not isinstance(value, str):
            raise self._mistyped(name, "a class")
        return value

    def get_thread(self, name: str) -> RecordedThread:
        value = self._get(name)
        if not isinstance(value, dict):
            raise self._mistyped(name, "a thread")
        java_thread_id = _optional_int(value.get("javaThreadId"))
        os_thread_id = _optional_int(value.get("osThreadId"))
        if java_thread_id is None and os_thread_id is None:
            raise self._mistyped(name, "a thread with an identity")
        return RecordedThread(
            java_thread_id=java_thread_id,
            os_thread_id=os_thread_id,
            name=value.get("javaName") or value.get("osName") or "",
        )

    def get_stack_trace(self, name: str = "stackTrace") -> Optional[List[StackFrame]]:
        """Return the frames of the stack trace, or None if none was recorded."""
        value = self.values.get(name)
        if value is None:
            return None
        if not isinstance(value, dict) or not isinstance(value.get("frames"), list):
            raise self._mistyped(name, "a stack trace")
        return [_decode_frame(frame) for frame in value["frames"]]


def _optional_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _decode_frame(frame: Any) -> StackFrame:
    if not isinstance(frame, dict):
        raise RecordingDecodeError(f"Malformed stack frame: {frame!r}")
    method = frame.get("method")
    if not isinstance(method, dict):
        method = {}
    declaring_type = method.get("type")
    if not isinstance(declaring_type, dict):
        declaring_type = {}
    line_number = frame.get("lineNumber")
    return StackFrame(
        type_name=declaring_type.get("name"),
        method_name=method.get("name"),
        line_number=line_number if isinstance(line_number, int) else -1,
    )


@dataclass(frozen=True)
class ThreadAllocationStatistics:
    thread: ThreadKey
    allocated: int


@dataclass(frozen=True)
class ObjectCount:
    class_name: str
    count: int
    total_size: int


@dataclass(frozen=True)
class AllocationSample:
    class_name: str
    size: int
    frames: Optional[Tuple[StackFrame, ...]]


Payload = Union[ThreadAllocationStatistics, ObjectCount, AllocationSample, None]


@dataclass(frozen=True)
class Event:
    """An event whose fields were decoded according to its type.

    ``payload`` is None for event types that only take part in the event
    histogram.
    """

    type_name: str
    payload: Payload = None


def decode_event(event: RecordedEvent) -> Event:
    """Extract the fields the collectors need from ``event``.

    Raises :py:class:`RecordingDecodeError` if a required field is missing,
    so that an event is either fully usable or not used at all.
    """
    payload: Payload
    if event.type_name == THREAD_ALLOCATION_STATISTICS:
        payload = ThreadAllocationStatistics(
            thread=event.get_thread("thread").key,
            allocated=event.get_integer("allocated"),
        )
    elif event.type_name == OBJECT_COUNT:
        payload = ObjectCount(
            class_name=event.get_class_name("objectClass"),
            count=event.get_integer("count"),
            total_size=event.get_integer("totalSize"),
        )
    elif event.type_name in SAMPLED_EVENT_TYPES:
        frames = event.get_stack_trace()
        payload = AllocationSample(
            class_name=event.get_class_name("objectClass"),
            size=event.get_integer("allocationSize"),
            frames=tuple(frames) if frames is not None else None,
        )
    else:
        payload = None
    return Event(event.type_name, payload)


def format_event(event: RecordedEvent) -> str:
    """Render ``event`` as a single ``<type> key=value ...`` line."""
    fields: Dict[str, Any] = {}
    for name, value in event.values.items():
        if name == "stackTrace":
            frames = event.get_stack_trace() or []
            fields[name] = "|".join(frame.location or "<unknown>" for frame in frames)
        elif isinstance(value, dict) and "name" in value:
            fields[name] = value["name"]
        elif isinstance(value, dict) and (
            "javaThreadId" in value or "osThreadId" in value
        ):
            fields[name] = event.get_thread(name).identity
        else:
            fields[name] = value
    return " ".join([event.type_name] + [f"{k}={v}" for k, v in fields.items()])
