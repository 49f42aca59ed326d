"""Utilities / Helpers for writing tests."""
import json
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional
from typing import Sequence

from jalloc._events import ALLOCATION_IN_NEW_TLAB
from jalloc._events import ALLOCATION_OUTSIDE_TLAB
from jalloc._events import OBJECT_COUNT
from jalloc._events import THREAD_ALLOCATION_STATISTICS
from jalloc._events import Event
from jalloc._events import RecordedEvent
from jalloc._events import decode_event
from jalloc._reader import ReadResult
from jalloc._reader import ReadStatus

RawEvent = Dict[str, Any]


def raw_frame(location: Optional[str]) -> Dict[str, Any]:
    """Build a frame as printed by ``jfr print --json``.

    ``None`` builds a frame without a resolvable method.
    """
    if location is None:
        return {"method": None, "lineNumber": -1, "type": "Native"}
    type_name, _, method_name = location.rpartition(".")
    return {
        "method": {
            "type": {"name": type_name, "package": None},
            "name": method_name,
            "descriptor": "()V",
        },
        "lineNumber": 42,
        "bytecodeIndex": 0,
        "type": "Interpreted",
    }


def raw_stack(locations: Sequence[Optional[str]]) -> Dict[str, Any]:
    return {"truncated": False, "frames": [raw_frame(loc) for loc in locations]}


def sample_event(
    class_name: str,
    size: int,
    stack: Optional[Sequence[Optional[str]]] = (),
    *,
    type_name: str = ALLOCATION_IN_NEW_TLAB,
) -> RawEvent:
    values: Dict[str, Any] = {
        "startTime": "2023-01-01T00:00:00Z",
        "objectClass": {"name": class_name, "hidden": False},
        "allocationSize": size,
        "tlabSize": 65536,
    }
    if stack is not None:
        values["stackTrace"] = raw_stack(stack)
    return {"type": type_name, "values": values}


def outside_tlab_event(
    class_name: str, size: int, stack: Optional[Sequence[Optional[str]]] = ()
) -> RawEvent:
    return sample_event(class_name, size, stack, type_name=ALLOCATION_OUTSIDE_TLAB)


def object_count_event(class_name: str, count: int, total_size: int) -> RawEvent:
    return {
        "type": OBJECT_COUNT,
        "values": {
            "gcId": 1,
            "objectClass": {"name": class_name},
            "count": count,
            "totalSize": total_size,
        },
    }


def thread_event(thread_id: int, allocated: int, name: str = "main") -> RawEvent:
    return {
        "type": THREAD_ALLOCATION_STATISTICS,
        "values": {
            "allocated": allocated,
            "thread": {
                "osName": name,
                "osThreadId": thread_id + 1000,
                "javaName": name,
                "javaThreadId": thread_id,
            },
        },
    }


def other_event(type_name: str) -> RawEvent:
    return {"type": type_name, "values": {"startTime": "2023-01-01T00:00:00Z"}}


def decode(raw_events: Iterable[RawEvent]) -> List[Event]:
    return [
        decode_event(RecordedEvent(raw["type"], raw["values"])) for raw in raw_events
    ]


def write_json_lines(path, raw_events: Iterable[RawEvent]) -> None:
    with open(path, "w") as f:
        for raw in raw_events:
            f.write(json.dumps(raw) + "\n")


def write_json_document(path, raw_events: Iterable[RawEvent]) -> None:
    path.write_text(json.dumps({"recording": {"events": list(raw_events)}}))


class MockEventSource:
    """Mimics :py:class:`jalloc._reader.RecordingReader`."""

    def __init__(self, results: Iterable[ReadResult]) -> None:
        self._results = list(results)

    @classmethod
    def from_events(cls, events: Iterable[Event]) -> "MockEventSource":
        return cls(ReadResult(ReadStatus.MORE, event=event) for event in events)

    def has_more(self) -> bool:
        return bool(self._results)

    def read(self) -> ReadResult:
        if not self._results:
            return ReadResult(ReadStatus.END)
        return self._results.pop(0)


SAMPLE_RECORDING = [
    thread_event(1, 600),
    object_count_event("[B", 10, 12345678),
    sample_event("com/app/Widget", 100, ["com.app.Widget.make"]),
    thread_event(2, 1000, name="worker"),
    sample_event("com/app/Widget", 200, ["com.app.Widget.make"]),
    object_count_event("java/lang/String", 3, 72),
    other_event("jdk.GarbageCollection"),
    sample_event("com/app/Widget", 300, ["com.app.Widget.make"]),
    outside_tlab_event(
        "[I",
        400,
        ["java.util.ArrayList.grow", "com.app.Foo.bar", "com.app.Main.main"],
    ),
    thread_event(1, 1400),
]

SAMPLE_REPORT = [
    "--- Event stats ---",
    "  jdk.GarbageCollection : 1 events",
    "  jdk.ObjectAllocationInNewTLAB : 3 events",
    "  jdk.ObjectAllocationOutsideTLAB : 1 events",
    "  jdk.ObjectCount : 2 events",
    "  jdk.ThreadAllocationStatistics : 3 events",
    "--- Allocation stats ---",
    "  Allocated by threads: 2'400 bytes; traced: 12'345'750 bytes in 2 events;"
    " sampled: 1'000 bytes in 4 events (41.666% sampled)",
    "--- Top 10 traced objects ---",
    "  byte[]           : 12'345'678 bytes in 10 objects",
    "  java.lang.String :         72 bytes in 3 objects",
    "--- Top 10 sampled objects (estimated size) ---",
    "  com.app.Widget : 1'440 bytes, 60.00% by size",
    "  int[]          :   960 bytes, 40.00% by size",
    "--- Top 10 allocation locations ---",
    "  com.app.Widget.make : 60.00% by size",
    "  com.app.Foo.bar : 40.00% by size",
    "    com.app.Main.main : 40.00% by size",
]
