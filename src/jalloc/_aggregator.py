"""Single pass aggregation of recording events."""
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Optional
from typing import Protocol
from typing import Sequence
from typing import Union

from jalloc._errors import RecordingDecodeError
from jalloc._events import AllocationSample
from jalloc._events import Event
from jalloc._events import ObjectCount
from jalloc._events import ThreadAllocationStatistics
from jalloc._location_tree import LocationNode
from jalloc._reader import ReadResult
from jalloc._reader import ReadStatus
from jalloc._stats import ClassStats
from jalloc._stats import ThreadAllocationTable
from jalloc.reporters.frame_tools import stack_locations

logger = logging.getLogger(__name__)


class EventSource(Protocol):
    def has_more(self) -> bool:
        ...

    def read(self) -> ReadResult:
        ...


class EventHistogram:
    """Number of events seen for every event type."""

    def __init__(self) -> None:
        self.counts: "Counter[str]" = Counter()

    def add(self, event: Event) -> None:
        self.counts[event.type_name] += 1


class AllocationCollector:
    """Allocation totals per class, per thread and per call path."""

    def __init__(self) -> None:
        self.classes = ClassStats()
        self.threads = ThreadAllocationTable()
        self.locations = LocationNode()
        self.traced_events = 0
        self.sampled_events = 0

    def add(self, event: Event) -> None:
        payload = event.payload
        if isinstance(payload, ThreadAllocationStatistics):
            self.threads.record(payload.thread, payload.allocated)
        elif isinstance(payload, ObjectCount):
            self.traced_events += 1
            self.classes.add_traced(
                payload.class_name, payload.total_size, payload.count
            )
        elif isinstance(payload, AllocationSample):
            self.sampled_events += 1
            self.classes.add_sampled(payload.class_name, payload.size)
            if payload.frames is not None:
                self.locations.attribute(stack_locations(payload.frames), payload.size)


Collector = Union[EventHistogram, AllocationCollector]


@dataclass(frozen=True)
class IngestResult:
    events: int
    error: Optional[RecordingDecodeError] = None

    @property
    def complete(self) -> bool:
        return self.error is None


def ingest(source: EventSource, collectors: Sequence[Collector]) -> IngestResult:
    """Feed every event of ``source`` to all ``collectors``, in order.

    A decoding error ends the ingestion early; the collectors then hold the
    contributions of every event read before it.
    """
    events = 0
    while source.has_more():
        result = source.read()
        if result.status is ReadStatus.ERROR:
            logger.warning("Stopped reading after %d events: %s", events, result.error)
            return IngestResult(events, result.error)
        if result.status is ReadStatus.END:
            break
        assert result.event is not None
        for collector in collectors:
            collector.add(result.event)
        events += 1
    return IngestResult(events)
