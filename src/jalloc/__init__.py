from ._aggregator import AllocationCollector
from ._aggregator import EventHistogram
from ._aggregator import IngestResult
from ._aggregator import ingest
from ._events import Event
from ._events import RecordedEvent
from ._events import StackFrame
from ._location_tree import LocationNode
from ._log import set_log_level
from ._reader import ReadResult
from ._reader import ReadStatus
from ._reader import RecordingReader
from ._reader import dump_all_events
from ._stats import ClassStats
from ._stats import ThreadAllocationTable
from ._version import __version__

__all__ = [
    "AllocationCollector",
    "ClassStats",
    "Event",
    "EventHistogram",
    "IngestResult",
    "LocationNode",
    "ReadResult",
    "ReadStatus",
    "RecordedEvent",
    "RecordingReader",
    "StackFrame",
    "ThreadAllocationTable",
    "__version__",
    "dump_all_events",
    "ingest",
    "set_log_level",
]
