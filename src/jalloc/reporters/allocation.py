from dataclasses import dataclass
from typing import List
from typing import Optional
from typing import Tuple

from jalloc._aggregator import AllocationCollector
from jalloc._aggregator import EventHistogram
from jalloc._location_tree import CUTOFF
from jalloc._location_tree import TOP_N
from jalloc._stats import ClassTotal
from jalloc.reporters.common import demangle_class_name
from jalloc.reporters.common import fmt_percent
from jalloc.reporters.common import fmt_size
from jalloc.reporters.sink import ReportSink

SEPARATORS = {"quote": "'", "space": " "}


@dataclass(frozen=True)
class ReportConfig:
    top_n: int = TOP_N
    cutoff: float = CUTOFF
    separator: str = SEPARATORS["quote"]
    event_stats: bool = True
    traceback: bool = False


Row = Tuple[str, str, str]


def _render_rows(sink: ReportSink, rows: List[Row]) -> None:
    if not rows:
        return
    name_width = max(len(name) for name, _, _ in rows)
    size_width = max(len(size) for _, size, _ in rows)
    for name, size, suffix in rows:
        sink.log(f"  {name:<{name_width}} : {size:>{size_width}} {suffix}")


class AllocationReporter:
    """Render the aggregated allocation statistics of a recording."""

    def __init__(
        self,
        allocations: AllocationCollector,
        histogram: Optional[EventHistogram] = None,
        config: ReportConfig = ReportConfig(),
    ) -> None:
        self.allocations = allocations
        self.histogram = histogram
        self.config = config
        self.thread_bytes = allocations.threads.total
        self.traced_bytes = allocations.classes.total_traced_bytes
        self.sampled_bytes = allocations.classes.total_sampled_bytes

    def _fmt_size(self, size: int) -> str:
        return fmt_size(size, self.config.separator)

    def estimate(self, sampled_size: int) -> int:
        """Scale a sampled size up to the estimated number of allocated bytes.

        The scale is the ratio between the bytes reported by all threads and
        the bytes seen by sampling. Without thread statistics the sampled
        size is returned as is.
        """
        if self.thread_bytes <= 0 or self.sampled_bytes <= 0:
            return sampled_size
        return sampled_size * self.thread_bytes // self.sampled_bytes

    def render(self, sink: ReportSink) -> None:
        if self.histogram is not None:
            self.render_event_stats(sink, self.histogram)
        self.render_summary(sink)
        self.render_traced_classes(sink)
        self.render_sampled_classes(sink)
        self.render_locations(sink)

    def render_event_stats(self, sink: ReportSink, histogram: EventHistogram) -> None:
        sink.header("Event stats")
        for name, count in sorted(histogram.counts.items()):
            sink.log(f"  {name} : {count} events")

    def render_summary(self, sink: ReportSink) -> None:
        sink.header("Allocation stats")
        coverage = fmt_percent(self.sampled_bytes, self.thread_bytes, digits=3)
        sink.log(
            f"  Allocated by threads: {self._fmt_size(self.thread_bytes)} bytes;"
            f" traced: {self._fmt_size(self.traced_bytes)} bytes"
            f" in {self.allocations.traced_events} events;"
            f" sampled: {self._fmt_size(self.sampled_bytes)} bytes"
            f" in {self.allocations.sampled_events} events ({coverage} sampled)"
        )

    def render_traced_classes(self, sink: ReportSink) -> None:
        top_n = self.config.top_n
        sink.header(f"Top {top_n} traced objects")
        rows = [
            (
                demangle_class_name(name),
                self._fmt_size(entry.total_bytes),
                f"bytes in {entry.count} objects",
            )
            for name, entry in self.allocations.classes.top_traced(top_n)
        ]
        _render_rows(sink, rows)

    def render_sampled_classes(self, sink: ReportSink) -> None:
        top_n = self.config.top_n
        sink.header(f"Top {top_n} sampled objects (estimated size)")
        _render_rows(
            sink,
            [
                self._sampled_row(name, entry)
                for name, entry in self.allocations.classes.top_sampled(top_n)
            ],
        )

    def _sampled_row(self, name: str, entry: ClassTotal) -> Row:
        percent = fmt_percent(entry.total_bytes, self.sampled_bytes)
        return (
            demangle_class_name(name),
            self._fmt_size(self.estimate(entry.total_bytes)),
            f"bytes, {percent} by size",
        )

    def render_locations(self, sink: ReportSink) -> None:
        sink.header(f"Top {self.config.top_n} allocation locations")
        self.allocations.locations.render(
            sink,
            self.sampled_bytes,
            cutoff=self.config.cutoff,
            top_n=self.config.top_n,
        )
