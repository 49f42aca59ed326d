from dataclasses import dataclass
from dataclasses import field
from typing import Dict
from typing import List
from typing import Tuple

from jalloc._events import ThreadKey


@dataclass
class ClassTotal:
    total_bytes: int = 0
    count: int = 0


ClassTable = Dict[str, ClassTotal]


def _top(table: ClassTable, n: int) -> List[Tuple[str, ClassTotal]]:
    ranked = sorted(table.items(), key=lambda item: item[1].total_bytes, reverse=True)
    return ranked[:n]


@dataclass
class ClassStats:
    """Bytes allocated per class, for traced and for sampled events."""

    traced: ClassTable = field(default_factory=dict)
    sampled: ClassTable = field(default_factory=dict)

    def add_traced(self, class_name: str, total_bytes: int, count: int) -> None:
        entry = self.traced.setdefault(class_name, ClassTotal())
        entry.total_bytes += total_bytes
        entry.count += count

    def add_sampled(self, class_name: str, size: int) -> None:
        entry = self.sampled.setdefault(class_name, ClassTotal())
        entry.total_bytes += size
        entry.count += 1

    @property
    def total_traced_bytes(self) -> int:
        return sum(entry.total_bytes for entry in self.traced.values())

    @property
    def total_sampled_bytes(self) -> int:
        return sum(entry.total_bytes for entry in self.sampled.values())

    def top_traced(self, n: int) -> List[Tuple[str, ClassTotal]]:
        return _top(self.traced, n)

    def top_sampled(self, n: int) -> List[Tuple[str, ClassTotal]]:
        return _top(self.sampled, n)


@dataclass
class ThreadAllocationTable:
    """Latest cumulative allocated bytes reported for each thread.

    The runtime reports a running counter per thread, so a new snapshot
    replaces the previous one instead of adding to it.
    """

    allocated_by_thread: Dict[ThreadKey, int] = field(default_factory=dict)

    def record(self, thread: ThreadKey, allocated: int) -> None:
        self.allocated_by_thread[thread] = allocated

    @property
    def total(self) -> int:
        return sum(self.allocated_by_thread.values())
