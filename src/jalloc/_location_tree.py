from dataclasses import dataclass
from dataclasses import field
from typing import Dict
from typing import List
from typing import Sequence
from typing import Tuple

from jalloc.reporters.common import fmt_percent
from jalloc.reporters.sink import ReportSink

TOP_N = 10
CUTOFF = 0.0001

INDENT = "  "
INDENT_NEXT = "| "

# location, node, indent, whether the parent has a next sibling, whether the
# node has one
_Line = Tuple[str, "LocationNode", str, bool, bool]


@dataclass
class LocationNode:
    """Allocated bytes attributed to a call path and all of its extensions.

    The root node stands for every attributed allocation; each child is
    keyed by the location of the next frame along the stack.
    """

    total_bytes: int = 0
    children: Dict[str, "LocationNode"] = field(default_factory=dict)

    def child(self, location: str) -> "LocationNode":
        node = self.children.get(location)
        if node is None:
            node = self.children[location] = LocationNode()
        return node

    def attribute(self, locations: Sequence[str], size: int) -> None:
        if not locations:
            return
        node = self
        for location in locations:
            node.total_bytes += size
            node = node.child(location)
        node.total_bytes += size

    def top_children(
        self, total_bytes: int, *, cutoff: float = CUTOFF, top_n: int = TOP_N
    ) -> List[Tuple[str, "LocationNode"]]:
        """The biggest children, capped to ``top_n`` and then cut off below
        ``cutoff`` of ``total_bytes``."""
        ranked = sorted(
            self.children.items(), key=lambda item: item[1].total_bytes, reverse=True
        )[:top_n]
        limit = total_bytes * cutoff
        return [(loc, node) for loc, node in ranked if node.total_bytes >= limit]

    def render(
        self,
        sink: ReportSink,
        total_bytes: int,
        *,
        cutoff: float = CUTOFF,
        top_n: int = TOP_N,
        indent: str = INDENT,
        has_next: bool = False,
    ) -> None:
        """Write the subtree to ``sink``, depth first, one line per location.

        Only the first level is echoed to the console. Paths of any depth are
        rendered, up to the deepest stack the recorder keeps.
        """
        pending = self._pending_lines(total_bytes, cutoff, top_n, indent, has_next)
        while pending:
            location, node, line_indent, parent_has_next, node_has_next = pending.pop()
            sink.log(
                f"{line_indent}{location} : "
                f"{fmt_percent(node.total_bytes, total_bytes)} by size",
                file_only=line_indent != INDENT,
            )
            child_indent = line_indent + (INDENT_NEXT if parent_has_next else INDENT)
            pending.extend(
                node._pending_lines(
                    total_bytes, cutoff, top_n, child_indent, node_has_next
                )
            )

    def _pending_lines(
        self, total_bytes: int, cutoff: float, top_n: int, indent: str, has_next: bool
    ) -> List[_Line]:
        # Reversed, so that popping yields the children biggest first.
        children = self.top_children(total_bytes, cutoff=cutoff, top_n=top_n)
        last = len(children) - 1
        return [
            (location, node, indent, has_next, i < last)
            for i, (location, node) in reversed(list(enumerate(children)))
        ]
