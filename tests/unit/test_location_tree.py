from io import StringIO

from rich.console import Console

from jalloc._location_tree import LocationNode
from jalloc.reporters.sink import ReportSink


def render(tree, total, **kwargs):
    report = StringIO()
    console = StringIO()
    sink = ReportSink(report, Console(file=console, width=80))
    tree.render(sink, total, **kwargs)
    return report.getvalue().splitlines(), console.getvalue().splitlines()


class TestAttribution:
    def test_empty_stack_is_skipped(self):
        # GIVEN
        tree = LocationNode()

        # WHEN
        tree.attribute([], 1024)

        # THEN
        assert tree == LocationNode()

    def test_every_node_on_the_path_accumulates_the_size(self):
        # GIVEN
        tree = LocationNode()

        # WHEN
        tree.attribute(["com.app.A.a", "com.app.B.b", "com.app.C.c"], 10)

        # THEN
        a = tree.children["com.app.A.a"]
        b = a.children["com.app.B.b"]
        c = b.children["com.app.C.c"]
        assert [tree.total_bytes, a.total_bytes, b.total_bytes, c.total_bytes] == [
            10,
            10,
            10,
            10,
        ]
        assert c.children == {}

    def test_repeated_stacks_accumulate(self):
        # GIVEN
        tree = LocationNode()

        # WHEN
        for size in (100, 200, 300):
            tree.attribute(["com.app.Widget.make"], size)

        # THEN
        assert tree.total_bytes == 600
        assert tree.children["com.app.Widget.make"].total_bytes == 600

    def test_children_never_exceed_their_parent(self):
        # GIVEN
        tree = LocationNode()
        tree.attribute(["com.app.A.a"], 50)
        tree.attribute(["com.app.A.a", "com.app.B.b"], 30)
        tree.attribute(["com.app.A.a", "com.app.C.c"], 20)

        # WHEN
        a = tree.children["com.app.A.a"]

        # THEN
        assert a.total_bytes == 100
        assert sum(child.total_bytes for child in a.children.values()) == 50


class TestRender:
    def test_renders_nested_locations(self):
        # GIVEN
        tree = LocationNode()
        tree.attribute(["a", "b", "c"], 10)
        tree.attribute(["x", "y", "z"], 5)

        # WHEN
        report, console = render(tree, 15)

        # THEN
        assert report == [
            "  a : 66.66% by size",
            "    b : 66.66% by size",
            "    | c : 66.66% by size",
            "  x : 33.33% by size",
            "    y : 33.33% by size",
            "      z : 33.33% by size",
        ]
        assert console == [
            "  a : 66.66% by size",
            "  x : 33.33% by size",
        ]

    def test_caps_siblings_to_top_n(self):
        # GIVEN
        tree = LocationNode()
        for i in range(15):
            tree.attribute([f"com.app.C{i:02}.m"], 100 + i)
        total = tree.total_bytes

        # WHEN
        report, _ = render(tree, total)

        # THEN
        assert len(report) == 10
        assert [line.split(" : ")[0].strip() for line in report] == [
            f"com.app.C{i:02}.m" for i in range(14, 4, -1)
        ]

    def test_applies_both_the_cap_and_the_cutoff(self):
        # GIVEN
        tree = LocationNode()
        tree.attribute(["big"], 9000)
        tree.attribute(["medium"], 999)
        tree.attribute(["small"], 1)

        # WHEN
        report, _ = render(tree, 10000, cutoff=0.001, top_n=2)

        # THEN
        assert report == [
            "  big : 90.00% by size",
            "  medium : 09.99% by size",
        ]

    def test_drops_locations_below_the_cutoff(self):
        # GIVEN
        tree = LocationNode()
        tree.attribute(["big"], 99990)
        tree.attribute(["tiny"], 9)
        tree.attribute(["enough"], 10)

        # WHEN
        report, _ = render(tree, 100000)

        # THEN
        assert report == [
            "  big : 99.99% by size",
            "  enough : 00.01% by size",
        ]

    def test_cutoff_uses_the_total_given_to_the_root(self):
        # GIVEN
        tree = LocationNode()
        tree.attribute(["a", "b"], 10)
        tree.attribute(["a", "c"], 1)

        # WHEN
        report, _ = render(tree, 1000, cutoff=0.005)

        # THEN
        assert report == [
            "  a : 01.10% by size",
            "    b : 01.00% by size",
        ]

    def test_empty_tree_renders_nothing(self):
        assert render(LocationNode(), 0) == ([], [])

    def test_renders_stacks_deeper_than_the_recursion_limit(self):
        # GIVEN
        depth = 2048
        tree = LocationNode()
        tree.attribute([f"com.app.C{i}.m" for i in range(depth)], 100)

        # WHEN
        report, console = render(tree, 100)

        # THEN
        assert len(report) == depth
        assert report[0] == "  com.app.C0.m : 100.00% by size"
        assert report[-1] == "  " * depth + "com.app.C2047.m : 100.00% by size"
        assert console == ["  com.app.C0.m : 100.00% by size"]
