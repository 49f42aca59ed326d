"""Tools for processing and filtering stack frames."""
from typing import Iterable
from typing import List
from typing import Optional

from jalloc._events import StackFrame

FRAMEWORK_PREFIXES = ("java.", "kotlin.")
TEST_FRAMEWORK_PREFIXES = ("junit.framework.",)


def is_framework_location(location: Optional[str]) -> bool:
    return location is None or location.startswith(FRAMEWORK_PREFIXES)


def is_test_framework_location(location: str) -> bool:
    return location.startswith(TEST_FRAMEWORK_PREFIXES)


def filter_locations(locations: Iterable[Optional[str]]) -> List[str]:
    """Reduce a stack to the locations that allocations are attributed to.

    Leading unresolved and standard library frames are dropped up to the
    first application frame, then the stack is cut at the first frame that
    belongs to the test framework.
    """
    result: List[str] = []
    leading = True
    for location in locations:
        if leading and is_framework_location(location):
            continue
        leading = False
        if location is None:
            continue
        if is_test_framework_location(location):
            break
        result.append(location)
    return result


def stack_locations(frames: Iterable[StackFrame]) -> List[str]:
    return filter_locations(frame.location for frame in frames)
