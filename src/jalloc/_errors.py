from typing import Any


class JallocError(Exception):
    """Exceptions raised in this package."""


class JallocCommandError(JallocError):
    """Exceptions raised from this package's CLI commands."""

    def __init__(self, *args: Any, exit_code: int) -> None:
        super().__init__(*args)
        self.exit_code = exit_code


class RecordingDecodeError(JallocError):
    """A recording is malformed, truncated, or lacks an expected field."""


class InvalidClassNameError(JallocError):
    """A class name is not in the runtime's internal encoding."""
