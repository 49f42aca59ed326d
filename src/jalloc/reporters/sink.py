import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from typing import Optional
from typing import TextIO
from typing import Union

from rich.console import Console


class ReportSink:
    """Destination of the report lines.

    Every line goes to the report file; lines that are not ``file_only``
    are echoed to the console as well.
    """

    def __init__(self, file: TextIO, console: Optional[Console] = None) -> None:
        self._file = file
        self._console = console

    @classmethod
    @contextmanager
    def open(
        cls,
        path: Union[str, "os.PathLike[str]"],
        console: Optional[Console] = None,
    ) -> Iterator["ReportSink"]:
        with open(os.fspath(Path(path).expanduser()), "w", encoding="utf-8") as f:
            yield cls(f, console)

    def log(self, line: str, *, file_only: bool = False, style: str = "") -> None:
        if not file_only and self._console is not None:
            self._console.print(
                line,
                style=style or None,
                markup=False,
                emoji=False,
                highlight=False,
                soft_wrap=True,
            )
        print(line, file=self._file)

    def header(self, title: str) -> None:
        self.log(f"--- {title} ---", style="bold")
