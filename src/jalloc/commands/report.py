import argparse
import traceback
from pathlib import Path
from typing import List

from rich.console import Console

from jalloc._aggregator import AllocationCollector
from jalloc._aggregator import Collector
from jalloc._aggregator import EventHistogram
from jalloc._aggregator import EventSource
from jalloc._aggregator import IngestResult
from jalloc._aggregator import ingest
from jalloc._errors import JallocCommandError
from jalloc._reader import RecordingReader
from jalloc.reporters.allocation import SEPARATORS
from jalloc.reporters.allocation import AllocationReporter
from jalloc.reporters.allocation import ReportConfig
from jalloc.reporters.sink import ReportSink

DEFAULT_REPORT_FILE = "result.txt"


def valid_positive_int(value: str) -> int:
    try:
        ivalue = int(value)
        if ivalue <= 0:
            raise ValueError
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value} is an invalid positive int value")

    return ivalue


def valid_fraction(value: str) -> float:
    try:
        fvalue = float(value)
        if not 0 <= fvalue < 1:
            raise ValueError
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"{value} is not a fraction between 0 (inclusive) and 1 (exclusive)"
        )

    return fvalue


def write_report(
    source: EventSource,
    sink: ReportSink,
    config: ReportConfig,
    name: str,
) -> IngestResult:
    """Aggregate every event of ``source`` and write the report to ``sink``.

    A recording that cannot be decoded to the end still produces a report
    of the events read before the failure.
    """
    sink.log(f"Parsing {name}")
    histogram = EventHistogram() if config.event_stats else None
    allocations = AllocationCollector()
    collectors: List[Collector] = [allocations]
    if histogram is not None:
        collectors.insert(0, histogram)

    result = ingest(source, collectors)
    if result.error is not None:
        sink.log(f"Stopped because of {result.error}")
        if config.traceback:
            error = result.error
            for chunk in traceback.format_exception(
                type(error), error, error.__traceback__
            ):
                for line in chunk.rstrip("\n").splitlines():
                    sink.log(line, file_only=True)
        sink.log(f"Parsed {result.events} events")
    else:
        sink.log(f"Parsed fully: {result.events} events")

    AllocationReporter(allocations, histogram, config).render(sink)
    return result


class ReportCommand:
    """Report the classes and code locations that allocate the most memory"""

    def prepare_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "recording",
            help="Flight recording (.jfr), or its `jfr print --json` conversion",
        )
        parser.add_argument(
            "-o",
            "--output",
            help=f"Report file name. Default is {DEFAULT_REPORT_FILE}",
            default=DEFAULT_REPORT_FILE,
        )
        parser.add_argument(
            "-f",
            "--force",
            help="If the report file already exists, overwrite it",
            action="store_true",
            default=False,
        )
        parser.add_argument(
            "-n",
            "--top",
            help="Number of classes and locations shown per level. Default is 10",
            type=valid_positive_int,
            dest="top_n",
            default=ReportConfig.top_n,
        )
        parser.add_argument(
            "--cutoff",
            help=(
                "Hide locations that allocated less than this fraction of the"
                " sampled bytes. Default is 0.0001"
            ),
            type=valid_fraction,
            default=ReportConfig.cutoff,
        )
        parser.add_argument(
            "--separator",
            help="Separator between groups of digits in byte counts",
            choices=sorted(SEPARATORS),
            default="quote",
        )
        parser.add_argument(
            "--no-event-stats",
            help="Do not count the events of every type",
            action="store_false",
            dest="event_stats",
            default=True,
        )
        parser.add_argument(
            "--traceback",
            help="Write the full traceback of a decoding error to the report",
            action="store_true",
            default=False,
        )

    def run(self, args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
        recording = Path(args.recording)
        if not recording.exists() or not recording.is_file():
            raise JallocCommandError(f"No such file: {args.recording}", exit_code=1)

        output_file = Path(args.output).expanduser()
        if not args.force and output_file.exists():
            raise JallocCommandError(
                f"File already exists, will not overwrite: {output_file}",
                exit_code=1,
            )

        config = ReportConfig(
            top_n=args.top_n,
            cutoff=args.cutoff,
            separator=SEPARATORS[args.separator],
            event_stats=args.event_stats,
            traceback=args.traceback,
        )

        try:
            reader = RecordingReader(recording)
        except OSError as e:
            raise JallocCommandError(
                f"Failed to read events from {recording}\nReason: {e}",
                exit_code=1,
            )

        with reader, ReportSink.open(output_file, Console(highlight=False)) as sink:
            write_report(reader, sink, config, str(recording))

        print(f"Wrote {output_file}")
