import argparse
import logging
import sys
import textwrap
from typing import List
from typing import Optional

from jalloc._errors import JallocCommandError
from jalloc._errors import JallocError
from jalloc._log import set_log_level
from jalloc._version import __version__

from . import parse
from . import report
from .protocol import Command

_COMMANDS: List[Command] = [
    report.ReportCommand(),
    parse.ParseCommand(),
]

_EPILOG = textwrap.dedent(
    """\
    Recordings are read with the JDK's `jfr` tool, which must be in PATH
    unless the recording was already converted with `jfr print --json`.
    """
)

_DESCRIPTION = textwrap.dedent(
    """\
    Allocation hotspot reporter for JVM flight recordings

    Record allocation events with the JDK Flight Recorder, then use
    `jalloc report` to rank the allocated classes and code locations.

        Example:

        $ java -XX:StartFlightRecording=filename=app.jfr,settings=profile -jar app.jar
        $ python3 -m jalloc report app.jfr
    """
)


def get_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=_DESCRIPTION,
        prog="jalloc",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog=_EPILOG,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity. Option is additive and can be specified up to 3 times",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=__version__,
        help="Displays the current version of jalloc",
    )

    subparsers = parser.add_subparsers(
        help="Mode of operation",
        dest="command",
        required=True,
    )

    for command in _COMMANDS:
        # Extract the CLI command name from the classes' names
        assert command.__class__.__name__.endswith("Command")
        name = command.__class__.__name__[: -len("Command")].lower()

        command_parser = subparsers.add_parser(
            name, help=command.__doc__, description=command.__doc__, epilog=_EPILOG
        )
        command_parser.set_defaults(entrypoint=command.run)
        command.prepare_parser(command_parser)

    return parser


def determine_logging_level_from_verbosity(
    verbose_level: int,
) -> int:  # pragma: no cover
    if verbose_level == 0:
        return logging.WARNING
    elif verbose_level == 1:
        return logging.INFO
    else:
        return logging.DEBUG


def main(args: Optional[List[str]] = None) -> int:
    if args is None:
        args = sys.argv[1:]

    parser = get_argument_parser()
    arg_values = parser.parse_args(args=args)
    set_log_level(determine_logging_level_from_verbosity(arg_values.verbose))

    try:
        arg_values.entrypoint(arg_values, parser)
    except JallocCommandError as e:
        print(e, file=sys.stderr)
        return e.exit_code
    except JallocError as e:
        print(e, file=sys.stderr)
        return 1
    else:
        return 0
