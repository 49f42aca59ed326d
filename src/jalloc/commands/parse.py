import argparse
import os

from jalloc._errors import JallocCommandError
from jalloc._reader import dump_all_events


class ParseCommand:
    """Debug a recording by parsing and printing each event in it"""

    def prepare_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("recording", help="Flight recording to parse")

    def run(self, args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
        if os.isatty(1):
            raise JallocCommandError(
                "You must redirect stdout to a file or shell pipeline.",
                exit_code=1,
            )

        try:
            dump_all_events(args.recording)
        except OSError as e:
            raise JallocCommandError(
                f"Failed to parse events in {args.recording}\nReason: {e}",
                exit_code=1,
            )
