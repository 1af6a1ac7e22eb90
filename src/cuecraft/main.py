"""Subcommand dispatcher for cuecraft.

Usage:
    cuecraft beats     analysis.json --output beats.json
    cuecraft captions  transcript.json --output captions.json
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="cuecraft",
        description="Beat-synced cut selection and caption segmentation for video compositions.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("beats", help="Select impact beats and build a clip timeline")
    subparsers.add_parser("captions", help="Split captions into parts and pick emphasis")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "beats":
        from .beats_cli import main as beats_main
        beats_main(remaining)
    elif parsed.command == "captions":
        from .captions_cli import main as captions_main
        captions_main(remaining)


if __name__ == "__main__":
    main()
