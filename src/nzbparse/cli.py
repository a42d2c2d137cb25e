"""
nzbparse Command Line - Entry Point
===================================

Commands:
    nzbparse subject TEXT...            Parse subject lines, print JSON
    nzbparse info FILE.nzb              Summarize an NZB file
    nzbparse rewrite IN.nzb OUT.nzb     Clean up and rewrite an NZB file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from .utils.config import Config, load_config

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the command line."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    )

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        handlers=[handler],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nzbparse",
        description="NZB reader/writer with subject line metadata extraction",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--config", help="Config file (default: ~/.nzbparse/config.json)")

    commands = parser.add_subparsers(dest="command", required=True)

    subject = commands.add_parser("subject", help="Parse subject lines")
    subject.add_argument("subjects", nargs="+", help="Subject line(s)")

    info = commands.add_parser("info", help="Summarize an NZB file")
    info.add_argument("nzb", help="NZB file")

    rewrite = commands.add_parser("rewrite", help="Parse and write back an NZB file")
    rewrite.add_argument("nzb", help="Input NZB file")
    rewrite.add_argument("output", help="Output NZB file")
    rewrite.add_argument("--keep-duplicates", action="store_true",
                         help="Do not remove duplicate files and segments")

    return parser


def cmd_subject(config: Config, args: argparse.Namespace) -> int:
    subject_parser = config.subject_parser()
    for subject in args.subjects:
        print(json.dumps(subject_parser.parse(subject).to_dict(), ensure_ascii=False))
    return 0


def cmd_info(config: Config, args: argparse.Namespace) -> int:
    from .core.nzb_parser import NZBParser

    document = NZBParser.parse(args.nzb, config.parse_options())

    for meta_type, value in document.meta.items():
        print(f"{meta_type}: {value}")
    print(f"files: {document.file_count}/{document.total_files}")
    print(f"segments: {document.segments}/{document.total_segments}")
    print(f"bytes: {document.bytes}")
    print(f"complete: {'yes' if document.is_complete else 'no'}")

    for nzb_file in document.files:
        status = "" if nzb_file.is_complete else f"  ({nzb_file.missing_segments} missing)"
        print(f"  [{nzb_file.number}] {nzb_file.filename} "
              f"{nzb_file.segment_count}/{nzb_file.total_segments} segments{status}")
    return 0


def cmd_rewrite(config: Config, args: argparse.Namespace) -> int:
    from .core.nzb_parser import NZBParser
    from .core.nzb_writer import NZBWriter

    options = config.parse_options()
    if args.keep_duplicates:
        options.remove_duplicates = False

    document = NZBParser.parse(args.nzb, options)
    NZBWriter.write_file(document, args.output)
    return 0


COMMANDS = {
    "subject": cmd_subject,
    "info": cmd_info,
    "rewrite": cmd_rewrite,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    config = load_config(args.config)
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Invalid configuration: {error}")
        return 1

    # NZBParseError is a ValueError
    try:
        return COMMANDS[args.command](config, args)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
