"""capfetch CLI entry point.

Verbs: issue and verify capability tokens, test URLs against allow-lists,
generate application key pairs.
"""

import argparse
import logging
import sys
from typing import List, Optional

from capfetch.cli.verbs import issue, keygen, match, verify
from capfetch.config import get_settings
from capfetch.utils.logger import get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="capfetch",
        description="Capability tokens for scoped, proof-backed fetches",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="verb", required=True)

    issue.register(sub)
    verify.register(sub)
    match.register(sub)
    keygen.register(sub)

    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="[%(name)s] %(levelname)s: %(message)s",
            stream=sys.stderr,
        )
    else:
        get_logger(level=get_settings().log_level.upper())

    args.handler(args)


if __name__ == "__main__":
    main()
