"""Parse statements given on the command line, or one per line on stdin.

Usage:
    python -m sqlfsm "SELECT a FROM 'b' WHERE a > 1"
    cat queries.sql | python -m sqlfsm --json
"""

import argparse
import json
import logging
import sys
from pprint import pprint
from typing import Optional, Sequence

from . import __version__
from .parser import parse_many
from .schemas import ParserError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlfsm", description="Parse restricted SQL statements into queries."
    )
    parser.add_argument("sql", nargs="*", help="statements to parse (default: stdin)")
    parser.add_argument("--json", action="store_true", help="print results as JSON")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level (default: WARNING)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    sqls = [s.strip() for s in (args.sql or sys.stdin) if s.strip()]
    try:
        queries = parse_many(sqls)
    except ParserError as err:
        _print(err.parsed, args.json)
        err.print_pos_error(sqls[len(err.parsed)], file=sys.stderr)
        return 1
    _print(queries, args.json)
    return 0


def _print(queries, as_json: bool) -> None:
    if as_json:
        print(json.dumps([q.to_dict() for q in queries], indent=2))
        return
    for query in queries:
        pprint(query)


if __name__ == "__main__":
    sys.exit(main())
