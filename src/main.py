import argparse
import logging
import os
import sys
from typing import List, Optional

from account_sink import CsvAccountSink
from ledger_engine import LedgerEngine
from record_source import RecordSourceError
from snapshot import build_snapshots

LOG_LEVEL_ENV = "PAYMENTS_LOG_LEVEL"

logger = logging.getLogger(__name__)


def resolve_log_level() -> int:
    """Level named by PAYMENTS_LOG_LEVEL, WARNING when unset or unknown."""
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        return logging.WARNING
    return level


def configure_logging() -> None:
    logging.basicConfig(
        level=resolve_log_level(),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="payments-ledger",
        description="Apply a CSV of transactions and print the final state of every client account.",
    )
    parser.add_argument("input", help="CSV file with columns: type, client, tx, amount")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="abort on the first malformed row instead of skipping it",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging()

    engine = LedgerEngine()
    try:
        accounts = engine.process_file(args.input, strict=args.strict)
    except RecordSourceError as e:
        logger.error(str(e))
        return 1

    CsvAccountSink(sys.stdout).write(build_snapshots(accounts))
    print(engine.stats.summary(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
