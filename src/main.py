import logging
import os
import sys
from typing import List, Optional

from csv_io import write_accounts
from errors import PaymentsEngineError
from payments_engine import PaymentsEngine

LOG_LEVEL_ENV = "PAYMENTS_LOG_LEVEL"
USAGE = "Usage: python main.py <transactions.csv> > accounts.csv"


def configure_logging() -> None:
    level = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print(USAGE, file=sys.stderr)
        return 1

    configure_logging()

    try:
        accounts = PaymentsEngine().process_file(args[0])
        write_accounts(accounts.values(), sys.stdout)
    except PaymentsEngineError as e:
        print(e, file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
