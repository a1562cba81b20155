import csv
import logging
import re
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, TextIO

from errors import InputFileError, OutputWriteError, TransactionParseError
from models import AccountSnapshot, Transaction, TransactionType

logger = logging.getLogger(__name__)

INPUT_FIELDS = ("type", "client", "tx", "amount")
OUTPUT_FIELDS = ("client", "available", "held", "total", "locked")

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

UNSIGNED_INT = re.compile(r"[0-9]+")
UNSIGNED_DECIMAL = re.compile(r"[0-9]+(\.[0-9]*)?|\.[0-9]+")


def _parse_int(value: str, name: str, maximum: int) -> int:
    if not UNSIGNED_INT.fullmatch(value):
        raise ValueError(f"{name} must be an unsigned integer, got {value!r}")
    number = int(value)
    if number > maximum:
        raise ValueError(f"{name} {number} out of range 0..{maximum}")
    return number


def _parse_amount(value: str) -> Decimal:
    # Plain digits only: no sign, exponent, NaN, Infinity or underscores.
    if not UNSIGNED_DECIMAL.fullmatch(value):
        raise ValueError(f"amount must be a non-negative decimal number, got {value!r}")
    return Decimal(value)


def parse_csv_row(row: Dict[Optional[str], str], line_number: Optional[int] = None) -> Transaction:
    """Parse CSV row into Transaction, raising TransactionParseError on bad input."""
    # Extra columns land under the None key; short rows give None values.
    normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

    try:
        transaction_type = TransactionType(normalized["type"].lower())
        client_id = _parse_int(normalized["client"], "client", MAX_CLIENT_ID)
        transaction_id = _parse_int(normalized["tx"], "tx", MAX_TRANSACTION_ID)

        amount = None
        amount_str = normalized.get("amount", "")
        if transaction_type.carries_amount:
            if not amount_str:
                raise ValueError(f"{transaction_type.value} requires an amount")
            amount = _parse_amount(amount_str)
        elif amount_str:
            logger.debug(f"Ignoring amount {amount_str!r} on {transaction_type.value} tx {transaction_id}")
    except KeyError as e:
        raise TransactionParseError(f"missing column {e}", line_number) from e
    except ValueError as e:
        raise TransactionParseError(str(e), line_number) from e

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def read_transactions(filepath: str) -> List[Transaction]:
    """Read every transaction from a CSV file. The first malformed row aborts the read."""
    try:
        f = open(filepath, "r", newline="")
    except OSError as e:
        raise InputFileError(filepath, e.strerror or str(e)) from e

    transactions = []
    with f:
        reader = csv.DictReader(f)
        try:
            if reader.fieldnames is not None:
                header = {name.strip() for name in reader.fieldnames}
                missing = [name for name in INPUT_FIELDS[:3] if name not in header]
                if missing:
                    raise TransactionParseError(f"header is missing {', '.join(missing)}", 1)

            for row in reader:
                transactions.append(parse_csv_row(row, reader.line_num))
        except csv.Error as e:
            raise TransactionParseError(str(e), reader.line_num) from e
        except UnicodeDecodeError as e:
            raise TransactionParseError(f"not valid text: {e}", reader.line_num) from e

    logger.debug(f"Read {len(transactions)} transactions from {filepath}")
    return transactions


def write_accounts(accounts: Iterable[AccountSnapshot], stream: TextIO) -> None:
    """Write the client,available,held,total,locked report."""
    writer = csv.writer(stream, lineterminator="\n")
    try:
        writer.writerow(OUTPUT_FIELDS)
        for account in accounts:
            writer.writerow(account.as_row())
        stream.flush()
    except OSError as e:
        raise OutputWriteError(str(e)) from e
