import io
import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from csv_io import parse_csv_row, read_transactions, write_accounts
from errors import InputFileError, OutputWriteError, TransactionParseError
from models import AccountSnapshot, Funds, Transaction, TransactionType


def write_csv(tmp_path, lines):
    csv_file = tmp_path / "transactions.csv"
    csv_file.write_text("\n".join(lines))
    return str(csv_file)


class TestParseCsvRow:
    def test_deposit(self):
        tx = parse_csv_row({"type": "deposit", "client": "1", "tx": "2", "amount": "1.5"})
        assert tx == Transaction(TransactionType.DEPOSIT, 1, 2, Decimal("1.5"))

    def test_whitespace_and_case_are_tolerated(self):
        tx = parse_csv_row({" type": "  Withdrawal ", " client": " 55 ", " tx": " 123 ", " amount": " 17.64 "})
        assert tx == Transaction(TransactionType.WITHDRAWAL, 55, 123, Decimal("17.64"))

    def test_dispute_without_amount_column_value(self):
        tx = parse_csv_row({"type": "dispute", "client": "1", "tx": "2", "amount": None})
        assert tx.amount is None

    def test_amount_on_dispute_is_dropped(self):
        tx = parse_csv_row({"type": "resolve", "client": "1", "tx": "2", "amount": "3.0"})
        assert tx.amount is None

    def test_extra_columns_are_ignored(self):
        tx = parse_csv_row({"type": "deposit", "client": "1", "tx": "2", "amount": "1", None: ["junk"]})
        assert tx.amount == Decimal("1")

    def test_range_boundaries(self):
        tx = parse_csv_row({"type": "deposit", "client": "65535", "tx": "4294967295", "amount": "0"})
        assert tx.client_id == 65535
        assert tx.transaction_id == 4294967295

    def test_amount_forms_without_leading_or_trailing_digits(self):
        assert parse_csv_row({"type": "deposit", "client": "1", "tx": "1", "amount": ".5"}).amount == Decimal("0.5")
        assert parse_csv_row({"type": "deposit", "client": "1", "tx": "1", "amount": "2."}).amount == Decimal("2")

    @pytest.mark.parametrize(
        "row, message",
        [
            ({"type": "bacon", "client": "1", "tx": "1", "amount": "1"}, "bacon"),
            ({"type": "deposit", "client": "65536", "tx": "1", "amount": "1"}, "client 65536 out of range"),
            ({"type": "deposit", "client": "-1", "tx": "1", "amount": "1"}, "client must be an unsigned integer"),
            ({"type": "deposit", "client": "1", "tx": "4294967296", "amount": "1"}, "tx 4294967296 out of range"),
            ({"type": "deposit", "client": "abc", "tx": "1", "amount": "1"}, "client must be an unsigned integer"),
            ({"type": "deposit", "client": "1_000", "tx": "1", "amount": "1"}, "client must be an unsigned integer"),
            ({"type": "deposit", "client": "1", "tx": "١٢", "amount": "1"}, "tx must be an unsigned integer"),
            ({"type": "deposit", "client": "1", "tx": "1", "amount": ""}, "deposit requires an amount"),
            ({"type": "withdrawal", "client": "1", "tx": "1", "amount": "-1"}, "non-negative"),
            ({"type": "deposit", "client": "1", "tx": "1", "amount": "NaN"}, "non-negative"),
            ({"type": "deposit", "client": "1", "tx": "1", "amount": "1.2.3"}, "decimal number"),
            ({"type": "deposit", "client": "1", "tx": "1", "amount": "1_000.5"}, "decimal number"),
            ({"type": "deposit", "client": "1", "tx": "1", "amount": "1e30"}, "decimal number"),
            ({"type": "deposit", "client": "1", "tx": "1", "amount": "٣.5"}, "decimal number"),
            ({"type": "deposit", "client": "1"}, "missing column"),
        ],
    )
    def test_malformed_rows(self, row, message):
        with pytest.raises(TransactionParseError) as exc_info:
            parse_csv_row(row, line_number=4)
        assert message in str(exc_info.value)
        assert exc_info.value.line_number == 4


class TestReadTransactions:
    def test_reads_in_file_order(self, tmp_path):
        filepath = write_csv(tmp_path, [
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1",
        ])

        transactions = read_transactions(filepath)

        assert [tx.transaction_type for tx in transactions] == [
            TransactionType.DEPOSIT,
            TransactionType.DEPOSIT,
            TransactionType.DISPUTE,
            TransactionType.CHARGEBACK,
        ]
        assert transactions[1].client_id == 2
        assert transactions[3].amount is None

    def test_header_only(self, tmp_path):
        assert read_transactions(write_csv(tmp_path, ["type,client,tx,amount"])) == []

    def test_empty_file(self, tmp_path):
        assert read_transactions(write_csv(tmp_path, [])) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputFileError) as exc_info:
            read_transactions(str(tmp_path / "nope.csv"))
        assert "nope.csv" in str(exc_info.value)

    def test_bad_header(self, tmp_path):
        filepath = write_csv(tmp_path, ["kind,client,id,amount", "deposit,1,1,1"])
        with pytest.raises(TransactionParseError) as exc_info:
            read_transactions(filepath)
        assert "type, tx" in str(exc_info.value)

    def test_malformed_row_reports_line(self, tmp_path):
        filepath = write_csv(tmp_path, [
            "type,client,tx,amount",
            "deposit,1,1,1.0",
            "deposit,1,oops,1.0",
        ])
        with pytest.raises(TransactionParseError) as exc_info:
            read_transactions(filepath)
        assert exc_info.value.line_number == 3


class TestWriteAccounts:
    def test_writes_header_and_rows(self):
        stream = io.StringIO()
        accounts = [
            AccountSnapshot.from_funds(1, Funds(Decimal("1.5"), Decimal("0")), False),
            AccountSnapshot.from_funds(2, Funds(Decimal("2"), Decimal("0.25")), True),
        ]

        write_accounts(accounts, stream)

        assert stream.getvalue() == (
            "client,available,held,total,locked\n"
            "1,1.5000,0.0000,1.5000,false\n"
            "2,2.0000,0.2500,2.2500,true\n"
        )

    def test_write_failure(self):
        class BrokenStream(io.StringIO):
            def write(self, s):
                raise BrokenPipeError("pipe closed")

        with pytest.raises(OutputWriteError):
            write_accounts([], BrokenStream())
