import csv
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Iterator, List, Optional, Union

from models import MAX_AMOUNT, Transaction, TransactionType, ledger_context

logger = logging.getLogger(__name__)

COLUMNS = ("type", "client", "tx", "amount")
DEFAULT_COLUMN_INDEX: Dict[str, int] = {name: index for index, name in enumerate(COLUMNS)}

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1
AMOUNT_PRECISION = Decimal("0.0001")


class RecordSourceError(Exception):
    """Input could not be read at all, or a malformed row was found in strict mode."""


@dataclass(frozen=True)
class ParseFailure:
    line_number: int
    reason: str
    raw: List[str]

    def __str__(self) -> str:
        return f"line {self.line_number}: {self.reason} ({','.join(self.raw)})"


ParsedRecord = Union[Transaction, ParseFailure]


def parse_fields(
    fields: List[str],
    line_number: int,
    column_index: Optional[Dict[str, int]] = None,
) -> ParsedRecord:
    """
    Strictly parse one CSV row into a Transaction.

    Returns a ParseFailure instead of raising, so callers decide whether a bad row is fatal.
    """
    column_index = column_index or DEFAULT_COLUMN_INDEX
    normalized = [field.strip() for field in fields]

    if len(normalized) != len(COLUMNS):
        return ParseFailure(line_number, f"expected {len(COLUMNS)} fields, got {len(normalized)}", fields)

    type_str = normalized[column_index["type"]].lower()
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        return ParseFailure(line_number, f"unknown transaction type {type_str!r}", fields)

    client_id = _parse_bounded_int(normalized[column_index["client"]], MAX_CLIENT_ID)
    if client_id is None:
        return ParseFailure(line_number, f"client must be an integer in 0..{MAX_CLIENT_ID}", fields)

    transaction_id = _parse_bounded_int(normalized[column_index["tx"]], MAX_TRANSACTION_ID)
    if transaction_id is None:
        return ParseFailure(line_number, f"tx must be an integer in 0..{MAX_TRANSACTION_ID}", fields)

    amount = None
    amount_str = normalized[column_index["amount"]]
    if transaction_type.carries_amount:
        if not amount_str:
            return ParseFailure(line_number, f"{transaction_type.value} requires an amount", fields)
        amount = _parse_amount(amount_str)
        if amount is None:
            return ParseFailure(line_number, f"amount {amount_str!r} is not a decimal of at most {MAX_AMOUNT} with at most 4 fractional digits", fields)
    elif amount_str:
        logger.debug(f"Line {line_number}: ignoring amount on {transaction_type.value} row")

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_bounded_int(value: str, maximum: int) -> Optional[int]:
    try:
        number = int(value)
    except ValueError:
        return None
    if number < 0 or number > maximum:
        return None
    return number


def _parse_amount(value: str) -> Optional[Decimal]:
    with ledger_context():
        try:
            amount = Decimal(value)
            if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
                return None
            if amount != amount.quantize(AMOUNT_PRECISION):
                return None
        except InvalidOperation:
            return None
    return amount


class CsvRecordSource:
    """
    Reads `type, client, tx, amount` rows from a CSV file.

    Iterating yields a Transaction or a ParseFailure per data row, in file order.
    The source re-opens the file on every iteration.
    """

    def __init__(
        self,
        filepath: str,
        strict: bool = False,
        on_malformed: Optional[Callable[[ParseFailure], None]] = None,
    ):
        self._filepath = filepath
        self._strict = strict
        self._on_malformed = on_malformed

    def __iter__(self) -> Iterator[ParsedRecord]:
        try:
            with open(self._filepath, "r", newline="", encoding="utf-8-sig") as f:
                reader = csv.reader(f)
                column_index = self._read_header(next(reader, None))
                for fields in reader:
                    if not fields or all(not field.strip() for field in fields):
                        continue
                    yield parse_fields(fields, reader.line_num, column_index)
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise RecordSourceError(f"Failed to read {self._filepath}: {e}") from e

    def transactions(self) -> Iterator[Transaction]:
        """Yield only well-typed transactions, reporting malformed rows."""
        for record in self:
            if isinstance(record, ParseFailure):
                self._report(record)
                continue
            yield record

    def _report(self, failure: ParseFailure) -> None:
        if self._strict:
            raise RecordSourceError(f"Malformed row in {self._filepath}: {failure}")
        logger.warning(f"Skipping malformed row, {failure}")
        if self._on_malformed is not None:
            self._on_malformed(failure)

    def _read_header(self, header: Optional[List[str]]) -> Dict[str, int]:
        if header is None:
            raise RecordSourceError(f"{self._filepath} is empty, expected header {', '.join(COLUMNS)}")

        names = [name.strip().lower() for name in header]
        if len(names) != len(COLUMNS) or set(names) != set(COLUMNS):
            raise RecordSourceError(f"{self._filepath} has header {header}, expected {', '.join(COLUMNS)}")
        return {name: index for index, name in enumerate(names)}
