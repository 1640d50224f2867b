import csv
from decimal import Decimal
from typing import Iterable, TextIO

from snapshot import AccountSnapshot

HEADER = ("client", "available", "held", "total", "locked")


def format_decimal(value: Decimal) -> str:
    """Format an already rounded decimal with exactly 4 decimal places."""
    return f"{value:.4f}"


class CsvAccountSink:
    """Writes account snapshots as CSV."""

    def __init__(self, stream: TextIO):
        self._writer = csv.writer(stream, lineterminator="\n")

    def write(self, snapshots: Iterable[AccountSnapshot]) -> None:
        self._writer.writerow(HEADER)
        for snapshot in snapshots:
            self._writer.writerow(
                (
                    snapshot.client_id,
                    format_decimal(snapshot.available),
                    format_decimal(snapshot.held),
                    format_decimal(snapshot.total),
                    str(snapshot.locked).lower(),
                )
            )
