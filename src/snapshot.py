from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN
from typing import List, Mapping

from models import ClientAccount, ledger_context

FOUR_PLACES = Decimal("0.0001")


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


def round_amount(value: Decimal) -> Decimal:
    """Quantize to exactly 4 decimal places."""
    with ledger_context():
        return value.quantize(FOUR_PLACES, rounding=ROUND_HALF_EVEN)


def build_snapshot(account: ClientAccount) -> AccountSnapshot:
    with ledger_context():
        return AccountSnapshot(
            client_id=account.client_id,
            available=round_amount(account.available),
            held=round_amount(account.held),
            total=round_amount(account.total),
            locked=account.locked,
        )


def build_snapshots(accounts: Mapping[int, ClientAccount]) -> List[AccountSnapshot]:
    """One snapshot per account, in the order the accounts mapping was filled."""
    return [build_snapshot(account) for account in accounts.values()]
