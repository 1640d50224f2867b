from collections import Counter
from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_EVEN, localcontext
from enum import Enum
from typing import Optional

# Amounts are capped at MAX_AMOUNT, so even 2**32 of them summed stay well inside LEDGER_PRECISION digits.
LEDGER_PRECISION = 50
MAX_AMOUNT = Decimal("1e20")
_LEDGER_CONTEXT = Context(prec=LEDGER_PRECISION, rounding=ROUND_HALF_EVEN)


def ledger_context():
    """Decimal context for amount parsing, balance updates and rounding."""
    return localcontext(_LEDGER_CONTEXT)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class TransactionState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class SkipReason(Enum):
    INVALID_AMOUNT = "invalid_amount"
    ACCOUNT_LOCKED = "account_locked"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    CLIENT_MISMATCH = "client_mismatch"
    NOT_DISPUTABLE = "not_disputable"
    NOT_DISPUTED = "not_disputed"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class DisputableTransaction:
    """A deposit or withdrawal kept for later dispute lookups."""

    transaction_id: int
    client_id: int
    amount: Decimal
    state: TransactionState = TransactionState.NORMAL

    @property
    def can_be_disputed(self) -> bool:
        # Resolved is not terminal, it may be disputed again.
        return self.state in (TransactionState.NORMAL, TransactionState.RESOLVED)

    @property
    def is_disputed(self) -> bool:
        return self.state == TransactionState.DISPUTED


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount

    def lock(self) -> None:
        self.locked = True


class ProcessingStats:
    """Counters for applied, skipped and malformed records."""

    def __init__(self):
        self.applied = 0
        self.skipped: Counter = Counter()
        self.malformed = 0

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())

    def record_applied(self):
        self.applied += 1

    def record_skip(self, reason: SkipReason):
        self.skipped[reason] += 1

    def record_malformed(self):
        self.malformed += 1

    def summary(self) -> str:
        line = f"Processed: {self.applied}, Skipped: {self.skipped_total}, Malformed: {self.malformed}"
        if self.skipped:
            breakdown = ", ".join(
                f"{reason.value}={count}" for reason, count in sorted(self.skipped.items(), key=lambda item: item[0].value)
            )
            line += f" ({breakdown})"
        return line
