import logging
from typing import Dict, Iterable

from models import ClientAccount, ProcessingStats, SkipReason, Transaction
from record_source import CsvRecordSource
from state_manager import StateManager
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)

# Reasons that point at inconsistent input rather than ordinary business rejections.
_SUSPICIOUS_SKIPS = frozenset({SkipReason.CLIENT_MISMATCH})


class LedgerEngine:
    """
    Folds transactions into client accounts, strictly in arrival order.
    Inapplicable transactions are skipped and counted, never raised.
    """

    def __init__(self):
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def apply(self, transaction: Transaction) -> None:
        """Apply a single transaction, or skip it without touching any state."""
        reason = self._processor.process_transaction(transaction)
        if reason is None:
            self._stats.record_applied()
            return

        self._stats.record_skip(reason)
        level = logging.WARNING if reason in _SUSPICIOUS_SKIPS else logging.INFO
        logger.log(level, f"Skipped {transaction}: {reason.value}")

    def apply_all(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            self.apply(transaction)

    def process_file(self, filepath: str, strict: bool = False) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath}")

        source = CsvRecordSource(filepath, strict=strict, on_malformed=lambda _: self._stats.record_malformed())
        self.apply_all(source.transactions())

        logger.info(f"Finished {filepath}: {self._stats.summary()}")
        return self.get_all_accounts()

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        return self._state.get_all_accounts()
