import logging
from typing import Optional

from models import (
    ClientAccount,
    DisputableTransaction,
    SkipReason,
    Transaction,
    TransactionState,
    TransactionType,
    ledger_context,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions against state.
    Returns None when a transaction was applied, otherwise the SkipReason.
    Every check runs before any mutation, so a skipped transaction leaves state untouched.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> Optional[SkipReason]:
        """
        Process a single transaction.

        Deposits and withdrawals create the client's account on first sight.
        Disputes, resolves and chargebacks only act on accounts that already own the referenced transaction.
        """
        with ledger_context():
            match transaction.transaction_type:
                case TransactionType.DEPOSIT:
                    return self._handle_deposit(transaction)
                case TransactionType.WITHDRAWAL:
                    return self._handle_withdrawal(transaction)
                case TransactionType.DISPUTE:
                    return self._handle_dispute(transaction)
                case TransactionType.RESOLVE:
                    return self._handle_resolve(transaction)
                case TransactionType.CHARGEBACK:
                    return self._handle_chargeback(transaction)
                case _:
                    raise ValueError(f"Unknown transaction type: {transaction.transaction_type}")

    def _handle_deposit(self, transaction: Transaction) -> Optional[SkipReason]:
        if transaction.amount is None or transaction.amount < 0:
            return SkipReason.INVALID_AMOUNT

        account = self._state.get_or_create_account(transaction.client_id)
        if account.locked:
            return SkipReason.ACCOUNT_LOCKED

        account.credit(transaction.amount)
        self._remember(transaction)
        return None

    def _handle_withdrawal(self, transaction: Transaction) -> Optional[SkipReason]:
        if transaction.amount is None or transaction.amount < 0:
            return SkipReason.INVALID_AMOUNT

        # A referenced client gets an account even if the withdrawal is then refused for funds.
        account = self._state.get_or_create_account(transaction.client_id)
        if account.locked:
            return SkipReason.ACCOUNT_LOCKED

        if account.available < transaction.amount:
            return SkipReason.INSUFFICIENT_FUNDS

        account.debit(transaction.amount)
        # Withdrawals are disputable too: a dispute holds the withdrawn amount like any other.
        self._remember(transaction)
        return None

    def _handle_dispute(self, transaction: Transaction) -> Optional[SkipReason]:
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            return SkipReason.TRANSACTION_NOT_FOUND

        if original.client_id != transaction.client_id:
            return SkipReason.CLIENT_MISMATCH

        if not original.can_be_disputed:
            return SkipReason.NOT_DISPUTABLE

        self._owner_of(original).hold(original.amount)
        original.state = TransactionState.DISPUTED
        return None

    def _handle_resolve(self, transaction: Transaction) -> Optional[SkipReason]:
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            return SkipReason.TRANSACTION_NOT_FOUND

        if original.client_id != transaction.client_id:
            return SkipReason.CLIENT_MISMATCH

        if not original.is_disputed:
            return SkipReason.NOT_DISPUTED

        self._owner_of(original).release_hold(original.amount)
        original.state = TransactionState.RESOLVED
        return None

    def _handle_chargeback(self, transaction: Transaction) -> Optional[SkipReason]:
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            return SkipReason.TRANSACTION_NOT_FOUND

        if original.client_id != transaction.client_id:
            return SkipReason.CLIENT_MISMATCH

        if not original.is_disputed:
            return SkipReason.NOT_DISPUTED

        account = self._owner_of(original)
        account.remove_held(original.amount)
        account.lock()
        original.state = TransactionState.CHARGED_BACK
        logger.info(f"Client {account.client_id} locked after chargeback of tx {original.transaction_id}")
        return None

    def _remember(self, transaction: Transaction) -> None:
        self._state.store_transaction(
            DisputableTransaction(
                transaction_id=transaction.transaction_id,
                client_id=transaction.client_id,
                amount=transaction.amount,
            )
        )

    def _owner_of(self, original: DisputableTransaction) -> ClientAccount:
        account = self._state.get_account(original.client_id)
        if account is None:
            raise RuntimeError(f"Stored tx {original.transaction_id} references missing client {original.client_id}")
        return account
