from typing import Dict, Optional

from models import ClientAccount, DisputableTransaction


class StateManager:
    """
    Owns ledger state for a single run.
    Stores client accounts and transaction history for dispute lookups.
    Accounts are kept in the order clients were first seen.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[int, DisputableTransaction] = {}

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        """Return the account for a client, or None if it was never created."""
        return self._accounts.get(client_id)

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def store_transaction(self, transaction: DisputableTransaction) -> None:
        """
        Store transaction for future dispute lookups.
        The first entry stored under an id is the one disputes act on.
        """
        self._transactions.setdefault(transaction.transaction_id, transaction)

    def get_transaction(self, transaction_id: int) -> Optional[DisputableTransaction]:
        """Retrieve stored transaction by ID."""
        return self._transactions.get(transaction_id)

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
