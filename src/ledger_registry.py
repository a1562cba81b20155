import logging
from typing import Dict, Iterable, Optional

from client_ledger import ClientLedger
from models import AccountSnapshot, ProcessingStats, Rejection, Transaction

logger = logging.getLogger(__name__)


class LedgerRegistry:
    """
    Routes each transaction to the ledger of the client it addresses.
    A ledger is created on first sight of a client, seeded with that transaction.
    Rejections are logged and counted; they never stop the run.
    """

    def __init__(self):
        self._ledgers: Dict[int, ClientLedger] = {}
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def __len__(self) -> int:
        return len(self._ledgers)

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._ledgers

    def get_ledger(self, client_id: int) -> Optional[ClientLedger]:
        return self._ledgers.get(client_id)

    def route(self, transaction: Transaction) -> Optional[Rejection]:
        """Apply one transaction, creating the client's ledger if needed."""
        ledger = self._ledgers.get(transaction.client_id)
        if ledger is None:
            logger.debug(f"Opening ledger for client {transaction.client_id} with {transaction}")
            self._ledgers[transaction.client_id] = ClientLedger(transaction)
            self._stats.record_seed()
            return None

        rejection = ledger.apply(transaction)
        if rejection is None:
            self._stats.record_success()
        else:
            self._stats.record_rejection(rejection)
            logger.warning(f"Error handling {transaction}: {rejection}")
        return rejection

    def process(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            self.route(transaction)

    def finalize(self) -> Dict[int, AccountSnapshot]:
        """Return final account states keyed and ordered by client ID."""
        return {
            client_id: self._ledgers[client_id].snapshot()
            for client_id in sorted(self._ledgers)
        }
