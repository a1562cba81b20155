import logging
from typing import Dict, Iterable

from csv_io import read_transactions
from ledger_registry import LedgerRegistry
from models import AccountSnapshot, Transaction

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Reads a transaction file and folds it, in order, into per-client ledgers.
    Single-threaded: each transaction is fully applied before the next one.
    """

    def __init__(self):
        self._registry = LedgerRegistry()

    @property
    def registry(self) -> LedgerRegistry:
        return self._registry

    def process_file(self, filepath: str) -> Dict[int, AccountSnapshot]:
        """Process CSV file and return final account states."""
        transactions = read_transactions(filepath)
        logger.info(f"Processing {len(transactions)} transactions from {filepath}")
        return self.process_transactions(transactions)

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, AccountSnapshot]:
        self._registry.process(transactions)

        stats = self._registry.stats
        logger.info(stats.summary())
        for reason, count in sorted(stats.rejections_by_reason.items(), key=lambda item: item[0].value):
            logger.info(f"  {reason.value}: {count}")

        return self._registry.finalize()
