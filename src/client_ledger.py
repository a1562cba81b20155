import logging
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Set, Tuple

from models import AccountSnapshot, Funds, Rejection, RejectionReason, Transaction, TransactionType

logger = logging.getLogger(__name__)


class ClientLedger:
    """
    Funds, transaction history and open disputes for a single client.

    The ledger is built from the first transaction seen for the client and is
    then mutated only through apply(). Every check runs before any mutation,
    so a rejected transaction leaves the ledger exactly as it was.
    Once a chargeback locks the account, every later transaction is refused.
    """

    def __init__(self, seed: Transaction):
        self._client_id = seed.client_id
        self._funds = Funds()
        self._transactions: Dict[int, Transaction] = {}
        self._disputed_transaction_ids: Set[int] = set()
        self._high_watermark = seed.transaction_id
        self._locked = False

        # A withdrawal seed is remembered but its amount is never taken out.
        if seed.transaction_type == TransactionType.DEPOSIT:
            self._funds.credit(seed.amount)
        if seed.transaction_type.carries_amount:
            self._transactions[seed.transaction_id] = seed

    @property
    def client_id(self) -> int:
        return self._client_id

    @property
    def funds(self) -> Funds:
        return self._funds

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def high_watermark(self) -> int:
        return self._high_watermark

    @property
    def disputed(self) -> FrozenSet[int]:
        return frozenset(self._disputed_transaction_ids)

    @property
    def transactions(self) -> Mapping[int, Transaction]:
        return MappingProxyType(self._transactions)

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a stored deposit or withdrawal by ID."""
        return self._transactions.get(transaction_id)

    def apply(self, transaction: Transaction) -> Optional[Rejection]:
        """
        Apply one transaction to this client.

        Returns:
            None when the transaction was applied, otherwise a Rejection
            describing why it was refused.
        """
        if self._locked:
            return Rejection(RejectionReason.ACCOUNT_LOCKED, transaction.transaction_id, f"client {self._client_id} is locked")

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

        raise ValueError(f"Unsupported transaction type: {transaction.transaction_type}")

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot.from_funds(self._client_id, self._funds, self._locked)

    # Transaction IDs are globally unique but not ordered across clients.
    # Per client they must keep increasing for anything that moves money.
    def _check_future_transaction(self, transaction: Transaction) -> Optional[Rejection]:
        if transaction.transaction_id > self._high_watermark:
            return None
        return Rejection(
            RejectionReason.NON_MONOTONIC_TX,
            transaction.transaction_id,
            f"not after tx {self._high_watermark}",
        )

    def _record(self, transaction: Transaction) -> None:
        self._transactions[transaction.transaction_id] = transaction
        self._high_watermark = transaction.transaction_id

    def _handle_deposit(self, transaction: Transaction) -> Optional[Rejection]:
        rejection = self._check_future_transaction(transaction)
        if rejection:
            return rejection

        self._funds.credit(transaction.amount)
        self._record(transaction)
        return None

    def _handle_withdrawal(self, transaction: Transaction) -> Optional[Rejection]:
        rejection = self._check_future_transaction(transaction)
        if rejection:
            return rejection

        if self._funds.available < transaction.amount:
            return Rejection(
                RejectionReason.INSUFFICIENT_FUNDS,
                transaction.transaction_id,
                f"cannot withdraw {transaction.amount} from {self._funds.available}",
            )

        self._funds.debit(transaction.amount)
        self._record(transaction)
        return None

    def _find_disputable(
        self, transaction_id: int, should_be_disputed: bool
    ) -> Tuple[Optional[Transaction], Optional[Rejection]]:
        """Return (original, rejection) for a dispute-family transaction."""
        is_disputed = transaction_id in self._disputed_transaction_ids
        if is_disputed != should_be_disputed:
            reason = RejectionReason.NOT_DISPUTED if should_be_disputed else RejectionReason.ALREADY_DISPUTED
            return None, Rejection(reason, transaction_id)

        original = self._transactions.get(transaction_id)
        if original is None:
            return None, Rejection(
                RejectionReason.UNKNOWN_TRANSACTION,
                transaction_id,
                f"no deposit or withdrawal with this id for client {self._client_id}",
            )
        return original, None

    def _handle_dispute(self, transaction: Transaction) -> Optional[Rejection]:
        original, rejection = self._find_disputable(transaction.transaction_id, should_be_disputed=False)
        if rejection:
            return rejection

        self._funds.hold(original.amount)
        self._disputed_transaction_ids.add(original.transaction_id)
        return None

    def _handle_resolve(self, transaction: Transaction) -> Optional[Rejection]:
        original, rejection = self._find_disputable(transaction.transaction_id, should_be_disputed=True)
        if rejection:
            return rejection

        self._funds.release_hold(original.amount)
        self._disputed_transaction_ids.discard(original.transaction_id)
        return None

    def _handle_chargeback(self, transaction: Transaction) -> Optional[Rejection]:
        original, rejection = self._find_disputable(transaction.transaction_id, should_be_disputed=True)
        if rejection:
            return rejection

        self._funds.remove_held(original.amount)
        self._locked = True
        self._disputed_transaction_ids.discard(original.transaction_id)
        logger.info(f"Client {self._client_id} locked by chargeback of tx {original.transaction_id}")
        return None
