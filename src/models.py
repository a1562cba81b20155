from collections import Counter
from dataclasses import dataclass, field
from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, Context, Decimal
from enum import Enum
from typing import List, Optional

FOUR_PLACES = Decimal("0.0001")

# Sums and differences of amounts never round, and reports round half-even.
EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class RejectionReason(Enum):
    ACCOUNT_LOCKED = "account_locked"
    NON_MONOTONIC_TX = "non_monotonic_tx"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ALREADY_DISPUTED = "already_disputed"
    NOT_DISPUTED = "not_disputed"
    UNKNOWN_TRANSACTION = "unknown_transaction"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class Rejection:
    """Why a transaction was refused. The ledger is unchanged when one is returned."""

    reason: RejectionReason
    transaction_id: int
    detail: str = ""

    def __str__(self) -> str:
        message = f"tx {self.transaction_id} rejected: {self.reason.value}"
        if self.detail:
            message += f" ({self.detail})"
        return message


@dataclass
class Funds:
    """Available and held balances. Arithmetic is exact, whatever the magnitude."""

    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return EXACT.add(self.available, self.held)

    def credit(self, amount: Decimal) -> None:
        self.available = EXACT.add(self.available, amount)

    def debit(self, amount: Decimal) -> None:
        self.available = EXACT.subtract(self.available, amount)

    def hold(self, amount: Decimal) -> None:
        self.available = EXACT.subtract(self.available, amount)
        self.held = EXACT.add(self.held, amount)

    def release_hold(self, amount: Decimal) -> None:
        self.held = EXACT.subtract(self.held, amount)
        self.available = EXACT.add(self.available, amount)

    def remove_held(self, amount: Decimal) -> None:
        self.held = EXACT.subtract(self.held, amount)


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool

    @classmethod
    def from_funds(cls, client_id: int, funds: Funds, locked: bool) -> "AccountSnapshot":
        return cls(
            client_id=client_id,
            available=funds.available.quantize(FOUR_PLACES, context=EXACT),
            held=funds.held.quantize(FOUR_PLACES, context=EXACT),
            total=funds.total.quantize(FOUR_PLACES, context=EXACT),
            locked=locked,
        )

    def as_row(self) -> List[str]:
        return [
            str(self.client_id),
            f"{self.available:.4f}",
            f"{self.held:.4f}",
            f"{self.total:.4f}",
            str(self.locked).lower(),
        ]


@dataclass
class ProcessingStats:
    """Counters for one run, reported once processing is complete."""

    seeded: int = 0
    accepted: int = 0
    rejected: int = 0
    rejections_by_reason: Counter = field(default_factory=Counter)

    def record_seed(self) -> None:
        self.seeded += 1

    def record_success(self) -> None:
        self.accepted += 1

    def record_rejection(self, rejection: Rejection) -> None:
        self.rejected += 1
        self.rejections_by_reason[rejection.reason] += 1

    def summary(self) -> str:
        return f"Seeded: {self.seeded}, Accepted: {self.accepted}, Rejected: {self.rejected}"
