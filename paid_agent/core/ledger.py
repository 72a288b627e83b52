"""
Spend ledger and budget gate.

Tracks cumulative spend against a hard cap and keeps an append-only record
of every attempted paid call.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple
from uuid import uuid4


class TransactionStatus(Enum):
    """Outcome of a paid call attempt."""
    SUCCESS = "success"
    FAILED = "failed"


class BudgetExceeded(Exception):
    """Raised when a paid call would push spend over the budget cap."""
    def __init__(self, endpoint: str, cost: Decimal, remaining: Decimal):
        super().__init__(
            f"Insufficient budget for {endpoint}: cost {cost} USDC, "
            f"remaining {remaining} USDC"
        )
        self.endpoint = endpoint
        self.cost = cost
        self.remaining = remaining


@dataclass(frozen=True)
class Transaction:
    """Immutable record of one paid call attempt.

    Failed attempts are recorded with the cost that would have been charged
    but never count towards spend.
    """
    timestamp: datetime
    endpoint: str
    cost: Decimal
    status: TransactionStatus
    duration_ms: Optional[int] = None
    request_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == TransactionStatus.SUCCESS


def _as_amount(value) -> Decimal:
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if not amount.is_finite():
        raise ValueError(f"amount must be finite, got {amount}")
    if amount < 0:
        raise ValueError(f"amount must be >= 0, got {amount}")
    return amount


@dataclass(frozen=True)
class Reservation:
    """Budget held for one in-flight paid call."""
    id: str
    endpoint: str
    amount: Decimal


@dataclass(eq=False)
class SpendLedger:
    """Budget-capped spend tracker with an append-only transaction log.

    The cap is fixed at construction. ``spent_today`` only ever grows; there
    is no reset within the lifetime of a ledger.

    Paid calls follow a reserve/settle cycle:
    - ``reserve()`` holds the cost before the call goes out, so concurrent
      workers sharing one ledger cannot both spend the last of the budget
    - ``settle_success()`` turns the hold into spend and logs the call
    - ``settle_failure()`` drops the hold and logs the call uncharged
    Every settled reservation yields exactly one transaction.
    """
    cap: Decimal
    _spent: Decimal = field(default=Decimal("0"), init=False, repr=False)
    _committed: Decimal = field(default=Decimal("0"), init=False, repr=False)
    _transactions: List[Transaction] = field(default_factory=list, init=False, repr=False)
    _reservations: Dict[str, Reservation] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def __post_init__(self):
        """Validate the budget cap is positive."""
        self.cap = _as_amount(self.cap)
        if self.cap <= 0:
            raise ValueError("budget cap must be > 0")

    @property
    def spent_today(self) -> Decimal:
        return self._spent

    @property
    def remaining(self) -> Decimal:
        return self.cap - self._spent

    @property
    def committed(self) -> Decimal:
        """Budget held by calls that are still in flight."""
        return self._committed

    @property
    def available(self) -> Decimal:
        """Budget a new call may use: remaining minus in-flight holds."""
        with self._lock:
            return self.cap - self._spent - self._committed

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        """Snapshot of all transactions in chronological order."""
        with self._lock:
            return tuple(self._transactions)

    def can_afford(self, amount) -> bool:
        """Return True iff the uncommitted budget covers ``amount``.

        With no call in flight this is ``cap - spent_today >= amount``.
        """
        amount = _as_amount(amount)
        return self.available >= amount

    def ensure_affordable(self, endpoint: str, amount) -> None:
        """Refuse a call that the available budget cannot cover.

        Raises:
            BudgetExceeded: If ``amount`` exceeds the available budget
        """
        amount = _as_amount(amount)
        with self._lock:
            available = self.available
            if available < amount:
                raise BudgetExceeded(endpoint, amount, available)

    def reserve(self, endpoint: str, amount) -> Reservation:
        """Hold ``amount`` for a call that is about to be executed.

        Raises:
            BudgetExceeded: If the available budget cannot cover it. Nothing
                is held or recorded in that case.
        """
        amount = _as_amount(amount)
        with self._lock:
            self.ensure_affordable(endpoint, amount)
            reservation = Reservation(id=str(uuid4()), endpoint=endpoint, amount=amount)
            self._reservations[reservation.id] = reservation
            self._committed += amount
            return reservation

    def _release(self, reservation: Reservation) -> Reservation:
        held = self._reservations.pop(reservation.id, None)
        if held is None:
            raise KeyError(f"Unknown or already settled reservation: {reservation.id}")
        self._committed -= held.amount
        return held

    def settle_success(
        self,
        reservation: Reservation,
        duration_ms: Optional[int] = None,
        request_id: Optional[str] = None
    ) -> Transaction:
        """Charge a reserved call that completed.

        Raises:
            KeyError: If the reservation was already settled
        """
        with self._lock:
            held = self._release(reservation)
            return self._append_success(held.endpoint, held.amount, duration_ms, request_id)

    def settle_failure(self, reservation: Reservation, error: str) -> Transaction:
        """Log a reserved call that failed and free its hold.

        Raises:
            KeyError: If the reservation was already settled
        """
        with self._lock:
            held = self._release(reservation)
            return self.record_failure(held.endpoint, held.amount, error)

    def record_success(
        self,
        endpoint: str,
        amount,
        duration_ms: Optional[int] = None,
        request_id: Optional[str] = None
    ) -> Transaction:
        """Record a completed paid call that was not reserved and debit it.

        Args:
            endpoint: Endpoint identifier of the call
            amount: Cost charged for the call
            duration_ms: Wall-clock duration of the call
            request_id: Identifier returned by the service, if any

        Returns:
            The appended transaction

        Raises:
            BudgetExceeded: If the debit would exceed the available budget.
                Nothing is appended in that case.
        """
        amount = _as_amount(amount)
        with self._lock:
            self.ensure_affordable(endpoint, amount)
            return self._append_success(endpoint, amount, duration_ms, request_id)

    def _append_success(self, endpoint, amount, duration_ms, request_id) -> Transaction:
        transaction = Transaction(
            timestamp=datetime.now(),
            endpoint=endpoint,
            cost=amount,
            status=TransactionStatus.SUCCESS,
            duration_ms=duration_ms,
            request_id=request_id
        )
        self._transactions.append(transaction)
        self._spent += amount
        return transaction

    def record_failure(self, endpoint: str, amount, error: str) -> Transaction:
        """Record a failed paid call. Failed calls are not charged."""
        amount = _as_amount(amount)
        with self._lock:
            transaction = Transaction(
                timestamp=datetime.now(),
                endpoint=endpoint,
                cost=amount,
                status=TransactionStatus.FAILED,
                error=error
            )
            self._transactions.append(transaction)
            return transaction
