"""Credit ledger: cost estimation, admission, and balance bookkeeping."""

import itertools
import logging
from dataclasses import dataclass
from typing import Optional

from billing.packs import CreditPack, PaymentGateway
from config.exceptions import BillingError, InsufficientBalanceError, ValidationError
from config.settings import Settings
from models.database import Database
from models.enums import Operation
from models.outline import Chapter, Outline

logger = logging.getLogger(__name__)

_reservation_ids = itertools.count(1)


@dataclass
class Reservation:
    """Credits held for an admitted operation until it succeeds or fails."""
    id: int
    cost: int
    operation: str = ""
    settled: bool = False


class CreditLedger:
    """Tracks the credit balance and prices generation operations.

    Charging happens after the external call succeeds. Operations are
    admitted through ``reserve`` so that several calls in flight can never
    jointly spend more than the balance held at admission time.
    """

    def __init__(
        self,
        balance: int = 0,
        settings: Optional[Settings] = None,
        db: Optional[Database] = None,
    ):
        if balance < 0:
            raise ValidationError("Initial balance must be non-negative", {"balance": balance})
        self.settings = settings or Settings()
        self._db = db
        self._balance = balance
        self._reservations: dict[int, Reservation] = {}

    @classmethod
    def load(cls, db: Database, settings: Optional[Settings] = None) -> "CreditLedger":
        """Restore the persisted balance, seeding it from settings on first run."""
        settings = settings or Settings()
        balance = db.get_balance()
        if balance is None:
            balance = settings.initial_balance
            db.set_balance(balance)
        return cls(balance=balance, settings=settings, db=db)

    # ---- Balance ----

    @property
    def balance(self) -> int:
        return self._balance

    @property
    def reserved(self) -> int:
        return sum(r.cost for r in self._reservations.values())

    @property
    def available(self) -> int:
        return self._balance - self.reserved

    def _set_balance(self, value: int):
        self._balance = value
        if self._db is not None:
            self._db.set_balance(value)

    # ---- Pricing ----

    def chapter_cost(self, chapter: Chapter) -> int:
        return chapter.estimated_pages * self.settings.credits_per_page

    def remaining_cost(self, outline: Optional[Outline]) -> int:
        """Sum of chapter costs over chapters not yet generated."""
        if outline is None:
            return 0
        return sum(self.chapter_cost(ch) for ch in outline.chapters if not ch.generated)

    def estimate_cost(
        self,
        operation: Operation | str,
        outline: Optional[Outline] = None,
        index: Optional[int] = None,
    ) -> int:
        """Price an operation without side effects."""
        operation = Operation(operation)
        if operation == Operation.OUTLINE:
            return self.settings.outline_cost
        if operation == Operation.COVER:
            return self.settings.cover_cost
        if operation == Operation.REMAINING:
            return self.remaining_cost(outline)
        if outline is None or index is None:
            raise ValidationError("Chapter cost needs an outline and a chapter index")
        if not 0 <= index < len(outline.chapters):
            raise ValidationError(
                "Chapter index out of range",
                {"index": index, "chapters": len(outline.chapters)},
            )
        return self.chapter_cost(outline.chapters[index])

    # ---- Admission and charging ----

    def can_afford(self, cost: int) -> bool:
        return self.available >= cost

    def ensure_affordable(self, cost: int, operation: str = ""):
        if not self.can_afford(cost):
            raise InsufficientBalanceError(cost, self.available, operation)

    def charge(self, cost: int, operation: str = ""):
        """Debit ``cost`` immediately. Requires ``can_afford(cost)``."""
        if cost < 0:
            raise ValidationError("Charge must be non-negative", {"cost": cost})
        self.ensure_affordable(cost, operation)
        self._set_balance(self._balance - cost)
        logger.info("Charged %d credits for %s (balance=%d)", cost, operation or "operation", self._balance)

    def reserve(self, cost: int, operation: str = "") -> Reservation:
        """Hold ``cost`` credits for an operation about to start."""
        if cost < 0:
            raise ValidationError("Reservation must be non-negative", {"cost": cost})
        self.ensure_affordable(cost, operation)
        reservation = Reservation(id=next(_reservation_ids), cost=cost, operation=operation)
        self._reservations[reservation.id] = reservation
        logger.debug("Reserved %d credits for %s (available=%d)", cost, operation, self.available)
        return reservation

    def commit(self, reservation: Reservation):
        """Debit a held reservation once its operation succeeded."""
        if reservation.settled or reservation.id not in self._reservations:
            raise BillingError("Reservation already settled", {"reservation": reservation.id})
        del self._reservations[reservation.id]
        reservation.settled = True
        self._set_balance(self._balance - reservation.cost)
        logger.info(
            "Charged %d credits for %s (balance=%d)",
            reservation.cost, reservation.operation or "operation", self._balance,
        )

    def release(self, reservation: Reservation):
        """Drop a reservation without charging. Safe to call twice."""
        if self._reservations.pop(reservation.id, None) is not None:
            reservation.settled = True
            logger.debug("Released %d credits held for %s", reservation.cost, reservation.operation)

    # ---- Top-ups ----

    def top_up(self, amount: int):
        if amount <= 0:
            raise ValidationError("Top-up amount must be positive", {"amount": amount})
        self._set_balance(self._balance + amount)
        logger.info("Topped up %d credits (balance=%d)", amount, self._balance)

    async def purchase(self, pack: CreditPack, gateway: PaymentGateway) -> int:
        """Buy a credit pack; the balance changes only after confirmation."""
        confirmed = await gateway.confirm(pack)
        if not confirmed:
            raise BillingError("Payment was not confirmed", {"pack": pack.id})
        self.top_up(pack.credits)
        return self._balance
