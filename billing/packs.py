"""Credit pack catalogue and the payment gateway boundary."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreditPack:
    id: str
    name: str
    credits: int
    price: str
    description: str
    popular: bool = False


CREDIT_PACKS: list[CreditPack] = [
    CreditPack("trial", "Free trial", 10000, "¥0", "Welcome pack, enough for 5-8 compact chapters"),
    CreditPack("standard", "Standard", 100000, "¥29.9", "Two or three technical books of standard length", popular=True),
    CreditPack("pro", "Professional", 500000, "¥99.0", "Long-term authoring at a much lower cost per page"),
    CreditPack("unlimited", "Creator", 2000000, "¥299.0", "For prolific technical bloggers and studios"),
]


def get_pack(pack_id: str) -> Optional[CreditPack]:
    for pack in CREDIT_PACKS:
        if pack.id == pack_id:
            return pack
    return None


@runtime_checkable
class PaymentGateway(Protocol):
    """Confirms payment for a credit pack.

    The ledger only increases the balance after ``confirm`` returns True.
    """

    async def confirm(self, pack: CreditPack) -> bool:
        ...


class SimulatedPaymentGateway:
    """Stand-in gateway that confirms every payment after a fixed delay."""

    def __init__(self, delay_seconds: float = 1.5):
        self.delay_seconds = delay_seconds

    async def confirm(self, pack: CreditPack) -> bool:
        logger.info("Simulating payment for pack '%s' (%s)", pack.id, pack.price)
        await asyncio.sleep(self.delay_seconds)
        return True
