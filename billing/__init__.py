"""Billing package: credit ledger, credit packs, and payment gateway."""

from billing.ledger import CreditLedger, Reservation
from billing.packs import (
    CREDIT_PACKS,
    CreditPack,
    PaymentGateway,
    SimulatedPaymentGateway,
    get_pack,
)

__all__ = [
    "CreditLedger",
    "Reservation",
    "CREDIT_PACKS",
    "CreditPack",
    "PaymentGateway",
    "SimulatedPaymentGateway",
    "get_pack",
]
