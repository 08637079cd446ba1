"""Payment gateway port and the local simulator used outside production."""

from __future__ import annotations

import enum
import logging
import random
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Type

from ..core.config import settings

logger = logging.getLogger(__name__)


class GatewayOutcome(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


@dataclass(frozen=True)
class GatewayResult:
    reference: str
    outcome: GatewayOutcome
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == GatewayOutcome.SUCCESS


class GatewayError(Exception):
    """The gateway could not be reached or rejected the call outright."""


class PaymentGateway:
    """Base class for payment gateways."""

    name = "base"

    def initiate(self, amount: Decimal, method: str, customer_ref: str) -> GatewayResult:
        raise NotImplementedError

    def refund(self, transaction_id: str, amount: Decimal) -> GatewayResult:
        raise NotImplementedError


class DummyPaymentGateway(PaymentGateway):
    """Simulates a gateway: succeeds ``success_rate`` percent of the time.

    Holds no state between calls; every reference is freshly generated.
    """

    name = "dummy"

    def __init__(self, success_rate: Optional[int] = None, rng: Optional[random.Random] = None):
        self.success_rate = settings.GATEWAY_SUCCESS_RATE if success_rate is None else success_rate
        self._rng = rng or random.Random()

    def _roll(self) -> bool:
        return self._rng.randint(1, 100) <= self.success_rate

    def initiate(self, amount: Decimal, method: str, customer_ref: str) -> GatewayResult:
        if amount is None or Decimal(amount) <= 0:
            return GatewayResult("", GatewayOutcome.FAILED, "Invalid amount")
        reference = f"TXN_{uuid.uuid4().hex[:12].upper()}"
        if self._roll():
            logger.info("Dummy gateway charged %s via %s for %s", amount, method, customer_ref)
            return GatewayResult(reference, GatewayOutcome.SUCCESS, "Payment processed successfully")
        logger.info("Dummy gateway declined %s for %s", amount, customer_ref)
        return GatewayResult(reference, GatewayOutcome.FAILED, "Payment declined by bank")

    def refund(self, transaction_id: str, amount: Decimal) -> GatewayResult:
        if not transaction_id:
            return GatewayResult("", GatewayOutcome.FAILED, "Missing transaction reference")
        reference = f"RFD_{uuid.uuid4().hex[:12].upper()}"
        if self._roll():
            return GatewayResult(reference, GatewayOutcome.SUCCESS, "Refund processed successfully")
        return GatewayResult(reference, GatewayOutcome.FAILED, "Refund rejected by gateway")


_GATEWAYS: Dict[str, Type[PaymentGateway]] = {
    "dummy": DummyPaymentGateway,
}


def get_gateway(name: Optional[str] = None) -> PaymentGateway:
    """Return the gateway registered under ``name`` (defaults to settings)."""
    key = (name or settings.PAYMENT_GATEWAY).lower()
    gateway_cls = _GATEWAYS.get(key)
    if gateway_cls is None:
        raise ValueError(f"Unknown payment gateway: {key}")
    return gateway_cls()
