import random
from decimal import Decimal

import pytest

from homecare.services.gateway import DummyPaymentGateway, GatewayOutcome, get_gateway


def test_always_succeeds_at_full_rate():
    gateway = DummyPaymentGateway(success_rate=100)
    for _ in range(20):
        result = gateway.initiate(Decimal("100.00"), "upi", "customer-1")
        assert result.outcome == GatewayOutcome.SUCCESS
        assert result.reference.startswith("TXN_")


def test_always_fails_at_zero_rate():
    gateway = DummyPaymentGateway(success_rate=0)
    result = gateway.initiate(Decimal("100.00"), "card", "customer-1")
    assert result.outcome == GatewayOutcome.FAILED
    assert not result.ok


def test_seeded_rng_is_deterministic():
    a = DummyPaymentGateway(success_rate=50, rng=random.Random(7))
    b = DummyPaymentGateway(success_rate=50, rng=random.Random(7))
    outcomes_a = [a.initiate(Decimal("1"), "upi", "c").outcome for _ in range(30)]
    outcomes_b = [b.initiate(Decimal("1"), "upi", "c").outcome for _ in range(30)]
    assert outcomes_a == outcomes_b
    assert {GatewayOutcome.SUCCESS, GatewayOutcome.FAILED} == set(outcomes_a)


def test_invalid_amount_and_missing_reference():
    gateway = DummyPaymentGateway(success_rate=100)
    assert gateway.initiate(Decimal("0"), "upi", "c").outcome == GatewayOutcome.FAILED
    assert gateway.refund("", Decimal("10")).outcome == GatewayOutcome.FAILED
    assert gateway.refund("TXN_1", Decimal("10")).reference.startswith("RFD_")


def test_references_are_unique_per_call():
    gateway = DummyPaymentGateway(success_rate=100)
    refs = {gateway.initiate(Decimal("5"), "upi", "c").reference for _ in range(50)}
    assert len(refs) == 50


def test_factory():
    assert isinstance(get_gateway("dummy"), DummyPaymentGateway)
    with pytest.raises(ValueError):
        get_gateway("nope")
