"""Stripe gateway: session mapping and retry behaviour."""

from decimal import Decimal

import pytest
import stripe

from donation_api.core.exceptions import UpstreamError
from donation_api.services import payments
from donation_api.services.payments import CheckoutSession, StripeGateway


@pytest.fixture(autouse=True)
def _no_backoff(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(payments, "RETRY_BACKOFF", 0)


def _gateway(**kwargs) -> StripeGateway:
    return StripeGateway(
        kwargs.pop("secret_key", "sk_test_123"),
        success_url="http://localhost:6000/api/donations/payment-success?session_id={CHECKOUT_SESSION_ID}",
        cancel_url="http://localhost:3000/donate",
        **kwargs,
    )


def _paid_session(**overrides) -> dict:
    session = {
        "id": "cs_test_1",
        "payment_status": "paid",
        "amount_total": 10050,
        "currency": "inr",
        "payment_intent": "pi_1",
        "metadata": {"donorID": "DON-00001"},
    }
    session.update(overrides)
    return session


def test_from_stripe_maps_fields():
    session = CheckoutSession.from_stripe(
        _paid_session(payment_intent={"id": "pi_expanded"}, url="https://checkout.test/x")
    )
    assert session.is_paid
    assert session.payment_intent == "pi_expanded"
    assert session.amount_total == 10050
    assert session.metadata == {"donorID": "DON-00001"}
    assert session.url == "https://checkout.test/x"


def test_unpaid_session_is_not_paid():
    assert not CheckoutSession.from_stripe(_paid_session(payment_status="unpaid")).is_paid


async def test_retrieve_retries_connection_errors(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def flaky_retrieve(**kwargs):
        calls.append(kwargs)
        if len(calls) < 3:
            raise stripe.APIConnectionError("connection reset")
        return _paid_session()

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", flaky_retrieve)
    session = await _gateway(max_retries=2).retrieve_session("cs_test_1")

    assert session.id == "cs_test_1"
    assert len(calls) == 3
    assert calls[0] == {"api_key": "sk_test_123", "id": "cs_test_1"}


async def test_retrieve_gives_up_after_max_retries(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def down(**kwargs):
        calls.append(kwargs)
        raise stripe.RateLimitError("slow down")

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", down)
    with pytest.raises(UpstreamError):
        await _gateway(max_retries=1).retrieve_session("cs_test_1")
    assert len(calls) == 2


async def test_rejected_request_is_not_retried(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def invalid(**kwargs):
        calls.append(kwargs)
        raise stripe.InvalidRequestError("No such checkout.session", "id")

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", invalid)
    with pytest.raises(UpstreamError):
        await _gateway().retrieve_session("cs_missing")
    assert len(calls) == 1


async def test_missing_secret_key():
    with pytest.raises(UpstreamError) as exc_info:
        await _gateway(secret_key="").retrieve_session("cs_test_1")
    assert exc_info.value.message == "Payment processor is not configured"


async def test_create_checkout_session_uses_minor_units(monkeypatch: pytest.MonkeyPatch):
    captured = {}

    def create(**kwargs):
        captured.update(kwargs)
        return {
            "id": "cs_new",
            "payment_status": "unpaid",
            "url": "https://checkout.stripe.test/cs_new",
            "payment_intent": None,
            "metadata": kwargs["metadata"],
        }

    monkeypatch.setattr(stripe.checkout.Session, "create", create)
    session = await _gateway().create_checkout_session(
        amount=Decimal("100.50"),
        currency="INR",
        description="Donation Payment",
        metadata={"donorID": "DON-00007"},
    )

    assert session.url == "https://checkout.stripe.test/cs_new"
    assert session.metadata == {"donorID": "DON-00007"}
    price = captured["line_items"][0]["price_data"]
    assert price["unit_amount"] == 10050
    assert price["currency"] == "inr"
    assert captured["mode"] == "payment"
    assert captured["payment_method_types"] == ["card"]
