"""Test doubles and request helpers shared across test modules."""

from decimal import Decimal

from httpx import AsyncClient

from donation_api.core.exceptions import UpstreamError
from donation_api.services.payments import CheckoutSession, PaymentGateway
from donation_api.services.qr import QrCodeResult, QrRenderer
from donation_api.services.validation import DonationProfile

API = "/api/donations"

TEST_PROFILE = DonationProfile(
    allowed_amounts=("1", "2", "10", "20", "50", "100", "200", "500"),
    allowed_purposes=("abhishek", "donation", "annadaan", "jeernoddhar"),
    custom_amount_min=Decimal("0.50"),
)


class FakeGateway(PaymentGateway):
    """In-memory stand-in for Stripe Checkout."""

    def __init__(self):
        self.sessions: dict[str, CheckoutSession] = {}
        self.created: list[dict] = []

    def add_session(
        self,
        session_id: str,
        *,
        payment_status: str = "paid",
        amount_total: int = 10000,
        metadata: dict[str, str] | None = None,
        payment_intent: str | None = "pi_test_123",
    ) -> CheckoutSession:
        session = CheckoutSession(
            id=session_id,
            payment_status=payment_status,
            amount_total=amount_total,
            currency="inr",
            payment_intent=payment_intent,
            metadata=metadata or {},
        )
        self.sessions[session_id] = session
        return session

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        try:
            return self.sessions[session_id]
        except KeyError:
            raise UpstreamError() from None

    async def create_checkout_session(
        self,
        *,
        amount: Decimal,
        currency: str,
        description: str,
        metadata: dict[str, str],
    ) -> CheckoutSession:
        self.created.append(
            {"amount": amount, "currency": currency, "description": description, "metadata": metadata}
        )
        session_id = f"cs_test_{len(self.created)}"
        session = CheckoutSession(
            id=session_id,
            payment_status="unpaid",
            amount_total=int(amount * 100),
            currency=currency.lower(),
            url=f"https://checkout.stripe.test/pay/{session_id}",
            payment_intent=f"pi_test_{len(self.created)}",
            metadata=metadata,
        )
        self.sessions[session_id] = session
        return session


class FailingQrRenderer(QrRenderer):
    async def render(self, payload: str) -> QrCodeResult:
        return QrCodeResult.failure("renderer unavailable")


async def create_donation(client: AsyncClient, **overrides) -> dict:
    """POST a valid donation and return the response JSON."""
    body = {"amount": "100", "donorName": "Asha"}
    body.update(overrides)
    resp = await client.post(f"{API}/donations", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()
