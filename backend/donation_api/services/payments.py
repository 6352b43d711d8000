"""Stripe Checkout integration.

The SDK is synchronous; calls run in a worker thread under a per-attempt
timeout and are retried a bounded number of times on connection and
rate-limit failures. Any other processor error is raised as UpstreamError
without retrying.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import stripe

from donation_api.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

RETRY_BACKOFF = 0.5  # seconds, doubled per attempt

_RETRYABLE = (stripe.APIConnectionError, stripe.RateLimitError, TimeoutError)


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    payment_status: str | None
    amount_total: int | None = None
    currency: str | None = None
    url: str | None = None
    payment_intent: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    @classmethod
    def from_stripe(cls, session: Any) -> "CheckoutSession":
        payment_intent = session.get("payment_intent")
        if payment_intent is not None and not isinstance(payment_intent, str):
            payment_intent = payment_intent.get("id")
        metadata = session.get("metadata") or {}
        return cls(
            id=session["id"],
            payment_status=session.get("payment_status"),
            amount_total=session.get("amount_total"),
            currency=session.get("currency"),
            url=session.get("url"),
            payment_intent=payment_intent,
            metadata={str(k): str(v) for k, v in dict(metadata).items()},
        )


class PaymentGateway:
    """Processor-facing operations used by the donation lifecycle."""

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        raise NotImplementedError

    async def create_checkout_session(
        self,
        *,
        amount: Decimal,
        currency: str,
        description: str,
        metadata: dict[str, str],
    ) -> CheckoutSession:
        raise NotImplementedError


class StripeGateway(PaymentGateway):
    def __init__(
        self,
        secret_key: str,
        *,
        success_url: str,
        cancel_url: str,
        payment_method_types: list[str] | None = None,
        timeout: float = 10.0,
        max_retries: int = 2,
    ):
        self.secret_key = secret_key
        self.success_url = success_url
        self.cancel_url = cancel_url
        self.payment_method_types = payment_method_types or ["card"]
        self.timeout = timeout
        self.max_retries = max_retries

    async def _call(self, operation: str, func, /, **kwargs) -> Any:
        if not self.secret_key:
            raise UpstreamError("Payment processor is not configured")

        attempt = 0
        while True:
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(func, api_key=self.secret_key, **kwargs),
                    timeout=self.timeout,
                )
            except _RETRYABLE as exc:
                if attempt >= self.max_retries:
                    logger.error(
                        "Stripe %s failed after %d attempts: %s", operation, attempt + 1, exc
                    )
                    raise UpstreamError() from exc
                delay = RETRY_BACKOFF * (2**attempt)
                logger.warning(
                    "Stripe %s attempt %d failed (%s); retrying in %.1fs",
                    operation,
                    attempt + 1,
                    type(exc).__name__,
                    delay,
                )
                attempt += 1
                await asyncio.sleep(delay)
            except stripe.StripeError as exc:
                logger.error("Stripe %s rejected: %s", operation, exc)
                raise UpstreamError() from exc

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        session = await self._call(
            "session retrieve", stripe.checkout.Session.retrieve, id=session_id
        )
        return CheckoutSession.from_stripe(session)

    async def create_checkout_session(
        self,
        *,
        amount: Decimal,
        currency: str,
        description: str,
        metadata: dict[str, str],
    ) -> CheckoutSession:
        # Stripe takes the minor unit (paise for INR).
        unit_amount = int((Decimal(amount) * 100).to_integral_value())
        session = await self._call(
            "session create",
            stripe.checkout.Session.create,
            mode="payment",
            payment_method_types=self.payment_method_types,
            line_items=[
                {
                    "price_data": {
                        "currency": currency.lower(),
                        "product_data": {"name": description},
                        "unit_amount": unit_amount,
                    },
                    "quantity": 1,
                }
            ],
            metadata=metadata,
            success_url=self.success_url,
            cancel_url=self.cancel_url,
        )
        return CheckoutSession.from_stripe(session)
