"""Donation lifecycle: create, read, update, delete and payment reconciliation.

One ``DonationService`` per request, built around the request's session.
Every mutation commits before returning; a failed commit rolls back and
surfaces as StorageError, so callers never observe a partial write.
"""

import asyncio
import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from donation_api.core.exceptions import (
    InvalidStatusTransition,
    NotFound,
    PaymentNotCompleted,
    RenderError,
    StorageError,
    ValidationError,
)
from donation_api.models.donation import DONATION_STATUSES, Donation
from donation_api.services.number_words import amount_to_words
from donation_api.services.numbering import get_next_donor_id
from donation_api.services.payments import PaymentGateway
from donation_api.services.qr import QrRenderer
from donation_api.services.receipts import ReceiptData, ReceiptRenderer, receipt_filename
from donation_api.services.upi_links import PaymentLinks, build_payment_links
from donation_api.services.validation import (
    DonationProfile,
    validate_changes,
    validate_submission,
)

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = "UPI"
PROCESSOR_PAYMENT_METHOD = "Stripe"

# Forward-only; repeating the current status is accepted as a no-op.
DONATION_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["paid", "completed", "failed"],
    "paid": ["completed"],
    "completed": [],
    "failed": [],
}


def _validate_transition(current: str, requested: str) -> None:
    if requested not in DONATION_TRANSITIONS:
        raise ValidationError(
            "status", f"Status must be one of: {', '.join(DONATION_STATUSES)}"
        )
    allowed = DONATION_TRANSITIONS.get(current, [])
    if requested != current and requested not in allowed:
        raise InvalidStatusTransition(current, requested, allowed)


def _parse_uuid(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class DonationService:
    def __init__(
        self,
        db: AsyncSession,
        *,
        profile: DonationProfile,
        qr_renderer: QrRenderer,
        gateway: PaymentGateway,
        receipts: ReceiptRenderer,
        upi_receiver_id: str,
        currency: str = "INR",
    ):
        self.db = db
        self.profile = profile
        self.qr_renderer = qr_renderer
        self.gateway = gateway
        self.receipts = receipts
        self.upi_receiver_id = upi_receiver_id
        self.currency = currency

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("Failed to %s", action)
            raise StorageError() from exc

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, data: dict[str, Any]) -> tuple[Donation, PaymentLinks]:
        """Validate, build links and QR, then persist a pending donation."""
        submission = validate_submission(data, self.profile)

        links = build_payment_links(
            self.upi_receiver_id,
            submission.donor_name,
            submission.amount,
            submission.purpose,
            self.currency,
        )

        qr = await self.qr_renderer.render(links.generic)
        if not qr.ok:
            raise RenderError("Error generating UPI QR code")

        try:
            donation = Donation(
                donor_id=await get_next_donor_id(self.db),
                donor_name=submission.donor_name,
                email=submission.email,
                phone_number=submission.phone_number,
                address=submission.address,
                purpose=submission.purpose,
                amount_option=submission.amount_option,
                custom_amount=submission.custom_amount,
                amount=submission.amount,
                currency=self.currency,
                amount_in_words=amount_to_words(submission.amount),
                message=submission.message or "No message",
                is_anonymous=submission.is_anonymous,
                status="pending",
                payment_method=DEFAULT_PAYMENT_METHOD,
                upi_link=links.generic,
                qr_code_url=qr.data_url,
                spouse_name=submission.spouse_name,
                donation_type=submission.donation_type,
                relation=submission.relation,
            )
            self.db.add(donation)
            await self.db.flush()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("Failed to insert donation")
            raise StorageError() from exc
        await self._commit("create donation")

        logger.info(
            "Donation %s (%s) created: amount=%s", donation.id, donation.donor_id, donation.amount
        )
        return donation, links

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get(self, donation_id: Any) -> Donation:
        parsed = _parse_uuid(donation_id)
        if parsed is None:
            raise NotFound()
        donation = await self.db.get(Donation, parsed)
        if donation is None:
            raise NotFound()
        return donation

    async def get_by_donor_id(self, donor_id: str) -> Donation:
        result = await self.db.execute(select(Donation).where(Donation.donor_id == donor_id))
        donation = result.scalar_one_or_none()
        if donation is None:
            raise NotFound()
        return donation

    async def list_all(self) -> list[Donation]:
        result = await self.db.execute(
            select(Donation).order_by(Donation.donation_date.desc(), Donation.donor_id.desc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    async def update_status(self, donation_id: Any, status: str = "paid") -> Donation:
        donation = await self.get(donation_id)
        requested = (status or "").strip().lower()
        _validate_transition(donation.status, requested)

        if donation.status == requested:
            return donation

        previous = donation.status
        donation.status = requested
        donation.updated_at = datetime.now(UTC)
        await self._commit("update donation status")
        logger.info("Donation %s status %s -> %s", donation.id, previous, requested)
        return donation

    async def update_fields(self, donation_id: Any, changes: dict[str, Any]) -> Donation:
        donation = await self.get(donation_id)
        cleaned = validate_changes(changes, self.profile)
        if not cleaned:
            return donation

        for name, value in cleaned.items():
            setattr(donation, name, value)
        donation.updated_at = datetime.now(UTC)
        await self._commit("update donation")
        logger.info("Donation %s updated: %s", donation.id, ", ".join(sorted(cleaned)))
        return donation

    async def delete(self, donation_id: Any) -> None:
        donation = await self.get(donation_id)
        await self.db.delete(donation)
        await self._commit("delete donation")
        logger.info("Donation %s deleted", donation.id)

    # ------------------------------------------------------------------
    # Receipts
    # ------------------------------------------------------------------

    async def render_invoice(self, donation_id: Any) -> tuple[bytes, str]:
        """Return ``(pdf_bytes, filename)`` for a stored donation."""
        donation = await self.get(donation_id)
        data = ReceiptData.from_donation(donation)
        pdf = await asyncio.to_thread(self.receipts.render_bytes, data)
        return pdf, receipt_filename(donation.donor_id)

    def receipt_file(self, donor_id: str) -> Path:
        path = self.receipts.receipt_path(donor_id)
        if not path.is_file():
            raise NotFound("Receipt not found")
        return path

    # ------------------------------------------------------------------
    # Payment processor
    # ------------------------------------------------------------------

    async def create_checkout(self, donation_id: Any) -> Donation:
        """Open a hosted checkout session for a pending donation."""
        donation = await self.get(donation_id)
        if donation.status != "pending":
            raise ValidationError("status", f"Donation is already {donation.status}")

        session = await self.gateway.create_checkout_session(
            amount=donation.amount,
            currency=donation.currency,
            description="Donation Payment",
            metadata={
                "donationId": str(donation.id),
                "donorID": donation.donor_id,
                "donorName": donation.donor_name,
                "spouseName": donation.spouse_name or "",
                "amountInWords": donation.amount_in_words,
            },
        )
        donation.payment_link = session.url
        donation.payment_intent_id = session.payment_intent
        donation.updated_at = datetime.now(UTC)
        await self._commit("store checkout session")
        logger.info("Checkout session %s opened for donation %s", session.id, donation.id)
        return donation

    async def verify_external_payment(self, session_id: str | None) -> Path:
        """Confirm a processor session is paid and write its receipt.

        Returns the receipt path. When the session metadata points at a stored
        donation, that donation is marked paid before the receipt is written;
        a donation already marked failed is rejected and nothing is written.
        """
        if not session_id or not session_id.strip():
            raise ValidationError("session_id", "Session ID is required.")

        session = await self.gateway.retrieve_session(session_id.strip())
        if not session.is_paid:
            logger.info("Session %s not paid (status=%s)", session.id, session.payment_status)
            raise PaymentNotCompleted()

        meta = session.metadata
        donation = None
        linked_id = _parse_uuid(meta.get("donationId"))
        if linked_id is not None:
            donation = await self.db.get(Donation, linked_id)
        if donation is not None and donation.status == "failed":
            raise InvalidStatusTransition(
                donation.status, "paid", DONATION_TRANSITIONS[donation.status]
            )

        amount = Decimal(session.amount_total or 0) / 100
        data = ReceiptData(
            receipt_number=meta.get("donorID") or (donation.donor_id if donation else session.id),
            donor_name=meta.get("donorName") or (donation.donor_name if donation else "Donor"),
            spouse_name=meta.get("spouseName") or None,
            amount=amount,
            donation_date=datetime.now(UTC),
            amount_in_words=meta.get("amountInWords") or amount_to_words(amount),
            payment_method=PROCESSOR_PAYMENT_METHOD,
        )
        if donation is not None and donation.status in ("pending", "paid"):
            donation.status = "paid"
            donation.payment_method = PROCESSOR_PAYMENT_METHOD
            donation.payment_intent_id = session.payment_intent or donation.payment_intent_id
            donation.updated_at = datetime.now(UTC)
            await self._commit("record processor payment")
            logger.info("Donation %s marked paid via session %s", donation.id, session.id)

        return await asyncio.to_thread(self.receipts.write_receipt, data)
