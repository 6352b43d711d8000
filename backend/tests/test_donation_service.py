"""Donation lifecycle at the service layer."""

import uuid
from decimal import Decimal

import pytest
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
from donation_api.models.donation import Donation
from donation_api.services.donations import DonationService
from donation_api.services.numbering import get_next_donor_id
from donation_api.services.receipts import ReceiptRenderer
from tests.helpers import TEST_PROFILE, FailingQrRenderer, FakeGateway


async def _create(service: DonationService, **overrides) -> Donation:
    data = {"amount": "100", "donor_name": "Asha"}
    data.update(overrides)
    donation, _ = await service.create(data)
    return donation


# ── Create ───────────────────────────────────────────────────────────


async def test_create_persists_pending_donation(service: DonationService):
    donation, links = await service.create(
        {"amount": "100", "donor_name": "Asha", "purpose": "annadaan"}
    )

    assert donation.status == "pending"
    assert donation.donor_id == "DON-00001"
    assert donation.amount == Decimal("100")
    assert donation.amount_option == "100"
    assert donation.amount_in_words == "One Hundred"
    assert donation.message == "No message"
    assert donation.payment_method == "UPI"
    assert donation.upi_link == links.generic
    assert donation.qr_code_url.startswith("data:image/png;base64,")
    assert "tn=Annadaan" in links.generic


async def test_donor_ids_are_sequential(service: DonationService):
    first = await _create(service)
    second = await _create(service, donor_name="Ravi")
    assert (first.donor_id, second.donor_id) == ("DON-00001", "DON-00002")


async def test_donor_id_sequence_compares_numerically(db: AsyncSession, service: DonationService):
    await _create(service)
    donation = await service.get_by_donor_id("DON-00001")
    donation.donor_id = "DON-99999"
    await db.commit()
    assert await get_next_donor_id(db) == "DON-100000"


async def test_custom_amount(service: DonationService):
    donation = await _create(service, amount="other", custom_amount="0.50")
    assert donation.amount == Decimal("0.50")
    assert donation.custom_amount == Decimal("0.50")
    assert donation.amount_in_words == "Zero and Fifty Paise"


async def test_invalid_submission_writes_nothing(service: DonationService):
    with pytest.raises(ValidationError):
        await _create(service, amount="other", custom_amount="0.25")
    assert await service.list_all() == []


async def test_qr_failure_aborts_create(
    db: AsyncSession, gateway: FakeGateway, receipt_renderer
):
    service = DonationService(
        db,
        profile=TEST_PROFILE,
        qr_renderer=FailingQrRenderer(),
        gateway=gateway,
        receipts=receipt_renderer,
        upi_receiver_id="temple@ybl",
    )
    with pytest.raises(RenderError):
        await _create(service)
    assert await service.list_all() == []


async def test_failed_flush_persists_nothing(
    service: DonationService, monkeypatch: pytest.MonkeyPatch
):
    async def broken_flush(self, *args, **kwargs):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(AsyncSession, "flush", broken_flush)
    with pytest.raises(StorageError):
        await _create(service)

    monkeypatch.undo()
    assert await service.list_all() == []


async def test_failed_commit_persists_nothing(
    service: DonationService, monkeypatch: pytest.MonkeyPatch
):
    async def broken_commit(self):
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(AsyncSession, "commit", broken_commit)
    with pytest.raises(StorageError):
        await _create(service)

    monkeypatch.undo()
    assert await service.list_all() == []


# ── Read ─────────────────────────────────────────────────────────────


async def test_get_unknown_and_malformed_ids(service: DonationService):
    with pytest.raises(NotFound):
        await service.get(uuid.uuid4())
    with pytest.raises(NotFound):
        await service.get("not-a-uuid")
    with pytest.raises(NotFound):
        await service.get_by_donor_id("DON-99999")


async def test_list_all_newest_first(service: DonationService):
    first = await _create(service)
    second = await _create(service, donor_name="Ravi")
    listed = await service.list_all()
    assert [d.id for d in listed] == [second.id, first.id]


# ── Status ───────────────────────────────────────────────────────────


async def test_status_moves_forward(service: DonationService):
    donation = await _create(service)

    paid = await service.update_status(donation.id)
    assert paid.status == "paid"
    assert paid.updated_at is not None

    completed = await service.update_status(str(donation.id), "completed")
    assert completed.status == "completed"


async def test_repeating_status_is_a_no_op(service: DonationService):
    donation = await _create(service)
    await service.update_status(donation.id, "paid")
    stamped = donation.updated_at

    again = await service.update_status(donation.id, "paid")
    assert again.status == "paid"
    assert again.updated_at == stamped


async def test_status_cannot_move_backwards(service: DonationService):
    donation = await _create(service)
    await service.update_status(donation.id, "paid")

    with pytest.raises(InvalidStatusTransition) as exc_info:
        await service.update_status(donation.id, "pending")
    assert exc_info.value.allowed == ["completed"]


async def test_unknown_status_rejected(service: DonationService):
    donation = await _create(service)
    with pytest.raises(ValidationError) as exc_info:
        await service.update_status(donation.id, "refunded")
    assert exc_info.value.field == "status"


# ── Update / delete ──────────────────────────────────────────────────


async def test_update_fields(service: DonationService):
    donation = await _create(service)
    updated = await service.update_fields(
        donation.id, {"email": "ASHA@EXAMPLE.COM", "spouse_name": "Meera"}
    )
    assert updated.email == "asha@example.com"
    assert updated.spouse_name == "Meera"
    assert updated.updated_at is not None


async def test_update_rejects_protected_fields(service: DonationService):
    donation = await _create(service)
    with pytest.raises(ValidationError):
        await service.update_fields(donation.id, {"upi_link": "upi://pay?pa=evil@upi"})
    refreshed = await service.get(donation.id)
    assert refreshed.upi_link.startswith("upi://pay?pa=temple@ybl")


async def test_delete(service: DonationService):
    donation = await _create(service)
    await service.delete(donation.id)
    with pytest.raises(NotFound):
        await service.get(donation.id)
    with pytest.raises(NotFound):
        await service.delete(donation.id)


# ── Receipts and processor ───────────────────────────────────────────


async def test_render_invoice(service: DonationService):
    donation = await _create(service)
    pdf, filename = await service.render_invoice(donation.id)
    assert pdf.startswith(b"%PDF")
    assert filename == "donation_receipt_DON-00001.pdf"


async def test_create_checkout_stores_link(service: DonationService, gateway: FakeGateway):
    donation = await _create(service, spouse_name="Meera")
    updated = await service.create_checkout(donation.id)

    assert updated.payment_link == "https://checkout.stripe.test/pay/cs_test_1"
    assert updated.payment_intent_id == "pi_test_1"
    request = gateway.created[0]
    assert request["amount"] == Decimal("100")
    assert request["metadata"]["donorID"] == "DON-00001"
    assert request["metadata"]["spouseName"] == "Meera"
    assert request["metadata"]["donationId"] == str(donation.id)


async def test_create_checkout_requires_pending(service: DonationService):
    donation = await _create(service)
    await service.update_status(donation.id, "paid")
    with pytest.raises(ValidationError):
        await service.create_checkout(donation.id)


async def test_verify_payment_marks_donation_paid(
    service: DonationService, gateway: FakeGateway
):
    donation = await _create(service)
    await service.create_checkout(donation.id)

    gateway.add_session("cs_test_1", metadata=gateway.sessions["cs_test_1"].metadata)
    path = await service.verify_external_payment("cs_test_1")

    assert path.name == "donation_receipt_DON-00001.pdf"
    assert path.read_bytes().startswith(b"%PDF")
    refreshed = await service.get(donation.id)
    assert refreshed.status == "paid"
    assert refreshed.payment_method == "Stripe"


async def test_verify_payment_without_linked_donation(
    service: DonationService, gateway: FakeGateway
):
    gateway.add_session(
        "cs_walkin",
        amount_total=50000,
        metadata={"donorID": "DON-00077", "donorName": "Ravi"},
    )
    path = await service.verify_external_payment("cs_walkin")
    assert path.name == "donation_receipt_DON-00077.pdf"


async def test_verify_unpaid_session(service: DonationService, gateway: FakeGateway):
    gateway.add_session("cs_open", payment_status="unpaid")
    with pytest.raises(PaymentNotCompleted):
        await service.verify_external_payment("cs_open")


@pytest.mark.parametrize("session_id", [None, "", "   "])
async def test_verify_requires_session_id(service: DonationService, session_id):
    with pytest.raises(ValidationError) as exc_info:
        await service.verify_external_payment(session_id)
    assert exc_info.value.field == "session_id"


async def test_verify_payment_rejects_failed_donation(
    service: DonationService, gateway: FakeGateway, receipt_renderer: ReceiptRenderer
):
    donation = await _create(service)
    await service.update_status(donation.id, "failed")
    gateway.add_session(
        "cs_late",
        metadata={"donationId": str(donation.id), "donorID": donation.donor_id},
    )

    with pytest.raises(InvalidStatusTransition):
        await service.verify_external_payment("cs_late")

    assert not receipt_renderer.receipt_path(donation.donor_id).exists()
    assert (await service.get(donation.id)).status == "failed"


async def test_verify_payment_writes_no_receipt_when_commit_fails(
    db: AsyncSession,
    service: DonationService,
    gateway: FakeGateway,
    receipt_renderer: ReceiptRenderer,
    monkeypatch: pytest.MonkeyPatch,
):
    donation = await _create(service)
    gateway.add_session(
        "cs_paid",
        metadata={"donationId": str(donation.id), "donorID": donation.donor_id},
    )

    async def broken_commit(self):
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(AsyncSession, "commit", broken_commit)
    with pytest.raises(StorageError):
        await service.verify_external_payment("cs_paid")

    monkeypatch.undo()
    assert not receipt_renderer.receipt_path(donation.donor_id).exists()
    await db.refresh(donation)
    assert donation.status == "pending"
