"""Donation endpoints.

POST   /donations                       (alias /create-donations)
GET    /donations                       (alias /get-donations)
GET    /donations/{donor_id}
GET    /donation/{donation_id}
GET    /donation?id=
PUT    /update-status/{donation_id}
PUT    /update-donation/{donation_id}
DELETE /delete-donation/{donation_id}
POST   /download-invoice/{donation_id}
POST   /create-checkout/{donation_id}
GET    /payment-success?session_id=
GET    /receipts/{donor_id}
"""

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import FileResponse, Response

from donation_api.core.dependencies import get_donation_service
from donation_api.schemas.common import ERROR_RESPONSES
from donation_api.schemas.donation import (
    CheckoutResponse,
    DonationCreateRequest,
    DonationCreateResponse,
    DonationDetail,
    DonationListItem,
    DonationListResponse,
    DonationResponse,
    DonationUpdateRequest,
    MessageResponse,
    PaymentSuccessResponse,
    StatusUpdateRequest,
)
from donation_api.services.donations import DonationService

router = APIRouter(responses=ERROR_RESPONSES)


# ---------------------------------------------------------------------------
# Create / list
# ---------------------------------------------------------------------------


@router.post("/donations", response_model=DonationCreateResponse, status_code=201)
@router.post("/create-donations", response_model=DonationCreateResponse, status_code=201)
async def create_donation(
    body: DonationCreateRequest,
    service: DonationService = Depends(get_donation_service),
) -> DonationCreateResponse:
    donation, links = await service.create(body.model_dump())
    return DonationCreateResponse.build(donation, links)


@router.get("/donations", response_model=DonationListResponse)
@router.get("/get-donations", response_model=DonationListResponse)
async def list_donations(
    service: DonationService = Depends(get_donation_service),
) -> DonationListResponse:
    donations = await service.list_all()
    return DonationListResponse(donations=[DonationListItem.build(d) for d in donations])


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


@router.get("/donations/{donor_id}", response_model=DonationResponse)
async def get_donation_by_donor_id(
    donor_id: str,
    service: DonationService = Depends(get_donation_service),
) -> DonationResponse:
    donation = await service.get_by_donor_id(donor_id)
    return DonationResponse(donation=DonationDetail.build(donation))


@router.get("/donation/{donation_id}", response_model=DonationResponse)
async def get_donation(
    donation_id: str,
    service: DonationService = Depends(get_donation_service),
) -> DonationResponse:
    donation = await service.get(donation_id)
    return DonationResponse(donation=DonationDetail.build(donation))


@router.get("/donation", response_model=DonationResponse)
async def get_donation_details(
    id: str = Query(..., min_length=1),
    service: DonationService = Depends(get_donation_service),
) -> DonationResponse:
    donation = await service.get(id)
    return DonationResponse(
        message="Donation details fetched successfully.",
        donation=DonationDetail.build(donation),
    )


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


@router.put("/update-status/{donation_id}", response_model=DonationResponse)
async def update_donation_status(
    donation_id: str,
    body: StatusUpdateRequest | None = Body(None),
    service: DonationService = Depends(get_donation_service),
) -> DonationResponse:
    requested = body.status if body is not None else "paid"
    donation = await service.update_status(donation_id, requested)
    return DonationResponse(
        message=f"Donation status updated to {donation.status}",
        donation=DonationDetail.build(donation),
    )


@router.put("/update-donation/{donation_id}", response_model=DonationResponse)
async def update_donation(
    donation_id: str,
    body: DonationUpdateRequest,
    service: DonationService = Depends(get_donation_service),
) -> DonationResponse:
    donation = await service.update_fields(donation_id, body.model_dump(exclude_unset=True))
    return DonationResponse(donation=DonationDetail.build(donation))


@router.delete("/delete-donation/{donation_id}", response_model=MessageResponse)
async def delete_donation(
    donation_id: str,
    service: DonationService = Depends(get_donation_service),
) -> MessageResponse:
    await service.delete(donation_id)
    return MessageResponse(message="Donation deleted successfully.")


# ---------------------------------------------------------------------------
# Receipts and payment processor
# ---------------------------------------------------------------------------


@router.post(
    "/download-invoice/{donation_id}",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_invoice(
    donation_id: str,
    service: DonationService = Depends(get_donation_service),
) -> Response:
    """Render the receipt fully in memory so a failure returns a JSON error
    instead of a truncated PDF."""
    pdf, filename = await service.render_invoice(donation_id)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/create-checkout/{donation_id}", response_model=CheckoutResponse)
async def create_checkout(
    donation_id: str,
    service: DonationService = Depends(get_donation_service),
) -> CheckoutResponse:
    donation = await service.create_checkout(donation_id)
    return CheckoutResponse(
        donation_id=donation.id,
        payment_link=donation.payment_link,
        payment_intent_id=donation.payment_intent_id,
    )


@router.get("/payment-success", response_model=PaymentSuccessResponse)
async def payment_success(
    session_id: str | None = Query(None),
    service: DonationService = Depends(get_donation_service),
) -> PaymentSuccessResponse:
    receipt_path = await service.verify_external_payment(session_id)
    return PaymentSuccessResponse(receipt_path=str(receipt_path))


@router.get("/receipts/{donor_id}", response_class=FileResponse)
async def download_receipt(
    donor_id: str,
    service: DonationService = Depends(get_donation_service),
) -> FileResponse:
    path = service.receipt_file(donor_id)
    return FileResponse(path, media_type="application/pdf", filename=path.name)
