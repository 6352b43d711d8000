"""Donation request/response schemas.

JSON keys are camelCase to match the donation frontend (``donorName``,
``customAmount``); a few keys keep their historical spelling
(``qr_code``, ``genericUPILink``, ``donorID``).
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from donation_api.models.donation import Donation
from donation_api.services.upi_links import PaymentLinks, format_amount

_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DonationCreateRequest(BaseModel):
    """Raw submission. Business validation happens in the service layer so
    that errors name the offending field with a 400."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    amount: str | int | float | None = None
    custom_amount: str | int | float | None = None
    donor_name: str | None = None
    email: str | None = None
    phone_number: str | int | None = None
    address: str | None = None
    purpose: str | None = None
    message: str | None = None
    is_anonymous: bool = False
    spouse_name: str | None = None
    donation_type: str | None = None
    relation: str | None = None


class DonationUpdateRequest(BaseModel):
    """Fields a caller may change after creation; anything else is rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    donor_name: str | None = None
    email: str | None = None
    phone_number: str | int | None = None
    address: str | None = None
    purpose: str | None = None
    message: str | None = None
    is_anonymous: bool | None = None
    payment_method: str | None = None
    donation_type: str | None = None
    relation: str | None = None
    spouse_name: str | None = None


class StatusUpdateRequest(BaseModel):
    status: str = Field("paid", min_length=1, max_length=50)


class DonationCreateResponse(BaseModel):
    model_config = _camel

    success: bool = True
    donor_name: str
    qr_code: str = Field(alias="qr_code")
    generic_upi_link: str = Field(alias="genericUPILink")
    google_pay_link: str = Field(alias="googlePayLink")
    phone_pe_link: str = Field(alias="phonePeLink")
    donation_id: uuid.UUID
    donor_id: str = Field(alias="donorID")
    amount: str
    status: str

    @classmethod
    def build(cls, donation: Donation, links: PaymentLinks) -> "DonationCreateResponse":
        return cls(
            donor_name=donation.donor_name,
            qr_code=donation.qr_code_url,
            generic_upi_link=links.generic,
            google_pay_link=links.google_pay,
            phone_pe_link=links.phonepe,
            donation_id=donation.id,
            donor_id=donation.donor_id,
            amount=format_amount(donation.amount),
            status=donation.status,
        )


class DonationListItem(BaseModel):
    """Projection used by the list endpoint; absent values are null, never omitted."""

    model_config = _camel

    donation_id: uuid.UUID
    amount: str | None
    status: str | None
    donor_name: str | None
    donation_date: datetime | None
    payment_method: str | None

    @classmethod
    def build(cls, donation: Donation) -> "DonationListItem":
        return cls(
            donation_id=donation.id,
            amount=format_amount(donation.amount) if donation.amount is not None else None,
            status=donation.status or None,
            donor_name=donation.donor_name or None,
            donation_date=donation.donation_date,
            payment_method=donation.payment_method or None,
        )


class DonationListResponse(BaseModel):
    success: bool = True
    donations: list[DonationListItem]


class DonationDetail(BaseModel):
    model_config = _camel

    id: uuid.UUID
    donor_id: str = Field(alias="donorID")
    donor_name: str
    email: str | None
    phone_number: str | None
    address: str | None
    purpose: str | None
    amount: str
    amount_option: str
    custom_amount: str | None
    currency: str
    amount_in_words: str
    message: str
    donation_date: datetime
    is_anonymous: bool
    status: str
    payment_method: str | None
    upi_link: str
    qr_code: str
    payment_link: str | None
    payment_intent_id: str | None
    spouse_name: str | None
    donation_type: str | None
    relation: str | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def build(cls, donation: Donation) -> "DonationDetail":
        return cls(
            id=donation.id,
            donor_id=donation.donor_id,
            donor_name=donation.donor_name,
            email=donation.email,
            phone_number=donation.phone_number,
            address=donation.address,
            purpose=donation.purpose,
            amount=format_amount(donation.amount),
            amount_option=donation.amount_option,
            custom_amount=(
                format_amount(donation.custom_amount)
                if donation.custom_amount is not None
                else None
            ),
            currency=donation.currency,
            amount_in_words=donation.amount_in_words,
            message=donation.message,
            donation_date=donation.donation_date,
            is_anonymous=donation.is_anonymous,
            status=donation.status,
            payment_method=donation.payment_method,
            upi_link=donation.upi_link,
            qr_code=donation.qr_code_url,
            payment_link=donation.payment_link,
            payment_intent_id=donation.payment_intent_id,
            spouse_name=donation.spouse_name,
            donation_type=donation.donation_type,
            relation=donation.relation,
            created_at=donation.created_at,
            updated_at=donation.updated_at,
        )


class DonationResponse(BaseModel):
    success: bool = True
    message: str | None = None
    donation: DonationDetail


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class CheckoutResponse(BaseModel):
    model_config = _camel

    success: bool = True
    donation_id: uuid.UUID
    payment_link: str | None
    payment_intent_id: str | None


class PaymentSuccessResponse(BaseModel):
    model_config = _camel

    success: bool = True
    message: str = "Thank you for your donation! Your payment was successful."
    receipt_path: str
