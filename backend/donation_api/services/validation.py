"""Submission and update validation, parameterized by a deployment profile.

Field names in errors are the external (camelCase) names callers send.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic.alias_generators import to_camel

from donation_api.core.config import Settings
from donation_api.core.exceptions import ValidationError

OTHER_AMOUNT = "other"
# numeric(12, 2) column limit
AMOUNT_LIMIT = Decimal("10000000000")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")


@dataclass(frozen=True)
class DonationProfile:
    """Which amounts, purposes and optional fields a deployment accepts."""

    allowed_amounts: tuple[str, ...]
    allowed_purposes: tuple[str, ...]
    custom_amount_min: Decimal = Decimal("0.50")
    custom_amount_max: Decimal | None = None
    require_phone: bool = False
    require_purpose: bool = False
    require_address: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "DonationProfile":
        return cls(
            allowed_amounts=tuple(settings.allowed_amounts_list),
            allowed_purposes=tuple(settings.allowed_purposes_list),
            custom_amount_min=settings.CUSTOM_AMOUNT_MIN,
            custom_amount_max=settings.CUSTOM_AMOUNT_MAX,
            require_phone=settings.REQUIRE_PHONE,
            require_purpose=settings.REQUIRE_PURPOSE,
            require_address=settings.REQUIRE_ADDRESS,
        )


@dataclass
class CleanSubmission:
    donor_name: str
    amount_option: str
    amount: Decimal
    custom_amount: Decimal | None = None
    email: str | None = None
    phone_number: str | None = None
    address: str | None = None
    purpose: str | None = None
    message: str | None = None
    is_anonymous: bool = False
    spouse_name: str | None = None
    donation_type: str | None = None
    relation: str | None = None


def _clean_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_amount(
    amount: Any,
    custom_amount: Any,
    profile: DonationProfile,
) -> tuple[str, Decimal, Decimal | None]:
    """Resolve ``(amount_option, amount, custom_amount)`` from raw input."""
    option = _clean_str(amount)
    if option is None:
        raise ValidationError("amount", "Donation amount is required")

    if option.lower() != OTHER_AMOUNT:
        if option not in profile.allowed_amounts:
            raise ValidationError("amount", "Invalid donation amount")
        return option, Decimal(option), None

    minimum = profile.custom_amount_min
    try:
        value = Decimal(str(custom_amount).strip())
    except (InvalidOperation, ValueError):
        value = None
    if custom_amount is None or value is None or not value.is_finite():
        raise ValidationError(
            "customAmount",
            f"The custom donation amount must be a valid number and at least {minimum}",
        )
    if value >= AMOUNT_LIMIT:
        raise ValidationError("customAmount", "The custom donation amount is too large")
    # Bounds apply to the stored two-place value (9999999999.999 rounds up);
    # the check above keeps quantize within the decimal context precision.
    value = value.quantize(Decimal("0.01"))
    if value < minimum:
        raise ValidationError(
            "customAmount", f"The custom donation amount must be at least {minimum}"
        )
    if value >= AMOUNT_LIMIT:
        raise ValidationError("customAmount", "The custom donation amount is too large")
    if profile.custom_amount_max is not None and value > profile.custom_amount_max:
        raise ValidationError(
            "customAmount",
            f"The custom donation amount cannot exceed {profile.custom_amount_max}",
        )
    return OTHER_AMOUNT, value, value


def validate_donor_name(value: Any) -> str:
    name = _clean_str(value)
    if name is None:
        raise ValidationError("donorName", "Donor name is required")
    return name


def validate_email(value: Any) -> str | None:
    email = _clean_str(value)
    if email is None:
        return None
    email = email.lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("email", f"{email} is not a valid email!")
    return email


def validate_phone(value: Any, required: bool = False) -> str | None:
    phone = _clean_str(value)
    if phone is None:
        if required:
            raise ValidationError("phoneNumber", "Phone number is required")
        return None
    if not PHONE_PATTERN.match(phone):
        raise ValidationError("phoneNumber", "Phone number must be 10 digits starting with 6-9")
    return phone


def validate_purpose(value: Any, profile: DonationProfile) -> str | None:
    purpose = _clean_str(value)
    if purpose is None:
        if profile.require_purpose:
            raise ValidationError("purpose", "Purpose is required")
        return None
    purpose = purpose.lower()
    if purpose not in profile.allowed_purposes:
        raise ValidationError(
            "purpose", f"Purpose must be one of: {', '.join(profile.allowed_purposes)}"
        )
    return purpose


def validate_address(value: Any, required: bool = False) -> str | None:
    address = _clean_str(value)
    if address is None and required:
        raise ValidationError("address", "Address is required")
    return address


def validate_submission(data: dict[str, Any], profile: DonationProfile) -> CleanSubmission:
    """Validate a raw create payload keyed by snake_case field names."""
    amount_option, amount, custom_amount = parse_amount(
        data.get("amount"), data.get("custom_amount"), profile
    )
    return CleanSubmission(
        donor_name=validate_donor_name(data.get("donor_name")),
        amount_option=amount_option,
        amount=amount,
        custom_amount=custom_amount,
        email=validate_email(data.get("email")),
        phone_number=validate_phone(data.get("phone_number"), profile.require_phone),
        address=validate_address(data.get("address"), profile.require_address),
        purpose=validate_purpose(data.get("purpose"), profile),
        message=_clean_str(data.get("message")),
        is_anonymous=bool(data.get("is_anonymous") or False),
        spouse_name=_clean_str(data.get("spouse_name")),
        donation_type=_clean_str(data.get("donation_type")),
        relation=_clean_str(data.get("relation")),
    )


# Fields a caller may change after creation. Links, QR, amounts, status and
# identifiers are owned by the lifecycle.
MUTABLE_FIELDS = frozenset(
    {
        "donor_name",
        "email",
        "phone_number",
        "address",
        "purpose",
        "message",
        "is_anonymous",
        "payment_method",
        "donation_type",
        "relation",
        "spouse_name",
    }
)


def validate_changes(changes: dict[str, Any], profile: DonationProfile) -> dict[str, Any]:
    """Validate a partial update; returns the cleaned values to assign."""
    cleaned: dict[str, Any] = {}
    for name, value in changes.items():
        if name not in MUTABLE_FIELDS:
            field = to_camel(name)
            raise ValidationError(field, f"Field '{field}' cannot be updated")
        if name == "donor_name":
            cleaned[name] = validate_donor_name(value)
        elif name == "email":
            cleaned[name] = validate_email(value)
        elif name == "phone_number":
            cleaned[name] = validate_phone(value, profile.require_phone)
        elif name == "purpose":
            cleaned[name] = validate_purpose(value, profile)
        elif name == "address":
            cleaned[name] = validate_address(value, profile.require_address)
        elif name == "is_anonymous":
            cleaned[name] = bool(value)
        elif name == "message":
            cleaned[name] = _clean_str(value) or "No message"
        else:
            cleaned[name] = _clean_str(value)
    return cleaned
