"""UPI deep-link construction.

Links share one query string and differ only by the scheme prefix::

    upi://pay?pa=<receiver>&pn=<donor>&am=<amount>&cu=INR&tn=<note>

Amounts are taken as already validated.
"""

from dataclasses import dataclass
from decimal import Decimal
from urllib.parse import quote

GENERIC_SCHEME = "upi://pay"
PHONEPE_SCHEME = "phonepe://upi/pay"

DEFAULT_NOTE = "Donation"


def format_amount(amount: Decimal) -> str:
    """Render ``100`` for whole amounts and ``0.50`` otherwise."""
    amount = Decimal(amount)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return f"{amount:.2f}"


def _encode(value: str) -> str:
    return quote(value, safe="")


def build_upi_link(
    receiver_id: str,
    donor_name: str,
    amount: Decimal,
    purpose: str | None = None,
    currency: str = "INR",
    scheme: str = GENERIC_SCHEME,
) -> str:
    note = purpose.strip().title() if purpose and purpose.strip() else DEFAULT_NOTE
    query = "&".join(
        [
            f"pa={quote(receiver_id, safe='@')}",
            f"pn={_encode(donor_name)}",
            f"am={format_amount(amount)}",
            f"cu={_encode(currency)}",
            f"tn={_encode(note)}",
        ]
    )
    return f"{scheme}?{query}"


@dataclass(frozen=True)
class PaymentLinks:
    generic: str
    google_pay: str
    phonepe: str


def build_payment_links(
    receiver_id: str,
    donor_name: str,
    amount: Decimal,
    purpose: str | None = None,
    currency: str = "INR",
) -> PaymentLinks:
    """Build the generic, Google Pay and PhonePe links for one donation.

    Google Pay resolves the generic ``upi://`` scheme, so both share a link.
    """
    generic = build_upi_link(receiver_id, donor_name, amount, purpose, currency)
    phonepe = build_upi_link(
        receiver_id, donor_name, amount, purpose, currency, scheme=PHONEPE_SCHEME
    )
    return PaymentLinks(generic=generic, google_pay=generic, phonepe=phonepe)
