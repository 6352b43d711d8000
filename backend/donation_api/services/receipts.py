"""Donation receipts: a fixed page description drawn to PDF with reportlab.

``ReceiptRenderer.build`` turns receipt data into a ``ReceiptDocument``:
an ordered list of positioned text items and horizontal rules. Positions
use a top-left origin on a US Letter page and are flipped when drawn.
Missing optional values are rendered as placeholders, never left blank.
"""

import logging
import os
import re
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO
from pathlib import Path
from typing import BinaryIO

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from donation_api.core.exceptions import RenderError
from donation_api.models.donation import Donation
from donation_api.services.number_words import amount_to_words
from donation_api.services.upi_links import format_amount

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = LETTER
RULE_COLOR = "#1E90FF"
DEFAULT_FONT = "Helvetica"
CUSTOM_FONT = "ReceiptFont"

NOT_AVAILABLE = "N/A"
NO_MESSAGE = "No message"
NO_ADDRESS = "No address provided"
CLOSING_LINE = "Thank you for your generous contribution!"


@dataclass(frozen=True)
class TextItem:
    text: str
    x: float
    y: float
    size: float = 12
    align: str = "left"  # left | center


@dataclass(frozen=True)
class Rule:
    y: float
    x0: float = 32
    x1: float = 580
    color: str = RULE_COLOR
    width: float = 1


@dataclass
class ReceiptDocument:
    receipt_number: str
    elements: list[TextItem | Rule] = field(default_factory=list)

    def text_lines(self) -> list[str]:
        return [e.text for e in self.elements if isinstance(e, TextItem)]

    def text(self) -> str:
        return "\n".join(self.text_lines())


@dataclass(frozen=True)
class OrganizationHeader:
    name: str
    address: str
    registration_number: str
    title: str = "Seva Receipt"
    letterhead_path: str | None = None


@dataclass(frozen=True)
class ReceiptData:
    receipt_number: str
    donor_name: str
    amount: Decimal
    donation_date: datetime | date
    amount_in_words: str | None = None
    payment_method: str | None = None
    spouse_name: str | None = None
    donation_type: str | None = None
    message: str | None = None
    address: str | None = None

    @classmethod
    def from_donation(cls, donation: Donation) -> "ReceiptData":
        return cls(
            receipt_number=donation.donor_id,
            donor_name=donation.donor_name,
            amount=donation.amount,
            donation_date=donation.donation_date,
            amount_in_words=donation.amount_in_words,
            payment_method=donation.payment_method,
            spouse_name=donation.spouse_name,
            donation_type=donation.donation_type,
            message=donation.message,
            address=donation.address,
        )


def receipt_filename(receipt_number: str) -> str:
    safe = re.sub(r"[^A-Za-z0-9_-]", "_", receipt_number or "unknown")
    return f"donation_receipt_{safe}.pdf"


def _format_date(value: datetime | date) -> str:
    return value.strftime("%d/%m/%Y")


@contextmanager
def _atomic_output(path: Path) -> Iterator[BinaryIO]:
    """Yield a stream that replaces ``path`` only if the block completes.

    The temporary file is closed on every exit path and removed on failure,
    so a failed render never leaves a truncated receipt behind.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as stream:
            yield stream
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class ReceiptRenderer:
    def __init__(
        self,
        organization: OrganizationHeader,
        output_dir: str | Path,
        *,
        currency_symbol: str = "Rs.",
        font_path: str | None = None,
    ):
        self.organization = organization
        self.output_dir = Path(output_dir)
        self.currency_symbol = currency_symbol
        self.font_path = font_path

    def _money(self, amount: Decimal) -> str:
        return f"{self.currency_symbol} {format_amount(amount)}"

    def build(self, data: ReceiptData, generated_on: date | None = None) -> ReceiptDocument:
        org = self.organization
        generated_on = generated_on or date.today()
        donation_date = _format_date(data.donation_date)
        words = data.amount_in_words or amount_to_words(data.amount)
        spouse = f"Smt. {data.spouse_name}" if data.spouse_name else NOT_AVAILABLE
        amount = self._money(data.amount)

        doc = ReceiptDocument(receipt_number=data.receipt_number)
        add = doc.elements.append

        # Header block
        add(TextItem(org.name, 150, 100, size=16))
        add(TextItem(org.address, 200, 120, size=14))
        add(TextItem(org.title, 250, 160, size=12))
        add(TextItem(f"Date: {_format_date(generated_on)}", 430, 50, size=10))
        add(TextItem(f"Reg. No. {org.registration_number}", 430, 70, size=10))
        add(TextItem(f"Receipt Number: {data.receipt_number}", 430, 90, size=10))
        add(Rule(180))

        # Donor details
        add(TextItem(f"Donor: Shri. {data.donor_name}", 50, 200))
        add(TextItem(f"Donation Date: {donation_date}", 50, 220))
        add(TextItem(f"Message: {data.message or NO_MESSAGE}", 50, 240))
        add(TextItem(f"Address: {data.address or NO_ADDRESS}", 50, 260))
        add(Rule(280))

        # Itemization
        add(TextItem("S.No", 50, 290))
        add(TextItem("Donation Type", 120, 290))
        add(TextItem("Spouse", 280, 290))
        add(TextItem("Amount", 450, 290))
        add(Rule(308, x0=50, x1=560, width=0.5))
        add(TextItem("1", 50, 320))
        add(TextItem(data.donation_type or "Donation", 120, 320))
        add(TextItem(spouse, 280, 320))
        add(TextItem(amount, 450, 320))
        add(Rule(340))

        add(TextItem(f"Amount in Words: {words} Only", 50, 350))
        add(TextItem("Total", 380, 380))
        add(TextItem(amount, 450, 380))

        add(TextItem("Payment Method:", 50, 420))
        add(TextItem(data.payment_method or NOT_AVAILABLE, 160, 420))
        add(TextItem("Date:", 380, 420))
        add(TextItem(donation_date, 450, 420))
        add(Rule(440))

        add(TextItem(CLOSING_LINE, PAGE_WIDTH / 2, 470, size=10, align="center"))
        return doc

    def _font_name(self) -> str:
        if not self.font_path:
            return DEFAULT_FONT
        if CUSTOM_FONT not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont(CUSTOM_FONT, self.font_path))
        return CUSTOM_FONT

    def draw_pdf(self, document: ReceiptDocument, stream: BinaryIO) -> None:
        font = self._font_name()
        pdf = canvas.Canvas(stream, pagesize=LETTER)
        pdf.setTitle(f"Donation receipt {document.receipt_number}")

        letterhead = self.organization.letterhead_path
        if letterhead and Path(letterhead).is_file():
            pdf.drawImage(
                ImageReader(letterhead),
                32,
                PAGE_HEIGHT - 95,
                width=PAGE_WIDTH - 64,
                height=60,
                preserveAspectRatio=True,
                mask="auto",
            )

        pdf.rect(30, 30, 550, PAGE_HEIGHT - 60)
        for element in document.elements:
            if isinstance(element, Rule):
                pdf.setStrokeColor(HexColor(element.color))
                pdf.setLineWidth(element.width)
                y = PAGE_HEIGHT - element.y
                pdf.line(element.x0, y, element.x1, y)
                continue
            pdf.setFont(font, element.size)
            y = PAGE_HEIGHT - element.y - element.size
            if element.align == "center":
                pdf.drawCentredString(element.x, y, element.text)
            else:
                pdf.drawString(element.x, y, element.text)

        pdf.showPage()
        pdf.save()

    def render_bytes(self, data: ReceiptData) -> bytes:
        """Render a complete PDF in memory."""
        buffer = BytesIO()
        try:
            self.draw_pdf(self.build(data), buffer)
        except Exception as exc:
            logger.exception("Receipt rendering failed for %s", data.receipt_number)
            raise RenderError("Error generating receipt PDF.") from exc
        return buffer.getvalue()

    def write_receipt(self, data: ReceiptData) -> Path:
        """Render into the output directory as ``donation_receipt_<donorID>.pdf``."""
        path = self.output_dir / receipt_filename(data.receipt_number)
        try:
            with _atomic_output(path) as stream:
                self.draw_pdf(self.build(data), stream)
        except Exception as exc:
            logger.exception("Receipt write failed for %s", path)
            raise RenderError("Error generating receipt PDF.") from exc
        logger.info("Receipt written to %s", path)
        return path

    def receipt_path(self, receipt_number: str) -> Path:
        return self.output_dir / receipt_filename(receipt_number)
