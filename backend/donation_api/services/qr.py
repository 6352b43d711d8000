"""QR rendering for UPI payment links.

``QrRenderer.render`` is a single awaitable call that never raises: it
returns a ``QrCodeResult`` holding either the PNG data URL or the error.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from io import BytesIO

import qrcode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QrCodeResult:
    data_url: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.data_url is not None

    @classmethod
    def success(cls, data_url: str) -> "QrCodeResult":
        return cls(data_url=data_url)

    @classmethod
    def failure(cls, error: str) -> "QrCodeResult":
        return cls(error=error)


def qr_png_bytes(payload: str) -> bytes:
    """Encode ``payload`` as a PNG QR code (error correction M)."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer)
    return buffer.getvalue()


class QrRenderer:
    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout

    async def render(self, payload: str) -> QrCodeResult:
        try:
            png = await asyncio.wait_for(
                asyncio.to_thread(qr_png_bytes, payload), timeout=self.timeout
            )
        except TimeoutError:
            logger.warning("QR rendering timed out after %.1fs", self.timeout)
            return QrCodeResult.failure("QR rendering timed out")
        except Exception as exc:  # noqa: BLE001 - reported through the result value
            logger.exception("QR rendering failed")
            return QrCodeResult.failure(str(exc) or type(exc).__name__)

        encoded = base64.b64encode(png).decode("ascii")
        return QrCodeResult.success(f"data:image/png;base64,{encoded}")
