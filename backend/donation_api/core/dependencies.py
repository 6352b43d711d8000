"""FastAPI dependency chain: settings -> collaborators -> DonationService."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from donation_api.core.config import Settings, settings
from donation_api.db.session import async_session_factory
from donation_api.services.donations import DonationService
from donation_api.services.payments import PaymentGateway, StripeGateway
from donation_api.services.qr import QrRenderer
from donation_api.services.receipts import OrganizationHeader, ReceiptRenderer
from donation_api.services.validation import DonationProfile


def get_settings() -> Settings:
    return settings


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session. Commits on success, rolls back on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_profile(config: Settings = Depends(get_settings)) -> DonationProfile:
    return DonationProfile.from_settings(config)


@lru_cache
def _qr_renderer(timeout: float) -> QrRenderer:
    return QrRenderer(timeout=timeout)


def get_qr_renderer(config: Settings = Depends(get_settings)) -> QrRenderer:
    return _qr_renderer(config.QR_TIMEOUT)


def get_payment_gateway(config: Settings = Depends(get_settings)) -> PaymentGateway:
    return StripeGateway(
        config.STRIPE_SECRET_KEY,
        success_url=config.CHECKOUT_SUCCESS_URL,
        cancel_url=config.CHECKOUT_CANCEL_URL,
        payment_method_types=config.payment_method_types_list,
        timeout=config.PROCESSOR_TIMEOUT,
        max_retries=config.PROCESSOR_MAX_RETRIES,
    )


def get_receipt_renderer(config: Settings = Depends(get_settings)) -> ReceiptRenderer:
    return ReceiptRenderer(
        OrganizationHeader(
            name=config.ORGANIZATION_NAME,
            address=config.ORGANIZATION_ADDRESS,
            registration_number=config.REGISTRATION_NUMBER,
            letterhead_path=config.LETTERHEAD_PATH,
        ),
        config.RECEIPTS_DIR,
        currency_symbol=config.CURRENCY_SYMBOL,
        font_path=config.RECEIPT_FONT_PATH,
    )


def get_donation_service(
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings),
    profile: DonationProfile = Depends(get_profile),
    qr_renderer: QrRenderer = Depends(get_qr_renderer),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    receipts: ReceiptRenderer = Depends(get_receipt_renderer),
) -> DonationService:
    return DonationService(
        db,
        profile=profile,
        qr_renderer=qr_renderer,
        gateway=gateway,
        receipts=receipts,
        upi_receiver_id=config.UPI_RECEIVER_ID,
        currency=config.CURRENCY,
    )
