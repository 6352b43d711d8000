"""Sequential donor identifiers (``DON-00001``) used as receipt numbers.

On PostgreSQL a transaction-scoped advisory lock serialises concurrent
callers; on other dialects the unique constraint on ``donor_id`` is the
only guard and a collision surfaces as an IntegrityError at flush.
"""

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from donation_api.models.donation import Donation

DONOR_PREFIX = "DON"


def _parse_sequence(donor_id: str, prefix: str) -> int:
    try:
        return int(donor_id.removeprefix(f"{prefix}-"))
    except ValueError:
        return 0


async def get_next_donor_id(db: AsyncSession, prefix: str = DONOR_PREFIX) -> str:
    """Return the next donor id, e.g. 'DON-00042'."""
    if db.get_bind().dialect.name == "postgresql":
        await db.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
            {"key": f"donor-id:{prefix}"},
        )

    # Length first, so DON-100000 outranks DON-99999.
    result = await db.execute(
        select(Donation.donor_id)
        .where(Donation.donor_id.like(f"{prefix}-%"))
        .order_by(func.length(Donation.donor_id).desc(), Donation.donor_id.desc())
        .limit(1)
    )
    current = result.scalar_one_or_none()
    next_seq = (_parse_sequence(current, prefix) if current else 0) + 1
    return f"{prefix}-{next_seq:05d}"
