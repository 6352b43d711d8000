"""Health check endpoint."""

from fastapi import APIRouter
from sqlalchemy import text

from donation_api.db.session import engine

router = APIRouter()

VERSION = "0.1.0"


@router.get("/health")
async def health_check():
    """Check database connectivity."""
    db_status = "ok"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        db_status = "error"

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "db": db_status,
        "version": VERSION,
    }
