"""Aggregate all v1 sub-routers."""

from fastapi import APIRouter

from donation_api.api.v1.donations import router as donations_router
from donation_api.api.v1.health import router as health_router

api_v1_router = APIRouter()

api_v1_router.include_router(health_router, tags=["health"])
api_v1_router.include_router(donations_router, prefix="/donations", tags=["donations"])
