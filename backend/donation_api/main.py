"""FastAPI application entry point."""

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from donation_api.api.v1.health import VERSION
from donation_api.api.v1.router import api_v1_router
from donation_api.core.config import settings
from donation_api.core.exceptions import (
    DonationServiceError,
    donation_error_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from donation_api.core.middleware.cors import get_cors_config
from donation_api.core.middleware.request_id import RequestIdMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Donation API",
    version=VERSION,
    docs_url="/docs",
    openapi_url="/openapi.json",
)

# Middleware (last added = first executed)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(CORSMiddleware, **get_cors_config())

# Exception handlers ({"success": false, "message": ...} envelopes)
app.add_exception_handler(DonationServiceError, donation_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Routes
app.include_router(api_v1_router, prefix="/api")


@app.get("/", include_in_schema=False)
async def root():
    return {"message": "Hello from Server"}


def run() -> None:
    import uvicorn

    uvicorn.run("donation_api.main:app", host="0.0.0.0", port=settings.PORT)
