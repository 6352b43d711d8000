"""CORS configuration for the donation frontend."""

from donation_api.core.config import settings


def get_cors_config() -> dict:
    """Return CORS middleware kwargs for FastAPI.

    Development allows any origin, matching the public donation form being
    served from arbitrary local hosts.
    """
    origins = settings.allowed_origins_list
    if settings.ENVIRONMENT == "development":
        origins = ["*"]
    return {
        "allow_origins": origins,
        "allow_credentials": False,
        "allow_methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        "allow_headers": ["Content-Type", "X-Request-Id"],
        "expose_headers": ["Content-Disposition", "X-Request-Id"],
    }
