"""
Rate limiting for the login, upload and contact form endpoints.
Limits, storage and the on/off switch come from settings.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from interior_cms.config import settings


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.
    Uses forwarded IP if behind proxy, otherwise remote address.

    Args:
        request: FastAPI request object

    Returns:
        str: Client identifier (IP address)
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in the chain is the original client
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    enabled=settings.RATE_LIMIT_ENABLED,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
)


RATE_LIMITS = {
    "login": settings.LOGIN_RATE_LIMIT,
    "upload": settings.UPLOAD_RATE_LIMIT,
    "contact": settings.CONTACT_RATE_LIMIT,
}
