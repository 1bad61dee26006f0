"""
Backend client factory for the Supabase project.
Builds the client handle once per process, or an unconfigured marker when the
required settings are missing.
"""
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlparse
import logging

from supabase import Client, create_client

from interior_cms.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Configured:
    """Backend is available; every resource call goes through `client`."""
    client: Client


@dataclass(frozen=True)
class Unconfigured:
    """Backend is unavailable; reads return empty results and writes fail."""
    reason: str


Backend = Union[Configured, Unconfigured]

_backend: Optional[Backend] = None


def _validate_supabase_url(url: str) -> tuple[bool, str]:
    """
    Validate the Supabase project URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    parsed = urlparse(url)

    if parsed.scheme not in ("http", "https"):
        return False, f"Invalid Supabase URL scheme. Expected http:// or https://, got: {parsed.scheme or 'none'}"

    if not parsed.hostname:
        return False, "No hostname found in SUPABASE_URL"

    return True, f"URL format valid. Hostname: {parsed.hostname}"


def create_backend(url: Optional[str], anon_key: Optional[str]) -> Backend:
    """
    Construct the backend handle from the two required settings.

    Args:
        url: Supabase project URL
        anon_key: Supabase anonymous (public) key

    Returns:
        Backend: Configured(client) if both values are non-empty, otherwise Unconfigured
    """
    if not url or not anon_key:
        missing = [name for name, value in (("SUPABASE_URL", url), ("SUPABASE_ANON_KEY", anon_key)) if not value]
        reason = f"{', '.join(missing)} not set"
        logger.warning(f"Supabase not configured ({reason}); reads will return empty results")
        return Unconfigured(reason=reason)

    is_valid, diagnostic = _validate_supabase_url(url)
    if not is_valid:
        logger.error(f"Invalid SUPABASE_URL: {diagnostic}")
        raise ValueError(f"Invalid SUPABASE_URL: {diagnostic}")

    logger.info(f"Supabase URL validation: {diagnostic}")
    return Configured(client=create_client(url, anon_key))


def get_backend() -> Backend:
    """
    Return the process-wide backend handle, building it on first use.
    """
    global _backend
    if _backend is None:
        _backend = create_backend(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
    return _backend


def set_backend(backend: Optional[Backend]) -> None:
    """Replace the process-wide handle. Passing None forces a rebuild on next use."""
    global _backend
    _backend = backend


def is_backend_ready() -> bool:
    return isinstance(get_backend(), Configured)


def init_backend() -> None:
    """
    Build the backend handle during application startup.
    Non-fatal: an invalid URL is logged and the app runs unconfigured.
    """
    try:
        backend = get_backend()
    except ValueError as e:
        logger.error(
            f"Failed to initialize Supabase client: {str(e)}\n"
            f"The application will continue to run, but all write operations will fail."
        )
        set_backend(Unconfigured(reason=str(e)))
        return

    if isinstance(backend, Configured):
        logger.info("Supabase client initialized successfully")
    else:
        logger.info(f"Supabase not configured - {backend.reason}")
