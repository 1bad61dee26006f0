"""
Error types raised by the resource API layer.
"""
from typing import Any, Optional

from postgrest.exceptions import APIError

# PostgREST code returned when `.single()` matches zero rows
ROW_NOT_FOUND_CODE = "PGRST116"

NOT_CONFIGURED_MESSAGE = "Supabase가 설정되지 않았습니다."


class ConfigurationError(Exception):
    """Raised when a mutation is attempted while the backend is not configured."""

    def __init__(self, message: str = NOT_CONFIGURED_MESSAGE):
        self.message = message
        super().__init__(self.message)


class BackendError(Exception):
    """
    The remote backend rejected a request.
    Carries the PostgREST error fields when they are available.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint
        super().__init__(self.message)

    @classmethod
    def from_api_error(cls, error: APIError) -> "BackendError":
        return cls(
            message=error.message or str(error),
            code=error.code,
            details=error.details,
            hint=error.hint,
        )

    @property
    def is_not_found(self) -> bool:
        return self.code == ROW_NOT_FOUND_CODE


def is_row_not_found(error: APIError) -> bool:
    """True when the PostgREST error means a single-row lookup matched nothing."""
    return error.code == ROW_NOT_FOUND_CODE
