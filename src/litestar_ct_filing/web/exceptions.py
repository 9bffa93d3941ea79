"""Exception handling for CT filing web endpoints.

Domain errors raised by the stores are translated into JSON error responses:
validation failures become 400, unknown entities 404, and conflicts 409.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from litestar import Response
from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from litestar_ct_filing.exceptions import ConflictError, CtFilingError, NotFoundError, ValidationError

if TYPE_CHECKING:  # pragma: no cover
    from litestar import Request

__all__ = ["ct_filing_error_handler", "error_status"]

_ERROR_STATUSES: tuple[tuple[type[CtFilingError], str, int], ...] = (
    (ValidationError, "validation_error", HTTP_400_BAD_REQUEST),
    (NotFoundError, "not_found", HTTP_404_NOT_FOUND),
    (ConflictError, "conflict", HTTP_409_CONFLICT),
)


def error_status(exc: CtFilingError) -> tuple[str, int]:
    """Map a domain error to an error code and HTTP status.

    Args:
        exc: The domain error.

    Returns:
        Tuple of (error code, HTTP status code).
    """
    for error_type, code, status_code in _ERROR_STATUSES:
        if isinstance(exc, error_type):
            return code, status_code
    return "ct_filing_error", HTTP_500_INTERNAL_SERVER_ERROR


def ct_filing_error_handler(
    _request: Request,
    exc: CtFilingError,
) -> Response:
    """Exception handler for CtFilingError and its subclasses.

    Args:
        request: The Litestar request object.
        exc: The domain error.

    Returns:
        Response with the error code and message.
    """
    code, status_code = error_status(exc)
    return Response(
        content={
            "error": code,
            "message": str(exc),
        },
        status_code=status_code,
        media_type="application/json",
    )
