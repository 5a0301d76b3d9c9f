"""
API Error Handling

Standardized error handling for the API.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models.responses import ErrorResponse, ErrorDetail
from core.schemas.errors import AirdropException, ErrorCodes


logger = logging.getLogger(__name__)


# Status codes for domain errors reaching the HTTP layer
_STATUS_BY_CODE = {
    ErrorCodes.INVALID_FIELD_ELEMENT: 400,
    ErrorCodes.INDEX_OUT_OF_RANGE: 400,
    ErrorCodes.ELEMENT_NOT_FOUND: 404,
    ErrorCodes.MERKLE_PROOF_INVALID: 400,
    ErrorCodes.CONFIGURATION_ERROR: 500,
    ErrorCodes.HASH_NOT_READY: 503,
    "RESULTS_IO_ERROR": 503,
}


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                details=self.details,
            ),
        )


class InvalidRequestError(APIError):
    """Invalid request parameters."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code="INVALID_REQUEST",
            message=message,
            status_code=400,
            details=details,
        )


class NothingToClaimError(APIError):
    """The address has no claimable entry."""

    def __init__(self, address: str):
        super().__init__(
            code="NOTHING_TO_CLAIM",
            message=f"No claimable amount for address {address}",
            status_code=404,
            details={"address": address},
        )


class ResultsUnavailableError(APIError):
    """No results document has been built or it cannot be read."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code="RESULTS_UNAVAILABLE",
            message=message,
            status_code=503,
            details=details,
        )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


async def airdrop_error_handler(request: Request, exc: AirdropException) -> JSONResponse:
    """Map domain exceptions to structured responses."""
    status_code = _STATUS_BY_CODE.get(exc.code, 400)
    model = exc.to_error_model()
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(code=model.code, message=model.message, details=model.details),
        ).model_dump(),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
                details={"type": type(exc).__name__},
            ),
        ).model_dump(),
    )
