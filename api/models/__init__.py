"""API request and response models."""

from api.models.requests import VerifyProofRequest
from api.models.responses import (
    HealthResponse,
    RootResponse,
    ClaimResponse,
    VerifyProofResponse,
    ErrorDetail,
    ErrorResponse,
)

__all__ = [
    "VerifyProofRequest",
    "HealthResponse",
    "RootResponse",
    "ClaimResponse",
    "VerifyProofResponse",
    "ErrorDetail",
    "ErrorResponse",
]
