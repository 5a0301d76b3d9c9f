"""
API Response Models

Pydantic models for API response serialization.
"""

from typing import Optional

from pydantic import BaseModel, Field

from core.schemas.results import CircuitInputs


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "airdrop-tree-api"
    version: str = "v1"
    results_loaded: bool = False


class RootResponse(BaseModel):
    """Response for GET /root endpoint."""

    root: str = Field(..., description="Current tree root (decimal)")
    tree_levels: int = Field(..., description="Tree depth D")
    tree_shape: str = Field(..., description="dense or sparse")
    hash_function: str = Field(..., description="Hash backend name")
    hash_scheme: str = Field(..., description="Domain-separation scheme")
    total_amount: str = Field(..., description="Sum of all claimable amounts")
    leaf_count: int = Field(..., description="Number of committed entries")


class ClaimResponse(CircuitInputs):
    """Response for GET /proofs/{address}: circuit inputs plus a display amount."""

    amount_in_tokens: str = Field(..., description="amount / 10**18")


class VerifyProofResponse(BaseModel):
    """Response for POST /verify endpoint."""

    ok: bool = Field(..., description="Whether the proof recomputes the expected root")
    expected_root: str = Field(..., description="Root the proof was checked against")
    computed_root: Optional[str] = Field(
        default=None,
        description="Root recomputed from the leaf and path (absent if malformed)",
    )
    errors: list[str] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail = Field(..., description="Error details")
