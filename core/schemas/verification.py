"""
Schemas - Verification Results
File: verification.py

Purpose: Standard result format for verification steps.
Proof self-checks are reported as data through these models: a proof
that fails to recompute the root is a failed check, never a crash.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# Severity levels for checks
CheckSeverity = Literal["info", "warn", "error"]


class CheckResult(BaseModel):
    """
    Result of a single verification check.

    Checks are atomic verification steps that can pass or fail.
    """

    model_config = ConfigDict(extra="forbid")

    check_id: str = Field(
        ...,
        description="Unique identifier for this check",
        min_length=1,
    )
    ok: bool = Field(
        ...,
        description="Whether the check passed",
    )
    severity: CheckSeverity = Field(
        ...,
        description="Severity level of this check",
    )
    message: str = Field(
        ...,
        description="Human-readable message describing the result",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional details about the check",
    )

    @classmethod
    def passed(
        cls,
        check_id: str,
        message: str = "Check passed",
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        """Create a passed check result."""
        return cls(
            check_id=check_id,
            ok=True,
            severity="info",
            message=message,
            details=details or {},
        )

    @classmethod
    def failed(
        cls,
        check_id: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        """Create a failed check result."""
        return cls(
            check_id=check_id,
            ok=False,
            severity="error",
            message=message,
            details=details or {},
        )


class VerificationResult(BaseModel):
    """
    Complete result of a verification process.

    This is the standard format for communicating verification outcomes
    between modules without using exceptions.
    """

    model_config = ConfigDict(extra="forbid")

    ok: bool = Field(
        ...,
        description="Overall verification success",
    )
    checks: list[CheckResult] = Field(
        default_factory=list,
        description="Individual check results",
    )

    @property
    def passed_count(self) -> int:
        """Count of passed checks."""
        return sum(1 for check in self.checks if check.ok)

    def get_failed_checks(self) -> list[CheckResult]:
        """Get all failed checks."""
        return [check for check in self.checks if not check.ok]

    @classmethod
    def from_checks(cls, checks: list[CheckResult]) -> "VerificationResult":
        """Create a result whose status follows its checks."""
        return cls(ok=all(check.ok for check in checks), checks=checks)
