"""
Schemas - Error Taxonomy
File: errors.py

Purpose: Standard error taxonomy across the tree/proof pipeline.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the pipeline."""

    # Field & Hash Errors
    INVALID_FIELD_ELEMENT = "INVALID_FIELD_ELEMENT"
    HASH_NOT_READY = "HASH_NOT_READY"

    # Tree Errors
    TREE_FULL = "TREE_FULL"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"
    ELEMENT_NOT_FOUND = "ELEMENT_NOT_FOUND"
    KEY_COLLISION = "KEY_COLLISION"

    # Merkle & Commitment Errors
    MERKLE_PROOF_INVALID = "MERKLE_PROOF_INVALID"
    ROOT_MISMATCH = "ROOT_MISMATCH"

    # Dataset & Configuration Errors
    DATASET_ROW_INVALID = "DATASET_ROW_INVALID"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class AirdropError(BaseModel):
    """
    Base error model for structured error communication.

    Used for passing errors between modules (and over the API) without
    exceptions, enabling structured error handling and serialization.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.INVALID_FIELD_ELEMENT],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )

    def to_exception(self) -> "AirdropException":
        """Convert this error model to a raised exception."""
        return AirdropException(
            code=self.code,
            message=self.message,
            details=self.details,
        )


class DatasetRowError(AirdropError):
    """Error model for a rejected dataset row."""

    code: str = Field(default=ErrorCodes.DATASET_ROW_INVALID)
    row_index: int | None = Field(
        default=None,
        description="1-based data row number (header excluded)",
    )
    field: str | None = Field(
        default=None,
        description="Column that failed to parse",
    )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class AirdropException(Exception):
    """
    Base exception for all tree, hash and pipeline errors.

    Carries structured error information and can be converted
    to/from AirdropError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "AIRDROP_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_error_model(self) -> AirdropError:
        """Convert this exception to an AirdropError model."""
        return AirdropError(
            code=self.code,
            message=self.message,
            details=self.details,
        )

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class InvalidFieldElementException(AirdropException, ValueError):
    """Raised when a scalar is malformed or outside the field."""

    def __init__(
        self,
        message: str,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if value is not None:
            full_details["value"] = str(value)[:100]
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_FIELD_ELEMENT,
            details=full_details,
        )


class HashNotReadyException(AirdropException, RuntimeError):
    """Raised when a hash backend is used before its setup completed."""

    def __init__(
        self,
        message: str = "Hash backend is not initialized",
        backend: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.HASH_NOT_READY,
            details={"backend": backend} if backend else {},
        )


class TreeFullException(AirdropException):
    """Raised when inserting into a tree that reached its capacity."""

    def __init__(
        self,
        capacity: int,
        requested: int | None = None,
    ) -> None:
        details: dict[str, Any] = {"capacity": capacity}
        if requested is not None:
            details["requested"] = requested
        super().__init__(
            message=f"Tree is full (capacity {capacity})",
            code=ErrorCodes.TREE_FULL,
            details=details,
        )


class IndexOutOfRangeException(AirdropException, IndexError):
    """Raised when a leaf index is outside the valid range."""

    def __init__(
        self,
        index: Any,
        length: int,
        capacity: int | None = None,
    ) -> None:
        details: dict[str, Any] = {"index": index, "length": length}
        if capacity is not None:
            details["capacity"] = capacity
        super().__init__(
            message=f"Index out of bounds: {index}",
            code=ErrorCodes.INDEX_OUT_OF_RANGE,
            details=details,
        )


class ElementNotFoundException(AirdropException, LookupError):
    """Raised when a leaf, key or root is not present in a tree."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.ELEMENT_NOT_FOUND,
            details=details,
        )


class KeyCollisionException(AirdropException):
    """Raised when two distinct keys map to the same sparse-tree slot."""

    def __init__(
        self,
        key: int,
        existing_key: int,
        path: int,
    ) -> None:
        super().__init__(
            message=(
                f"Key {key} collides with key {existing_key} "
                f"at leaf position {path}"
            ),
            code=ErrorCodes.KEY_COLLISION,
            details={
                "key": str(key),
                "existing_key": str(existing_key),
                "path": path,
            },
        )


class ProofVerificationException(AirdropException):
    """Raised when a Merkle proof does not recompute the expected root."""

    def __init__(
        self,
        message: str,
        leaf_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if leaf_index is not None:
            full_details["leaf_index"] = leaf_index
        super().__init__(
            message=message,
            code=ErrorCodes.MERKLE_PROOF_INVALID,
            details=full_details,
        )


class DatasetRowException(AirdropException, ValueError):
    """Raised when a dataset row cannot be turned into a tree entry."""

    def __init__(
        self,
        message: str,
        row_index: int,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        full_details["row_index"] = row_index
        if field:
            full_details["field"] = field
        super().__init__(
            message=f"Row {row_index}: {message}",
            code=ErrorCodes.DATASET_ROW_INVALID,
            details=full_details,
        )
        self.row_index = row_index
        self.field = field

    def to_error_model(self) -> DatasetRowError:
        return DatasetRowError(
            message=self.message,
            details=self.details,
            row_index=self.row_index,
            field=self.field,
        )


class ConfigurationException(AirdropException, ValueError):
    """Raised when runtime configuration is missing or inconsistent."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CONFIGURATION_ERROR,
            details={"setting": setting} if setting else {},
        )
