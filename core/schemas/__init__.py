"""
Schemas
File: __init__.py

Purpose: Export the public API for the schemas module.
Error taxonomy, verification results and the output documents.
"""

# Error models and exceptions
from .errors import (
    AirdropError,
    AirdropException,
    ConfigurationException,
    DatasetRowError,
    DatasetRowException,
    ElementNotFoundException,
    ErrorCodes,
    HashNotReadyException,
    IndexOutOfRangeException,
    InvalidFieldElementException,
    KeyCollisionException,
    ProofVerificationException,
    TreeFullException,
)

# Verification results
from .verification import (
    CheckResult,
    CheckSeverity,
    VerificationResult,
)

# Output documents
from .results import (
    CircuitInputs,
    LeafResult,
    TreeResults,
)

__all__ = [
    # Errors
    "AirdropError",
    "AirdropException",
    "ConfigurationException",
    "DatasetRowError",
    "DatasetRowException",
    "ElementNotFoundException",
    "ErrorCodes",
    "HashNotReadyException",
    "IndexOutOfRangeException",
    "InvalidFieldElementException",
    "KeyCollisionException",
    "ProofVerificationException",
    "TreeFullException",
    # Verification
    "CheckResult",
    "CheckSeverity",
    "VerificationResult",
    # Results
    "CircuitInputs",
    "LeafResult",
    "TreeResults",
]
