"""
Verify Route

Standalone verification of a submitted inclusion proof.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from api.deps import get_field_hash, get_results
from api.errors import InvalidRequestError
from api.models.requests import VerifyProofRequest
from api.models.responses import VerifyProofResponse
from core.field.element import DEFAULT_FIELD, address_to_key
from core.merkle.merkle_proofs import compute_root, path_bits_from_index
from core.schemas.errors import InvalidFieldElementException


logger = logging.getLogger(__name__)

router = APIRouter(tags=["verification"])


def _parse_key(raw: str) -> int:
    text = raw.strip()
    if text.isdigit():
        return DEFAULT_FIELD.element(text)
    return address_to_key(text)


@router.post("/verify", response_model=VerifyProofResponse)
def verify_proof_endpoint(request: VerifyProofRequest) -> VerifyProofResponse:
    """
    Recompute the root from a leaf and its path.

    A proof that does not match is reported with ok=false, not as an error.
    """
    field_hash = get_field_hash()

    if request.root is not None:
        expected_root = request.root
    else:
        results, _ = get_results()
        expected_root = results.root

    try:
        expected = DEFAULT_FIELD.element(expected_root)
        siblings = DEFAULT_FIELD.elements(request.path_elements)
        if isinstance(request.path_indices, list):
            path_bits = list(request.path_indices)
        else:
            path_bits = path_bits_from_index(int(request.path_indices), len(siblings))
        if request.leaf is not None:
            leaf = DEFAULT_FIELD.element(request.leaf)
        else:
            leaf = field_hash.leaf_hash(_parse_key(request.key), DEFAULT_FIELD.element(request.value))
    except (ValueError, InvalidFieldElementException) as e:
        raise InvalidRequestError(f"Malformed proof: {e}") from e

    try:
        computed = compute_root(field_hash, leaf, siblings, path_bits)
    except ValueError as e:
        return VerifyProofResponse(ok=False, expected_root=str(expected), errors=[str(e)])

    ok = computed == expected
    if not ok:
        logger.info("Submitted proof does not match root %s", expected)
    return VerifyProofResponse(ok=ok, expected_root=str(expected), computed_root=str(computed))
