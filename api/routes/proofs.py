"""
Proof Routes

Tree root and per-address claim inputs from the loaded results.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from api.deps import get_results
from api.errors import InvalidRequestError, NothingToClaimError
from api.models.responses import ClaimResponse, RootResponse
from orchestrator.artifacts.io import find_circuit_inputs


logger = logging.getLogger(__name__)

router = APIRouter(tags=["proofs"])

TOKEN_DECIMALS = 18


def format_token_amount(amount: int, decimals: int = TOKEN_DECIMALS) -> str:
    """
    Render a base-unit amount in whole tokens without rounding.

    Example:
        >>> format_token_amount(1500000000000000000)
        '1.5'
    """
    whole, fraction = divmod(amount, 10 ** decimals)
    if fraction == 0:
        return str(whole)
    return f"{whole}.{fraction:0{decimals}d}".rstrip("0")


@router.get("/root", response_model=RootResponse)
def get_root() -> RootResponse:
    """Current root and tree metadata."""
    results, _ = get_results()
    return RootResponse(
        root=results.root,
        tree_levels=results.tree_levels,
        tree_shape=results.tree_shape,
        hash_function=results.hash_function,
        hash_scheme=results.hash_scheme,
        total_amount=results.total_amount,
        leaf_count=len(results.leaves),
    )


@router.get("/proofs/{address}", response_model=ClaimResponse, response_model_by_alias=True)
def get_claim_inputs(address: str) -> ClaimResponse:
    """
    Circuit inputs for one address.

    404 when the address is not in the tree or its amount is zero.
    """
    text = address.strip()
    if not text or not all(c in "0123456789abcdefABCDEFxX" for c in text):
        raise InvalidRequestError("Address must be hexadecimal", details={"address": address})

    _, inputs = get_results()
    found = find_circuit_inputs(inputs, text)
    if found is None or int(found.amount) == 0:
        logger.info("Nothing to claim for %s", text)
        raise NothingToClaimError(text)

    return ClaimResponse(
        **found.model_dump(),
        amount_in_tokens=format_token_amount(int(found.amount)),
    )
