"""
Schemas - Tree Results
File: results.py

Purpose: Output documents consumed by the circuit and the claim service.

Serialization Rules:
1. All field elements are decimal strings
2. JSON keys are camelCase; Python attributes are snake_case
3. pathElements are ordered from the leaf level upward
4. pathIndices is the leaf position as a decimal string; its bits,
   least-significant first, are the proof's path bits
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


_DECIMAL_DIGITS = frozenset("0123456789")


def _check_decimal(value: str) -> str:
    if not value or not set(value) <= _DECIMAL_DIGITS:
        raise ValueError(f"expected a decimal string, got {value!r}")
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class LeafResult(_CamelModel):
    """One dataset entry as committed to the tree."""

    key: str = Field(..., description="Identity as given in the dataset (hex address)")
    key_uint: str = Field(..., description="Identity as a field element")
    value: str = Field(..., description="Claimable amount")
    leaf: str = Field(..., description="Leaf hash")
    nullifier: str = Field(..., description="Private one-time tag")
    nullifier_hash: str = Field(..., description="Public commitment to the nullifier")
    path_elements: list[str] = Field(..., description="Siblings, leaf level first")
    path_indices: str = Field(..., description="Leaf position")
    index: Optional[int] = Field(default=None, ge=0, description="Dense leaf index")
    is_valid: bool = Field(..., description="Whether the proof recomputes the root")

    @field_validator("key_uint", "value", "leaf", "nullifier", "nullifier_hash", "path_indices")
    @classmethod
    def _decimal(cls, v: str) -> str:
        return _check_decimal(v)

    @field_validator("path_elements")
    @classmethod
    def _decimal_list(cls, v: list[str]) -> list[str]:
        return [_check_decimal(e) for e in v]


class CircuitInputs(_CamelModel):
    """Witness inputs for one claimant's inclusion circuit."""

    merkle_root: str
    nullifier_hash: str
    user_address: str
    amount: str
    nullifier: str
    path_elements: list[str]
    path_indices: str

    @field_validator("merkle_root", "nullifier_hash", "user_address", "amount", "nullifier", "path_indices")
    @classmethod
    def _decimal(cls, v: str) -> str:
        return _check_decimal(v)

    @field_validator("path_elements")
    @classmethod
    def _decimal_list(cls, v: list[str]) -> list[str]:
        return [_check_decimal(e) for e in v]

    @property
    def path_bits(self) -> list[int]:
        position = int(self.path_indices)
        return [(position >> level) & 1 for level in range(len(self.path_elements))]


class TreeResults(_CamelModel):
    """Full build output: root, metadata and every leaf with its proof."""

    root: str
    tree_levels: int = Field(..., ge=1)
    tree_shape: str = Field(default="dense")
    hash_function: str = Field(default="poseidon")
    hash_scheme: str = Field(default="smt")
    zero_element: Optional[str] = Field(default=None, description="Dense padding leaf")
    bit_order: Optional[str] = Field(default=None, description="Sparse key bit order")
    total_amount: str
    leaves: list[LeafResult] = Field(default_factory=list)

    @field_validator("root", "total_amount")
    @classmethod
    def _decimal(cls, v: str) -> str:
        return _check_decimal(v)

    @property
    def invalid_count(self) -> int:
        return sum(1 for leaf in self.leaves if not leaf.is_valid)

    def find_leaf(self, key_uint: str) -> Optional[LeafResult]:
        for leaf in self.leaves:
            if leaf.key_uint == key_uint:
                return leaf
        return None
