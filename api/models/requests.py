"""
API Request Models

Pydantic models for API request validation.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class VerifyProofRequest(BaseModel):
    """
    Request body for POST /verify.

    Either leaf, or key and value (hashed into the leaf), must be given.
    pathIndices accepts the leaf position (int or decimal string) or the
    list of path bits, leaf level first.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    leaf: Optional[str] = Field(default=None, description="Leaf hash (decimal)")
    key: Optional[str] = Field(default=None, description="Entry key (decimal or 0x hex)")
    value: Optional[str] = Field(default=None, description="Entry value (decimal)")
    path_elements: list[str] = Field(..., min_length=1, description="Siblings, leaf level first")
    path_indices: Union[int, str, list[int]] = Field(..., description="Leaf position or path bits")
    root: Optional[str] = Field(
        default=None,
        description="Expected root; the loaded results root when omitted",
    )

    @model_validator(mode="after")
    def _leaf_or_entry(self) -> "VerifyProofRequest":
        if self.leaf is None and (self.key is None or self.value is None):
            raise ValueError("provide either leaf, or both key and value")
        return self
