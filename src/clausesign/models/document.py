"""
Document model: ordered blocks of contract text, each paired with the
signature bindings for the markers it contains.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from clausesign.errors import BindingMismatch
from clausesign.markers import count_signature_markers


class PartyId(str, Enum):
    """The two signing roles of a contract."""

    ORIGINATOR = "PartyA"  # drafts the contract and requests the signature
    COUNTERPARTY = "PartyB"  # receives the contract and signs it

    @property
    def other(self) -> "PartyId":
        return PartyId.COUNTERPARTY if self is PartyId.ORIGINATOR else PartyId.ORIGINATOR


class SignatureBinding(BaseModel):
    """Owning party and captured image for one signature marker."""

    party: PartyId
    ordinal: int = Field(..., ge=0, description="Position among the block's signature markers")
    image_data: str | None = Field(default=None, description="Captured signature as a data URL")
    confirmed: bool = Field(
        default=True,
        description="False when the party was defaulted by a manual edit and needs assignment",
    )

    @property
    def is_bound(self) -> bool:
        return bool(self.image_data)


class Block(BaseModel):
    """A unit of contract text plus one binding per signature marker."""

    text: str
    bindings: list[SignatureBinding] = Field(default_factory=list)

    @model_validator(mode="after")
    def _bindings_match_markers(self) -> "Block":
        expected = count_signature_markers(self.text)
        if len(self.bindings) != expected:
            raise BindingMismatch(expected=expected, actual=len(self.bindings))
        for i, binding in enumerate(self.bindings):
            if binding.ordinal != i:
                raise BindingMismatch(expected=i, actual=binding.ordinal)
        return self

    def binding(self, ordinal: int) -> SignatureBinding | None:
        if 0 <= ordinal < len(self.bindings):
            return self.bindings[ordinal]
        return None


class DocumentModel(BaseModel):
    """Full contract document: blocks plus information still missing."""

    blocks: list[Block] = Field(default_factory=list)
    unknowns: list[str] = Field(default_factory=list)

    @field_validator("unknowns")
    @classmethod
    def _dedupe_unknowns(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for item in value:
            item = item.strip()
            if item and item not in seen:
                seen.append(item)
        return seen

    def block(self, index: int) -> Block | None:
        if 0 <= index < len(self.blocks):
            return self.blocks[index]
        return None

    @property
    def parties(self) -> set[PartyId]:
        """Every party that owns at least one binding."""
        return {b.party for block in self.blocks for b in block.bindings}

    @property
    def binding_count(self) -> int:
        return sum(len(block.bindings) for block in self.blocks)
