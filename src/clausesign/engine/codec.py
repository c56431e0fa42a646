"""
Serialized views of a DocumentModel.

- Plain text: block texts joined by a blank line, markers intact. Used for
  AI prompts and exports; re-scanning it yields the binding positions.
- Wire JSON: the ``{"blocks": [{"text", "signatures"}], "unknowns"}`` shape
  the drafting model reads and writes.
- Storage blob: the wire JSON plus binding confirmation flags, lossless.
"""

import json
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from clausesign.errors import BindingMismatch
from clausesign.markers import signature_markers
from clausesign.models.document import Block, DocumentModel, PartyId, SignatureBinding

BLOCK_SEPARATOR = "\n\n"


class WireSignature(BaseModel):
    party: PartyId
    img_url: str = ""
    index: int = Field(..., ge=0)
    confirmed: bool = True


class WireBlock(BaseModel):
    text: str
    signatures: list[WireSignature] = Field(default_factory=list)


class WireDocument(BaseModel):
    blocks: list[WireBlock] = Field(default_factory=list)
    unknowns: list[str] = Field(default_factory=list)


# =============================================================================
# Plain text
# =============================================================================


def to_plain_text(doc: DocumentModel) -> str:
    return BLOCK_SEPARATOR.join(block.text for block in doc.blocks)


def marker_offsets(doc: DocumentModel) -> list[tuple[int, int, int]]:
    """
    Plain-text offset of every binding's marker.

    Returns:
        ``(block_index, ordinal, offset)`` in document order
    """
    offsets = []
    base = 0
    for block_index, block in enumerate(doc.blocks):
        markers = signature_markers(block.text)
        for binding in block.bindings:
            offsets.append((block_index, binding.ordinal, base + markers[binding.ordinal].start))
        base += len(block.text) + len(BLOCK_SEPARATOR)
    return offsets


# =============================================================================
# Wire JSON
# =============================================================================


def document_to_wire(doc: DocumentModel, include_images: bool = True) -> dict[str, Any]:
    """Wire JSON for ``doc``; ``include_images=False`` blanks every ``img_url``."""
    return {
        "blocks": [
            {
                "text": block.text,
                "signatures": [
                    {
                        "party": b.party.value,
                        "img_url": (b.image_data or "") if include_images else "",
                        "index": b.ordinal,
                    }
                    for b in block.bindings
                ],
            }
            for block in doc.blocks
        ],
        "unknowns": list(doc.unknowns),
    }


def _block_from_wire(wire: WireBlock, block_index: int, keep_images: bool) -> Block:
    signatures = sorted(wire.signatures, key=lambda s: s.index)
    expected = len(signature_markers(wire.text))
    if len(signatures) != expected:
        raise BindingMismatch(expected=expected, actual=len(signatures), block_index=block_index)
    for position, sig in enumerate(signatures):
        if sig.index != position:
            raise BindingMismatch(expected=position, actual=sig.index, block_index=block_index)
    return Block(
        text=wire.text,
        bindings=[
            SignatureBinding(
                party=sig.party,
                ordinal=sig.index,
                image_data=(sig.img_url or None) if keep_images else None,
                confirmed=sig.confirmed,
            )
            for sig in signatures
        ],
    )


def document_from_wire(data: Any, keep_images: bool = True) -> DocumentModel:
    """
    Build a DocumentModel from wire JSON.

    Raises:
        ValueError: ``data`` does not have the wire shape
        BindingMismatch: a block's signatures do not line up with its markers
    """
    try:
        wire = WireDocument.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Malformed document: {e.error_count()} validation error(s)") from e
    return DocumentModel(
        blocks=[_block_from_wire(b, i, keep_images) for i, b in enumerate(wire.blocks)],
        unknowns=wire.unknowns,
    )


# =============================================================================
# Storage blob
# =============================================================================


def dump_document(doc: DocumentModel) -> str:
    data = document_to_wire(doc)
    for block, wire_block in zip(doc.blocks, data["blocks"]):
        for binding, sig in zip(block.bindings, wire_block["signatures"]):
            sig["confirmed"] = binding.confirmed
    return json.dumps(data, ensure_ascii=False)


def load_document(blob: str) -> DocumentModel:
    if not blob:
        return DocumentModel()
    return document_from_wire(json.loads(blob))
