"""
Interactive view: each block as an ordered list of spans.

Literal text is interleaved with signature spans (one per binding) and
fill-in spans (one per ten-underscore blank). Signature spans tell the
caller whether the viewing party may act on them; nothing here mutates
the document.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Union

from clausesign.markers import SIGNATURE, scan_markers
from clausesign.models.document import Block, DocumentModel, PartyId


@dataclass
class TextSpan:
    text: str
    kind: str = "text"


@dataclass
class FillInSpan:
    field_index: int
    editable: bool = False
    kind: str = "fill_in"


@dataclass
class SignatureSpan:
    ordinal: int
    party: PartyId
    bound: bool
    image: str | None = None
    actionable: bool = False
    needs_assignment: bool = False
    kind: str = "signature"


Span = Union[TextSpan, FillInSpan, SignatureSpan]


@dataclass
class RenderedBlock:
    block_index: int
    spans: list[Span] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        spans = []
        for span in self.spans:
            data = asdict(span)
            if isinstance(span, SignatureSpan):
                data["party"] = span.party.value
            spans.append(data)
        return {"block_index": self.block_index, "spans": spans}


def render_block(
    block: Block,
    block_index: int,
    viewer: PartyId | None = None,
    frozen: bool = False,
    editable: bool = False,
) -> RenderedBlock:
    """
    Project one block into spans.

    Args:
        block: Block to render
        block_index: Position of the block in its document
        viewer: Party looking at the document; None for a read-only view
        frozen: Completed documents offer no actions at all
        editable: Whether fill-in blanks may be filled by this viewer
    """
    rendered = RenderedBlock(block_index=block_index)
    cursor = 0
    ordinal = 0
    field_index = 0

    for marker in scan_markers(block.text):
        if marker.start > cursor:
            rendered.spans.append(TextSpan(text=block.text[cursor:marker.start]))
        if marker.kind == SIGNATURE:
            binding = block.bindings[ordinal]
            rendered.spans.append(
                SignatureSpan(
                    ordinal=ordinal,
                    party=binding.party,
                    bound=binding.is_bound,
                    image=binding.image_data,
                    actionable=(
                        not frozen
                        and viewer is not None
                        and binding.party == viewer
                        and not binding.is_bound
                    ),
                    needs_assignment=not binding.confirmed,
                )
            )
            ordinal += 1
        else:
            rendered.spans.append(
                FillInSpan(field_index=field_index, editable=editable and not frozen)
            )
            field_index += 1
        cursor = marker.end

    if cursor < len(block.text):
        rendered.spans.append(TextSpan(text=block.text[cursor:]))
    return rendered


def render_document(
    doc: DocumentModel,
    viewer: PartyId | None = None,
    frozen: bool = False,
    editable: bool = False,
) -> list[RenderedBlock]:
    return [
        render_block(block, index, viewer=viewer, frozen=frozen, editable=editable)
        for index, block in enumerate(doc.blocks)
    ]
