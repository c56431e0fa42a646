"""
Reconciliation engine.

Re-derives a block's signature bindings whenever its text changes. Markers
are visually identical, so old and new bindings are matched purely by
ordinal (their position among the block's signature markers). Everything
here is a pure transform: inputs are never mutated.
"""

from dataclasses import dataclass, field
from typing import Any, Sequence

import structlog

from clausesign.errors import BindingMismatch, OutOfRange
from clausesign.markers import count_signature_markers
from clausesign.models.document import Block, DocumentModel, PartyId, SignatureBinding

logger = structlog.get_logger(__name__)


@dataclass
class BlockChange:
    """Result of reconciling one block against new text."""

    block: Block
    added: list[int] = field(default_factory=list)
    removed: list[int] = field(default_factory=list)
    discarded_signatures: list[int] = field(default_factory=list)
    reassigned: list[int] = field(default_factory=list)

    @property
    def needs_assignment(self) -> list[int]:
        return [b.ordinal for b in self.block.bindings if not b.confirmed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "added": self.added,
            "removed": self.removed,
            "discarded_signatures": self.discarded_signatures,
            "reassigned": self.reassigned,
            "needs_assignment": self.needs_assignment,
        }


def reconcile_block(
    old: Block | None,
    new_text: str,
    parties: Sequence[PartyId] | None = None,
    default_party: PartyId | None = None,
    block_index: int | None = None,
) -> BlockChange:
    """
    Rebuild bindings for ``new_text`` using ``old`` as history.

    Args:
        old: Block before the change, or None for a brand new block
        new_text: Block text after the change
        parties: Party per signature marker when the text came from the
            drafting model; overrides the carried-forward party and confirms it
        default_party: Party for markers a manual edit added

    Returns:
        BlockChange with the reconciled block and what moved

    Raises:
        BindingMismatch: ``parties`` does not have one entry per marker
        ValueError: a new marker has no party source at all
    """
    count = count_signature_markers(new_text)
    if parties is not None and len(parties) != count:
        raise BindingMismatch(expected=count, actual=len(parties), block_index=block_index)

    previous = list(old.bindings) if old is not None else []
    added: list[int] = []
    removed: list[int] = []
    discarded: list[int] = []
    reassigned: list[int] = []
    bindings: list[SignatureBinding] = []

    for ordinal in range(count):
        explicit = PartyId(parties[ordinal]) if parties is not None else None

        if ordinal < len(previous):
            prior = previous[ordinal]
            party = explicit or prior.party
            if party == prior.party:
                update: dict[str, Any] = {"ordinal": ordinal}
                if explicit is not None:
                    update["confirmed"] = True
                bindings.append(prior.model_copy(update=update))
                continue
            # Captured images belong to whoever drew them.
            reassigned.append(ordinal)
            if prior.is_bound:
                discarded.append(ordinal)
            bindings.append(SignatureBinding(party=party, ordinal=ordinal))
            continue

        added.append(ordinal)
        if explicit is not None:
            bindings.append(SignatureBinding(party=explicit, ordinal=ordinal))
        elif default_party is not None:
            bindings.append(
                SignatureBinding(party=default_party, ordinal=ordinal, confirmed=False)
            )
        else:
            raise ValueError(f"No party available for new signature marker {ordinal}")

    for ordinal in range(count, len(previous)):
        removed.append(ordinal)
        if previous[ordinal].is_bound:
            discarded.append(ordinal)

    if len(bindings) != count:
        raise BindingMismatch(expected=count, actual=len(bindings), block_index=block_index)

    if discarded:
        logger.warning("signature_discarded", block_index=block_index, ordinals=discarded)

    return BlockChange(
        block=Block(text=new_text, bindings=bindings),
        added=added,
        removed=removed,
        discarded_signatures=discarded,
        reassigned=reassigned,
    )


def fresh_block(text: str, parties: Sequence[PartyId], block_index: int | None = None) -> Block:
    """Block with unbound bindings and no history."""
    return reconcile_block(None, text, parties=parties, block_index=block_index).block


def reconcile_document(old: DocumentModel, generated: DocumentModel) -> DocumentModel:
    """
    Apply a whole-document regeneration.

    Blocks are reconciled pairwise when the block count is unchanged. When it
    changes there is no positional correspondence between old and new blocks,
    so every block starts without history.
    """
    pairwise = len(old.blocks) == len(generated.blocks)
    blocks: list[Block] = []
    for index, new_block in enumerate(generated.blocks):
        parties = [b.party for b in new_block.bindings]
        prior = old.blocks[index] if pairwise else None
        blocks.append(
            reconcile_block(prior, new_block.text, parties=parties, block_index=index).block
        )

    if not pairwise:
        dropped = sum(1 for b in old.blocks for s in b.bindings if s.is_bound)
        logger.warning(
            "document_history_reset",
            old_blocks=len(old.blocks),
            new_blocks=len(generated.blocks),
            discarded_signatures=dropped,
        )
    return DocumentModel(blocks=blocks, unknowns=generated.unknowns)


def replace_block(
    old: DocumentModel,
    block_index: int,
    generated: Block,
    unknowns: Sequence[str] | None = None,
) -> tuple[DocumentModel, BlockChange]:
    """Swap in a regenerated block; every other block is left untouched."""
    if old.block(block_index) is None:
        raise OutOfRange(f"Block {block_index} does not exist", block_index=block_index)
    change = reconcile_block(
        old.blocks[block_index],
        generated.text,
        parties=[b.party for b in generated.bindings],
        block_index=block_index,
    )
    blocks = list(old.blocks)
    blocks[block_index] = change.block
    document = DocumentModel(
        blocks=blocks,
        unknowns=list(unknowns) if unknowns is not None else old.unknowns,
    )
    return document, change


def edit_block_text(
    doc: DocumentModel,
    block_index: int,
    new_text: str,
    editor_party: PartyId,
) -> tuple[DocumentModel, BlockChange]:
    """
    Apply a manual text edit.

    Existing ordinals keep their party and image; markers the edit adds are
    given to ``editor_party`` and flagged for explicit assignment.
    """
    if doc.block(block_index) is None:
        raise OutOfRange(f"Block {block_index} does not exist", block_index=block_index)
    change = reconcile_block(
        doc.blocks[block_index],
        new_text,
        default_party=editor_party,
        block_index=block_index,
    )
    blocks = list(doc.blocks)
    blocks[block_index] = change.block
    return DocumentModel(blocks=blocks, unknowns=doc.unknowns), change
