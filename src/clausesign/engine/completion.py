"""Completion gate: which signatures are still outstanding."""

from dataclasses import dataclass

from clausesign.errors import IncompleteSignatures
from clausesign.models.document import DocumentModel, PartyId


@dataclass(frozen=True)
class OutstandingSignature:
    block_index: int
    ordinal: int
    party: PartyId

    def as_tuple(self) -> tuple[int, int, str]:
        return (self.block_index, self.ordinal, self.party.value)


def outstanding_signatures(
    doc: DocumentModel, party: PartyId | None = None
) -> list[OutstandingSignature]:
    """Unbound bindings in document order, optionally for one party."""
    missing = []
    for block_index, block in enumerate(doc.blocks):
        for binding in block.bindings:
            if binding.is_bound:
                continue
            if party is not None and binding.party != party:
                continue
            missing.append(OutstandingSignature(block_index, binding.ordinal, binding.party))
    return missing


def party_is_complete(doc: DocumentModel, party: PartyId) -> bool:
    """True iff every binding owned by ``party`` carries an image."""
    return not outstanding_signatures(doc, party)


def document_is_complete(doc: DocumentModel) -> bool:
    """True iff every party referenced by a binding has signed all of its markers."""
    return all(party_is_complete(doc, party) for party in doc.parties)


def ensure_party_complete(doc: DocumentModel, party: PartyId) -> None:
    missing = outstanding_signatures(doc, party)
    if missing:
        raise IncompleteSignatures(
            f"{len(missing)} signature(s) for {PartyId(party).value} are still blank",
            missing=[m.as_tuple() for m in missing],
        )


def ensure_document_complete(doc: DocumentModel) -> None:
    missing = outstanding_signatures(doc)
    if missing:
        raise IncompleteSignatures(
            f"{len(missing)} signature(s) are still blank",
            missing=[m.as_tuple() for m in missing],
        )
