"""
Signature capture and the other single-binding mutations.

Each function returns a new DocumentModel and leaves its input untouched,
including when it raises.
"""

import base64
import binascii
import re

import structlog

from clausesign.errors import InvalidFieldValue, InvalidSignatureImage, OutOfRange, WrongParty
from clausesign.markers import count_signature_markers, fill_in_markers
from clausesign.models.document import Block, DocumentModel, PartyId, SignatureBinding

logger = structlog.get_logger(__name__)

DATA_URL_PATTERN = re.compile(
    r"^data:image/(?P<fmt>png|jpeg|jpg|gif|webp|svg\+xml);base64,(?P<payload>[A-Za-z0-9+/=\s]+)$"
)


def validate_signature_image(image: str) -> str:
    """Check that ``image`` is a base64 image data URL and return it stripped."""
    image = (image or "").strip()
    match = DATA_URL_PATTERN.match(image)
    if not match:
        raise InvalidSignatureImage("Signature must be a base64-encoded image data URL")
    try:
        decoded = base64.b64decode("".join(match.group("payload").split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidSignatureImage(f"Signature payload is not valid base64: {e}") from e
    if not decoded:
        raise InvalidSignatureImage("Signature image is empty")
    return image


def _locate(doc: DocumentModel, block_index: int, ordinal: int) -> SignatureBinding:
    block = doc.block(block_index)
    if block is None:
        raise OutOfRange(
            f"Block {block_index} does not exist", block_index=block_index, ordinal=ordinal
        )
    binding = block.binding(ordinal)
    if binding is None:
        raise OutOfRange(
            f"Block {block_index} has no signature {ordinal}",
            block_index=block_index,
            ordinal=ordinal,
        )
    return binding


def _with_binding(
    doc: DocumentModel, block_index: int, binding: SignatureBinding
) -> DocumentModel:
    block = doc.blocks[block_index]
    bindings = list(block.bindings)
    bindings[binding.ordinal] = binding
    blocks = list(doc.blocks)
    blocks[block_index] = Block(text=block.text, bindings=bindings)
    return DocumentModel(blocks=blocks, unknowns=doc.unknowns)


def capture_signature(
    doc: DocumentModel,
    block_index: int,
    ordinal: int,
    party: PartyId,
    image: str,
) -> DocumentModel:
    """
    Store ``image`` in the binding at (block_index, ordinal).

    Re-signing by the owning party overwrites the earlier image.

    Raises:
        OutOfRange: the address does not name an existing binding
        WrongParty: the binding belongs to the other party
        InvalidSignatureImage: ``image`` is not a base64 image data URL
    """
    binding = _locate(doc, block_index, ordinal)
    if binding.party != party:
        raise WrongParty(
            f"Signature {ordinal} in block {block_index} belongs to {binding.party.value}",
            block_index=block_index,
            ordinal=ordinal,
            party=PartyId(party).value,
            owner=binding.party.value,
        )
    image = validate_signature_image(image)

    logger.info(
        "signature_captured",
        block_index=block_index,
        ordinal=ordinal,
        party=binding.party.value,
        resigned=binding.is_bound,
    )
    return _with_binding(
        doc,
        block_index,
        binding.model_copy(update={"image_data": image, "confirmed": True}),
    )


def assign_party(
    doc: DocumentModel,
    block_index: int,
    ordinal: int,
    party: PartyId,
) -> DocumentModel:
    """Confirm or change the owner of a binding; a change clears its image."""
    binding = _locate(doc, block_index, ordinal)
    party = PartyId(party)
    update: dict = {"party": party, "confirmed": True}
    if party != binding.party:
        update["image_data"] = None
        if binding.is_bound:
            logger.warning(
                "signature_discarded", block_index=block_index, ordinals=[ordinal]
            )
    return _with_binding(doc, block_index, binding.model_copy(update=update))


def clear_party_signatures(
    doc: DocumentModel, party: PartyId
) -> tuple[DocumentModel, list[tuple[int, int]]]:
    """
    Drop every image captured for ``party``.

    Returns:
        (new document, ``(block_index, ordinal)`` of each cleared binding)
    """
    party = PartyId(party)
    cleared: list[tuple[int, int]] = []
    blocks: list[Block] = []
    for block_index, block in enumerate(doc.blocks):
        bindings = []
        for binding in block.bindings:
            if binding.party == party and binding.is_bound:
                cleared.append((block_index, binding.ordinal))
                binding = binding.model_copy(update={"image_data": None})
            bindings.append(binding)
        blocks.append(Block(text=block.text, bindings=bindings))

    if cleared:
        logger.warning(
            "signature_discarded",
            party=party.value,
            addresses=[list(address) for address in cleared],
        )
    return DocumentModel(blocks=blocks, unknowns=doc.unknowns), cleared


def fill_in_field(
    doc: DocumentModel,
    block_index: int,
    field_index: int,
    value: str,
) -> DocumentModel:
    """
    Replace the ``field_index``-th fill-in blank of a block with ``value``.

    Signature markers and their bindings are untouched; a value that would
    create, merge with or destroy a marker is rejected.
    """
    block = doc.block(block_index)
    if block is None:
        raise OutOfRange(f"Block {block_index} does not exist", block_index=block_index)
    fields = fill_in_markers(block.text)
    if not 0 <= field_index < len(fields):
        raise OutOfRange(
            f"Block {block_index} has no fill-in field {field_index}",
            block_index=block_index,
            field_index=field_index,
        )
    value = (value or "").strip()
    if not value:
        raise InvalidFieldValue("Fill-in value cannot be empty", block_index=block_index)

    target = fields[field_index]
    text = block.text[: target.start] + value + block.text[target.end :]
    if (
        count_signature_markers(text) != len(block.bindings)
        or len(fill_in_markers(text)) != len(fields) - 1
    ):
        raise InvalidFieldValue(
            "Fill-in value would alter the document's blanks or signature lines",
            block_index=block_index,
            field_index=field_index,
        )

    blocks = list(doc.blocks)
    blocks[block_index] = Block(text=text, bindings=list(block.bindings))
    return DocumentModel(blocks=blocks, unknowns=doc.unknowns)
