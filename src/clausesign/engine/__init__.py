"""
Reconciliation core: pure transforms over DocumentModel.

- reconcile: keep bindings aligned with text after regeneration or edits
- signing: signature capture, party assignment, fill-in fields
- completion: outstanding signatures and the finalize/send gates
- codec: plain text, wire JSON and storage serialization
"""

from clausesign.engine.completion import (
    OutstandingSignature,
    document_is_complete,
    ensure_document_complete,
    ensure_party_complete,
    outstanding_signatures,
    party_is_complete,
)
from clausesign.engine.reconcile import (
    BlockChange,
    edit_block_text,
    reconcile_block,
    reconcile_document,
    replace_block,
)
from clausesign.engine.signing import (
    assign_party,
    capture_signature,
    clear_party_signatures,
    fill_in_field,
)

__all__ = [
    "BlockChange",
    "OutstandingSignature",
    "assign_party",
    "capture_signature",
    "clear_party_signatures",
    "document_is_complete",
    "edit_block_text",
    "ensure_document_complete",
    "ensure_party_complete",
    "fill_in_field",
    "outstanding_signatures",
    "party_is_complete",
    "reconcile_block",
    "reconcile_document",
    "replace_block",
]
