"""Tests for clausesign/engine/reconcile.py — keeping bindings aligned with text."""

import pytest

from clausesign.engine.reconcile import (
    edit_block_text,
    fresh_block,
    reconcile_block,
    reconcile_document,
    replace_block,
)
from clausesign.errors import BindingMismatch, OutOfRange
from clausesign.markers import SIGNATURE_MARKER, count_signature_markers
from clausesign.models.document import Block, DocumentModel, PartyId, SignatureBinding

SIG = SIGNATURE_MARKER
IMG = "data:image/png;base64,c2lnbmF0dXJlLWE="
A = PartyId.ORIGINATOR
B = PartyId.COUNTERPARTY


def _block(text, *bindings):
    return Block(
        text=text,
        bindings=[
            SignatureBinding(party=party, ordinal=i, image_data=image)
            for i, (party, image) in enumerate(bindings)
        ],
    )


def _assert_invariant(block):
    assert len(block.bindings) == count_signature_markers(block.text)
    assert [b.ordinal for b in block.bindings] == list(range(len(block.bindings)))


class TestCarryForward:

    def test_same_count_preserves_bound_binding(self):
        old = _block(f"A: {SIG} B: {SIG}", (A, IMG), (B, None))
        change = reconcile_block(old, f"First: {SIG}\nSecond: {SIG}")

        _assert_invariant(change.block)
        assert change.block.bindings[0].image_data == IMG
        assert change.block.bindings[0].party == A
        assert change.block.bindings[1].party == B
        assert change.block.bindings[1].image_data is None
        assert change.added == [] and change.removed == []

    def test_input_not_mutated(self):
        old = _block(f"{SIG}", (A, IMG))
        snapshot = old.model_copy(deep=True)
        reconcile_block(old, "no markers now")
        assert old == snapshot


class TestShrink:

    def test_three_to_one(self):
        old = _block(f"{SIG} {SIG} {SIG}", (A, IMG), (B, IMG), (A, None))
        change = reconcile_block(old, f"Only {SIG}")

        _assert_invariant(change.block)
        assert len(change.block.bindings) == 1
        assert change.block.bindings[0].image_data == IMG
        assert change.removed == [1, 2]
        assert change.discarded_signatures == [1]

    def test_all_markers_removed(self):
        old = _block(f"{SIG}", (A, None))
        change = reconcile_block(old, "Nothing to sign")
        assert change.block.bindings == []
        assert change.removed == [0]
        assert change.discarded_signatures == []


class TestGrow:

    def test_one_to_three_with_generated_parties(self):
        old = _block(f"{SIG}", (A, IMG))
        change = reconcile_block(old, f"{SIG} {SIG} {SIG}", parties=[A, B, B])

        _assert_invariant(change.block)
        assert change.block.bindings[0].image_data == IMG
        assert [b.party for b in change.block.bindings] == [A, B, B]
        assert [b.is_bound for b in change.block.bindings] == [True, False, False]
        assert change.added == [1, 2]

    def test_manual_growth_defaults_to_editor_and_flags(self):
        old = _block(f"{SIG}", (B, None))
        change = reconcile_block(old, f"{SIG} {SIG}", default_party=A)

        assert change.block.bindings[0].party == B
        assert change.block.bindings[0].confirmed is True
        assert change.block.bindings[1].party == A
        assert change.block.bindings[1].confirmed is False
        assert change.needs_assignment == [1]

    def test_growth_without_party_source_rejected(self):
        with pytest.raises(ValueError):
            reconcile_block(None, f"{SIG}")


class TestPartyChange:

    def test_party_change_clears_image(self):
        old = _block(f"Signed: {SIG}", (A, IMG))
        change = reconcile_block(old, f"Signed: {SIG}", parties=[B])

        binding = change.block.bindings[0]
        assert binding.party == B
        assert binding.image_data is None
        assert change.reassigned == [0]
        assert change.discarded_signatures == [0]

    def test_same_party_from_generation_keeps_image(self):
        old = _block(f"Signed: {SIG}", (A, IMG))
        change = reconcile_block(old, f"Signed by us: {SIG}", parties=[A])
        assert change.block.bindings[0].image_data == IMG
        assert change.reassigned == []

    def test_generated_party_confirms_flagged_binding(self):
        old = Block(
            text=f"Sign {SIG}",
            bindings=[SignatureBinding(party=A, ordinal=0, image_data=IMG, confirmed=False)],
        )
        change = reconcile_block(old, f"Signed: {SIG}", parties=[A])

        assert change.needs_assignment == []
        assert change.block.bindings[0].confirmed is True
        assert change.block.bindings[0].image_data == IMG

    def test_manual_edit_keeps_flag(self):
        old = Block(
            text=f"Sign {SIG}",
            bindings=[SignatureBinding(party=A, ordinal=0, confirmed=False)],
        )
        change = reconcile_block(old, f"Please sign {SIG}", default_party=A)
        assert change.needs_assignment == [0]


class TestMismatch:

    def test_party_list_length_mismatch(self):
        with pytest.raises(BindingMismatch) as exc:
            reconcile_block(None, f"{SIG} {SIG}", parties=[A], block_index=4)
        assert exc.value.expected == 2
        assert exc.value.actual == 1
        assert exc.value.context["block_index"] == 4


class TestDocumentRegeneration:

    def test_pairwise_when_block_count_unchanged(self):
        old = DocumentModel(blocks=[_block("Intro"), _block(f"Sign {SIG}", (A, IMG))])
        generated = DocumentModel(
            blocks=[_block("New intro"), _block(f"Please sign {SIG}", (A, None))],
            unknowns=["Start date"],
        )
        result = reconcile_document(old, generated)

        assert result.blocks[0].text == "New intro"
        assert result.blocks[1].bindings[0].image_data == IMG
        assert result.unknowns == ["Start date"]

    def test_fresh_bindings_when_block_count_changes(self):
        old = DocumentModel(blocks=[_block(f"Sign {SIG}", (A, IMG))])
        generated = DocumentModel(
            blocks=[_block("Intro"), _block(f"Sign {SIG}", (A, None)), _block("Outro")]
        )
        result = reconcile_document(old, generated)

        assert len(result.blocks) == 3
        assert result.blocks[1].bindings[0].image_data is None
        for block in result.blocks:
            _assert_invariant(block)

    def test_generated_images_never_trusted_without_history(self):
        old = DocumentModel(blocks=[_block("Only block")])
        generated = DocumentModel(blocks=[_block("a"), _block(f"{SIG}", (B, IMG))])
        result = reconcile_document(old, generated)
        assert result.blocks[1].bindings[0].image_data is None


class TestReplaceBlock:

    def test_only_target_block_changes(self):
        old = DocumentModel(
            blocks=[_block(f"Keep {SIG}", (A, IMG)), _block(f"Target {SIG}", (A, IMG))],
            unknowns=["Amount", "Date"],
        )
        document, change = replace_block(old, 1, _block(f"Rewritten {SIG}", (B, None)), ["Date"])

        assert document.blocks[0] == old.blocks[0]
        assert document.blocks[1].text == f"Rewritten {SIG}"
        assert document.blocks[1].bindings[0].party == B
        assert document.unknowns == ["Date"]
        assert change.reassigned == [0]

    def test_keeps_unknowns_when_none_given(self):
        old = DocumentModel(blocks=[_block("x")], unknowns=["Amount"])
        document, _ = replace_block(old, 0, _block("y"))
        assert document.unknowns == ["Amount"]

    def test_out_of_range(self):
        with pytest.raises(OutOfRange):
            replace_block(DocumentModel(blocks=[_block("x")]), 3, _block("y"))


class TestEditBlockText:

    def test_manual_edit_keeps_signature(self, sample_document):
        bound = sample_document.model_copy(deep=True)
        bound.blocks[2].bindings[0].image_data = IMG

        document, change = edit_block_text(
            bound, 2, f"Acme Inc., by its CEO: {SIG}\nBeta LLC: {SIG}", A
        )
        assert document.blocks[2].bindings[0].image_data == IMG
        assert document.blocks[2].bindings[1].party == B
        assert change.added == []
        assert document.blocks[0] == sample_document.blocks[0]

    def test_manual_edit_out_of_range(self, sample_document):
        with pytest.raises(OutOfRange):
            edit_block_text(sample_document, 10, "x", A)


class TestFreshBlock:

    def test_fresh_block(self):
        block = fresh_block(f"{SIG} {SIG}", [B, A])
        assert [b.party for b in block.bindings] == [B, A]
        assert not any(b.is_bound for b in block.bindings)
