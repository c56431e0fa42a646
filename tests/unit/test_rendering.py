"""Tests for clausesign/rendering — interactive spans, print HTML and PDF."""

import sys
from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from clausesign.engine.signing import capture_signature
from clausesign.errors import CollaboratorUnavailable
from clausesign.markers import FILL_IN_MARKER, SIGNATURE_MARKER
from clausesign.models.document import Block, DocumentModel, PartyId, SignatureBinding
from clausesign.rendering.interactive import (
    FillInSpan,
    SignatureSpan,
    TextSpan,
    render_block,
    render_document,
)
from clausesign.rendering.pdf import html_to_pdf
from clausesign.rendering.print_view import render_print_html

SIG = SIGNATURE_MARKER
FILL = FILL_IN_MARKER
IMAGE = "data:image/png;base64,c2lnbmF0dXJlLWE="
A = PartyId.ORIGINATOR
B = PartyId.COUNTERPARTY


class TestInteractive:

    def test_span_order(self, sample_document):
        rendered = render_block(sample_document.blocks[2], 2, viewer=A)
        kinds = [span.kind for span in rendered.spans]
        assert kinds == ["text", "signature", "text", "signature"]
        assert rendered.spans[0].text == "Acme Inc.: "
        assert rendered.spans[2].text == "\nBeta LLC: "

    def test_fill_in_span(self, sample_document):
        rendered = render_block(sample_document.blocks[1], 1, viewer=A, editable=True)
        fill = [s for s in rendered.spans if isinstance(s, FillInSpan)]
        assert len(fill) == 1
        assert fill[0].field_index == 0
        assert fill[0].editable is True

    def test_text_only_block(self, sample_document):
        rendered = render_block(sample_document.blocks[0], 0)
        assert rendered.spans == [TextSpan(text=sample_document.blocks[0].text)]

    def test_actionable_only_for_owner(self, sample_document):
        rendered = render_block(sample_document.blocks[2], 2, viewer=B)
        sigs = [s for s in rendered.spans if isinstance(s, SignatureSpan)]
        assert [s.actionable for s in sigs] == [False, True]

    def test_bound_signature_not_actionable(self, sample_document):
        signed = capture_signature(sample_document, 2, 0, A, IMAGE)
        sigs = [s for s in render_block(signed.blocks[2], 2, viewer=A).spans if s.kind == "signature"]
        assert sigs[0].bound is True
        assert sigs[0].image == IMAGE
        assert sigs[0].actionable is False

    def test_frozen_offers_no_actions(self, sample_document):
        rendered = render_document(sample_document, viewer=A, frozen=True, editable=True)
        for block in rendered:
            for span in block.spans:
                assert not getattr(span, "actionable", False)
                assert not getattr(span, "editable", False)

    def test_read_only_view(self, sample_document):
        rendered = render_document(sample_document)
        sigs = [s for s in rendered[2].spans if isinstance(s, SignatureSpan)]
        assert not any(s.actionable for s in sigs)

    def test_needs_assignment_flag(self):
        block = Block(text=SIG, bindings=[SignatureBinding(party=A, ordinal=0, confirmed=False)])
        span = render_block(block, 0, viewer=A).spans[0]
        assert span.needs_assignment is True

    def test_to_dict_uses_wire_party(self, sample_document):
        data = render_block(sample_document.blocks[2], 2, viewer=A).to_dict()
        assert data["block_index"] == 2
        assert data["spans"][1]["party"] == "PartyA"
        assert data["spans"][1]["kind"] == "signature"


class TestPrintView:

    def test_header(self, sample_document):
        html = render_print_html(
            sample_document, "abc123", title="Services Agreement", rendered_on=date(2025, 3, 7)
        )
        assert "SERVICES AGREEMENT" in html
        assert "Date: March 7, 2025" in html
        assert "Contract ID: abc123" in html

    def test_unbound_signature_labelled(self, sample_document):
        html = render_print_html(
            sample_document, "c1", party_labels={A: "Alice Smith", B: "Bob Jones"}
        )
        assert '<span class="signature-line"></span> (Alice Smith)' in html
        assert '<span class="signature-line"></span> (Bob Jones)' in html
        assert SIG not in html

    def test_bound_signature_image(self, sample_document):
        signed = capture_signature(sample_document, 2, 0, A, IMAGE)
        html = render_print_html(signed, "c1", party_labels={A: "Alice"})
        assert f'<img class="signature-image" src="{IMAGE}" alt="Signature of Alice">' in html

    def test_fill_in_and_escaping(self):
        doc = DocumentModel(blocks=[Block(text=f"Fee <b>&</b> {FILL}\nnext line")])
        html = render_print_html(doc, "c1")
        assert "&lt;b&gt;&amp;&lt;/b&gt;" in html
        assert '<span class="fill-in-line"></span>' in html
        assert "<br>next line" in html
        assert FILL not in html

    def test_default_label_is_party_id(self, sample_document):
        html = render_print_html(sample_document, "c1")
        assert "(PartyA)" in html and "(PartyB)" in html


class TestPdf:

    def test_renders_with_weasyprint(self, monkeypatch):
        html_cls = MagicMock()
        html_cls.return_value.write_pdf.return_value = b"%PDF-1.7"
        monkeypatch.setitem(sys.modules, "weasyprint", SimpleNamespace(HTML=html_cls))

        assert html_to_pdf("<html></html>") == b"%PDF-1.7"
        html_cls.assert_called_once_with(string="<html></html>")

    def test_renderer_failure(self, monkeypatch):
        html_cls = MagicMock(side_effect=OSError("cairo missing"))
        monkeypatch.setitem(sys.modules, "weasyprint", SimpleNamespace(HTML=html_cls))

        with pytest.raises(CollaboratorUnavailable) as exc:
            html_to_pdf("<html></html>")
        assert exc.value.retryable is True

    def test_weasyprint_not_installed(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "weasyprint", None)

        with pytest.raises(CollaboratorUnavailable):
            html_to_pdf("<html></html>")
