"""Print view: fully resolved HTML for the PDF renderer."""

import html
from datetime import date

from clausesign.models.document import DocumentModel, PartyId
from clausesign.rendering.interactive import FillInSpan, SignatureSpan, TextSpan, render_document

PRINT_CSS = """
@page { size: letter; margin: 1in; }
body { font-family: 'Times New Roman', serif; font-size: 12pt; line-height: 1.6; color: #000; background: white; }
.contract-header { text-align: center; margin-bottom: 30px; border-bottom: 2px solid #000; padding-bottom: 20px; }
.contract-title { font-size: 18pt; font-weight: bold; margin-bottom: 10px; }
.contract-date { font-size: 12pt; color: #666; }
.contract-block { margin-bottom: 20px; text-align: justify; }
.contract-block p { margin: 0 0 10px 0; }
.signature-line { display: inline-block; width: 200px; border-bottom: 1px solid #000; margin: 0 10px; }
.signature-image { height: 40px; border-bottom: 1px solid #000; display: inline-block; margin: 0 10px; }
.fill-in-line { display: inline-block; width: 100px; border-bottom: 1px solid #000; }
"""


def _format_text(text: str) -> str:
    return html.escape(text).replace("\n", "<br>")


def _signature_html(span: SignatureSpan, label: str) -> str:
    if span.bound and span.image:
        return (
            f'<img class="signature-image" src="{html.escape(span.image, quote=True)}" '
            f'alt="Signature of {html.escape(label)}">'
        )
    return f'<span class="signature-line"></span> ({html.escape(label)})'


def render_print_html(
    doc: DocumentModel,
    contract_id: str,
    title: str = "Contract",
    party_labels: dict[PartyId, str] | None = None,
    rendered_on: date | None = None,
) -> str:
    """
    Render ``doc`` as a standalone HTML page.

    Bound signatures show the captured image, unbound ones a blank rule
    labelled with the owning party. Unfilled blanks print as a short rule.
    """
    labels = party_labels or {}
    rendered_on = rendered_on or date.today()
    long_date = f"{rendered_on.strftime('%B')} {rendered_on.day}, {rendered_on.year}"

    blocks_html = []
    for rendered in render_document(doc):
        parts = []
        for span in rendered.spans:
            if isinstance(span, TextSpan):
                parts.append(_format_text(span.text))
            elif isinstance(span, SignatureSpan):
                parts.append(_signature_html(span, labels.get(span.party, span.party.value)))
            elif isinstance(span, FillInSpan):
                parts.append('<span class="fill-in-line"></span>')
        blocks_html.append(f'<div class="contract-block"><p>{"".join(parts)}</p></div>')

    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{html.escape(title)} {html.escape(contract_id)}</title>
<style>{PRINT_CSS}</style>
</head>
<body>
<div class="contract-header">
<div class="contract-title">{html.escape(title.upper())}</div>
<div class="contract-date">Date: {long_date}</div>
<div class="contract-date">Contract ID: {html.escape(contract_id)}</div>
</div>
<div class="contract-content">
{chr(10).join(blocks_html)}
</div>
</body>
</html>
"""
