"""
Rendering adapters driven by the same DocumentModel.

- interactive: span projection for the signing UI
- print_view: resolved HTML for printing
- pdf: HTML to PDF bytes
"""

from clausesign.rendering.interactive import (
    FillInSpan,
    RenderedBlock,
    SignatureSpan,
    TextSpan,
    render_block,
    render_document,
)
from clausesign.rendering.print_view import render_print_html

__all__ = [
    "FillInSpan",
    "RenderedBlock",
    "SignatureSpan",
    "TextSpan",
    "render_block",
    "render_document",
    "render_print_html",
]
