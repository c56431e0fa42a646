"""PDF rendering via WeasyPrint. Layout only; the HTML arrives fully resolved."""

import structlog

from clausesign.errors import CollaboratorUnavailable

logger = structlog.get_logger(__name__)


def html_to_pdf(html: str) -> bytes:
    """Render print-view HTML to PDF bytes (page geometry comes from the HTML's @page rule)."""
    try:
        from weasyprint import HTML

        pdf_bytes = HTML(string=html).write_pdf()
    except (ImportError, OSError, ValueError) as e:
        logger.error("pdf_render_failed", error=str(e))
        raise CollaboratorUnavailable("pdf", f"PDF rendering failed: {e}") from e
    logger.info("pdf_rendered", size=len(pdf_bytes))
    return pdf_bytes
