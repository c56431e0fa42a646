"""
Command-line interface for ClauseSign.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
import structlog

from clausesign.config import configure_logging
from clausesign.errors import BindingMismatch, ContractError

logger = structlog.get_logger(__name__)


def _load_wire(path: str):
    from clausesign.engine.codec import document_from_wire

    try:
        return document_from_wire(json.loads(Path(path).read_text(encoding="utf-8")))
    except json.JSONDecodeError as e:
        click.echo(f"Error: {path} is not valid JSON ({e})", err=True)
    except BindingMismatch as e:
        click.echo(f"Error: {e.message} (block {e.block_index})", err=True)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
    sys.exit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """ClauseSign: AI-drafted contracts with inline signatures."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    configure_logging("DEBUG" if debug else None)


# =========================================================================
# Server Commands
# =========================================================================


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
def serve(host: str, port: int, reload: bool) -> None:
    """Start the API server."""
    import uvicorn

    click.echo(f"Starting ClauseSign API server on {host}:{port}")

    uvicorn.run(
        "clausesign.api.app:app",
        host=host,
        port=port,
        reload=reload,
    )


# =========================================================================
# Document Commands
# =========================================================================


@cli.command()
@click.argument("prompt", type=str)
@click.option("--author", default="", help="Name of the requesting party")
@click.option("--output", "-o", type=click.Path(), help="Write the document JSON here")
def draft(prompt: str, author: str, output: Optional[str]) -> None:
    """Draft a contract document from PROMPT."""
    from clausesign.engine.codec import document_to_wire
    from clausesign.services.drafting_service import get_drafting_service

    try:
        doc = get_drafting_service().generate_document(prompt, author_name=author)
    except ContractError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    payload = json.dumps(document_to_wire(doc), indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(payload, encoding="utf-8")
        click.echo(f"Draft written to: {output} ({len(doc.blocks)} blocks)")
    else:
        click.echo(payload)

    if doc.unknowns:
        click.echo("\nStill needed:", err=True)
        for item in doc.unknowns:
            click.echo(f"  - {item}", err=True)


@cli.command()
@click.argument("document_path", type=click.Path(exists=True))
def check(document_path: str) -> None:
    """Validate a document JSON file and list unsigned signature lines."""
    from clausesign.engine.completion import document_is_complete, outstanding_signatures

    doc = _load_wire(document_path)
    click.echo(f"Blocks: {len(doc.blocks)}")
    click.echo(f"Signature lines: {doc.binding_count}")

    missing = outstanding_signatures(doc)
    if document_is_complete(doc):
        click.echo("Complete: every signature line is signed.")
        return

    click.echo(f"Outstanding: {len(missing)}")
    for item in missing:
        click.echo(f"  block {item.block_index}, signature {item.ordinal}: {item.party.value}")
    sys.exit(2)


@cli.command()
@click.argument("document_path", type=click.Path(exists=True))
@click.option("--text", "as_text", is_flag=True, help="Print the plain-text view")
@click.option("--html", "html_out", type=click.Path(), help="Write the print HTML here")
@click.option("--pdf", "pdf_out", type=click.Path(), help="Write the PDF here")
@click.option("--contract-id", default="draft", help="Contract ID shown in the header")
@click.option("--title", default="Contract", help="Title shown in the header")
def render(
    document_path: str,
    as_text: bool,
    html_out: Optional[str],
    pdf_out: Optional[str],
    contract_id: str,
    title: str,
) -> None:
    """Render a document JSON file as text, HTML or PDF."""
    from clausesign.engine.codec import to_plain_text
    from clausesign.rendering.pdf import html_to_pdf
    from clausesign.rendering.print_view import render_print_html

    doc = _load_wire(document_path)

    if as_text or not (html_out or pdf_out):
        click.echo(to_plain_text(doc))

    if html_out or pdf_out:
        html = render_print_html(doc, contract_id=contract_id, title=title)
        if html_out:
            Path(html_out).write_text(html, encoding="utf-8")
            click.echo(f"HTML written to: {html_out}")
        if pdf_out:
            try:
                Path(pdf_out).write_bytes(html_to_pdf(html))
            except ContractError as e:
                click.echo(f"Error: {e.message}", err=True)
                sys.exit(1)
            click.echo(f"PDF written to: {pdf_out}")


if __name__ == "__main__":
    cli()
