"""
Drafting service: the AI generation collaborator.

Turns prompts into DocumentModels and owns normalization of the model's
responses. Anything that does not parse into a valid document, or whose
signature entries do not line up with the signature lines in the text, is
rejected with GenerationContractViolation and never patched up.
"""

from functools import lru_cache

import structlog

from clausesign.config import get_settings
from clausesign.engine.codec import document_from_wire, document_to_wire
from clausesign.engine.reconcile import reconcile_document, replace_block
from clausesign.errors import BindingMismatch, GenerationContractViolation, OutOfRange
from clausesign.models.document import DocumentModel
from clausesign.services.llm_service import LLMService, get_llm_service
from clausesign.services.prompts import (
    FALLBACK_SUMMARY,
    SUMMARY_SYSTEM_PROMPT,
    build_generate_prompt,
    build_regenerate_block_prompt,
    build_regenerate_document_prompt,
    build_summary_prompt,
    system_prompt,
)

logger = structlog.get_logger(__name__)

SUMMARY_POINTS = 4


class DraftingService:
    """Generates and regenerates contract documents through the LLM service."""

    def __init__(self, llm: LLMService | None = None):
        self.llm = llm or get_llm_service()
        self.settings = get_settings()

    def _request_document(self, user_prompt: str, expected_blocks: int | None = None) -> DocumentModel:
        data, model = self.llm.generate_json(system_prompt(), user_prompt)
        if not isinstance(data, dict):
            raise GenerationContractViolation(
                "Model response was not a JSON document", model=model
            )
        try:
            doc = document_from_wire(data, keep_images=False)
        except BindingMismatch as e:
            logger.warning("generation_binding_mismatch", model=model, **e.context)
            raise GenerationContractViolation(
                f"Signature entries do not match signature lines: {e.message}",
                model=model,
                **e.context,
            ) from e
        except ValueError as e:
            raise GenerationContractViolation(str(e), model=model) from e

        if not doc.blocks:
            raise GenerationContractViolation("Model returned a document with no blocks", model=model)
        if expected_blocks is not None and len(doc.blocks) != expected_blocks:
            raise GenerationContractViolation(
                f"Expected {expected_blocks} blocks, model returned {len(doc.blocks)}",
                model=model,
                expected=expected_blocks,
                actual=len(doc.blocks),
            )
        logger.info(
            "document_generated",
            model=model,
            blocks=len(doc.blocks),
            signatures=doc.binding_count,
            unknowns=len(doc.unknowns),
        )
        return doc

    def generate_document(self, prompt: str, author_name: str = "") -> DocumentModel:
        """Draft a new contract from a natural-language request."""
        return self._request_document(
            build_generate_prompt(prompt, self.settings.target_block_count, author_name)
        )

    def regenerate_block(self, doc: DocumentModel, block_index: int, instructions: str) -> DocumentModel:
        """
        Rewrite one block.

        Only block ``block_index`` and ``unknowns`` are taken from the model;
        every other block is kept exactly as it was.
        """
        if doc.block(block_index) is None:
            raise OutOfRange(f"Block {block_index} does not exist", block_index=block_index)
        generated = self._request_document(
            build_regenerate_block_prompt(
                document_to_wire(doc, include_images=False), block_index, instructions
            ),
            expected_blocks=len(doc.blocks),
        )
        updated, _ = replace_block(
            doc, block_index, generated.blocks[block_index], generated.unknowns
        )
        return updated

    def regenerate_document(self, doc: DocumentModel, instructions: str) -> DocumentModel:
        """Rewrite the whole contract, carrying signatures forward where blocks line up."""
        generated = self._request_document(
            build_regenerate_document_prompt(document_to_wire(doc, include_images=False), instructions)
        )
        return reconcile_document(doc, generated)

    def summarize(self, doc: DocumentModel) -> list[str]:
        """Four short summary points; a fixed summary if the response will not parse."""
        data, model = self.llm.generate_json(
            SUMMARY_SYSTEM_PROMPT,
            build_summary_prompt(document_to_wire(doc, include_images=False)),
            temperature=self.settings.summary_temperature,
        )
        if isinstance(data, list) and len(data) >= SUMMARY_POINTS:
            points = [str(item).strip() for item in data[:SUMMARY_POINTS]]
            if all(points):
                return points
        logger.warning("summary_unparseable", model=model)
        return list(FALLBACK_SUMMARY)


@lru_cache()
def get_drafting_service() -> DraftingService:
    """Get cached drafting service singleton."""
    return DraftingService()
