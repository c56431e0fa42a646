"""Prompt templates for contract drafting and summarization.

Every drafting prompt asks for the same JSON document shape so one parser
can normalize all responses.
"""

import json
from datetime import date
from typing import Any

DOCUMENT_SCHEMA = """{
  "blocks": [
    {
      "text": "<one clause or section; newlines allowed>",
      "signatures": [
        {"party": "PartyA" | "PartyB", "img_url": "", "index": <0-based position among this block's signature lines>}
      ]
    }
  ],
  "unknowns": ["<essential information still missing>"]
}"""

SIGNATURE_RULES = """SIGNATURE LINES:
- A signature line is exactly 20 underscores: ____________________
- A blank for a value the parties fill in later (an amount, a date, an address) is
  exactly 10 underscores: __________
- Use underscores for nothing else. Prefer concrete values from the request over blanks.
- Every block has exactly one entry in "signatures" per signature line in its text,
  with "index" counting signature lines in order of appearance from 0.
- "party" is "PartyA" for the party who drafted the contract and requests signatures,
  "PartyB" for the party who receives and signs it.
- Leave "img_url" as an empty string.
- Do not add date lines next to signatures; the signing date is stamped on the image.

PARTY NAMES:
- Never write "PartyA" or "PartyB" in contract text. Refer to parties by name when the
  request gives one, otherwise by role (Client, Contractor, Landlord, Tenant, ...).

UNKNOWNS:
- List only information the contract genuinely cannot be completed without. Keep it short."""

SYSTEM_PROMPT = """You are a contract drafting assistant. Today is {today}.

OUTPUT FORMAT:
Respond with a single JSON object matching this schema. No markdown, no commentary.

{schema}

{rules}"""

SUMMARY_SYSTEM_PROMPT = """You are a contract summarization assistant.

Return ONLY a JSON array of exactly 4 plain-text strings, each a concise point
(at most 50 words) about the contract. No markdown.

Example:
[
  "This contract establishes a service agreement between two parties",
  "The service provider will deliver specified work within 30 days",
  "Payment terms include a $5000 fee due upon completion",
  "Either party may terminate with 7 days written notice"
]"""

FALLBACK_SUMMARY = [
    "This contract establishes an agreement between the specified parties",
    "The terms and conditions are outlined in the contract blocks",
    "Payment and performance obligations are detailed in the agreement",
    "Termination and governing law provisions apply as specified",
]


def system_prompt(today: date | None = None) -> str:
    today = today or date.today()
    return SYSTEM_PROMPT.format(
        today=today.isoformat(), schema=DOCUMENT_SCHEMA, rules=SIGNATURE_RULES
    )


def build_generate_prompt(prompt: str, block_count: int, author_name: str = "") -> str:
    """User prompt for a first draft."""
    author = f"\nThe person requesting this contract (PartyA) is {author_name}." if author_name else ""
    return f"""Draft a complete, professional contract for this request:

"{prompt}"
{author}
Produce {block_count} blocks, each a major section (parties and scope, terms, payment,
termination, dispute resolution, governing law, signatures, ...). Use any names,
companies and context from the request directly in the text."""


def build_regenerate_block_prompt(document: dict[str, Any], block_index: int, instructions: str) -> str:
    """User prompt for rewriting a single block of an existing contract."""
    return f"""Here is the current contract:

{json.dumps(document, indent=2)}

Rewrite ONLY block {block_index} (0-based) following these instructions:

"{instructions}"

Return the ENTIRE contract in the same schema with every other block unchanged.
Block {block_index} must still have one signature entry per signature line.
Update "unknowns": drop entries the instructions resolve; add one only if the
instructions introduce a new requirement."""


def build_regenerate_document_prompt(document: dict[str, Any], instructions: str) -> str:
    """User prompt for rewriting the whole contract."""
    return f"""Here is the current contract:

{json.dumps(document, indent=2)}

Rewrite the entire contract following these instructions:

"{instructions}"

Return the complete contract in the same schema and update "unknowns" to match."""


def build_summary_prompt(document: dict[str, Any]) -> str:
    return f"Summarize this contract as a JSON array of exactly 4 strings:\n\n{json.dumps(document, indent=2)}"
