"""
ClauseSign: AI-drafted contracts with inline, per-party signatures.

The core keeps every signature marker in a block's text aligned with its
binding (owning party and captured image) across regeneration, manual
edits and signing, and renders the result as interactive spans, plain
text and a print-ready PDF.
"""

__version__ = "0.1.0"

from clausesign.config import get_settings

__all__ = ["get_settings", "__version__"]
