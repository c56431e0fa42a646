"""
Pydantic models for ClauseSign.

- Document models: blocks, signature bindings and parties
- Contract models: the persisted record and its lifecycle
- API models: request/response schemas
"""

from clausesign.models.document import Block, DocumentModel, PartyId, SignatureBinding
from clausesign.models.contract import (
    Contract,
    ContractParty,
    ContractStatus,
    ContractType,
    CurrentUser,
)

__all__ = [
    # Document models
    "Block",
    "DocumentModel",
    "PartyId",
    "SignatureBinding",
    # Contract models
    "Contract",
    "ContractParty",
    "ContractStatus",
    "ContractType",
    "CurrentUser",
]
