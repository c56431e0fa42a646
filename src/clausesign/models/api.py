"""
API request and response models.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from clausesign.models.contract import Contract, ContractParty, ContractStatus, ContractType
from clausesign.models.document import DocumentModel, PartyId


# =============================================================================
# Requests
# =============================================================================


class GenerateRequest(BaseModel):
    """Request to draft a new contract."""

    prompt: str = Field(..., min_length=1, description="Natural-language description of the agreement")
    title: str | None = Field(default=None, max_length=200)
    contract_type: ContractType = Field(default=ContractType.CUSTOM)


class RegenerateRequest(BaseModel):
    """Instructions for regenerating a block or the whole document."""

    instructions: str = Field(..., min_length=1)
    expected_version: int | None = Field(default=None, ge=1)


class EditBlockRequest(BaseModel):
    text: str
    expected_version: int | None = Field(default=None, ge=1)


class FillInRequest(BaseModel):
    value: str = Field(..., min_length=1)
    expected_version: int | None = Field(default=None, ge=1)


class AssignPartyRequest(BaseModel):
    party: PartyId
    expected_version: int | None = Field(default=None, ge=1)


class SignRequest(BaseModel):
    """Signature capture from the signature pad."""

    image: str = Field(..., description="PNG data URL of the drawn signature")
    expected_version: int | None = Field(default=None, ge=1)


class SendRequest(BaseModel):
    recipient_email: str = Field(..., min_length=3)
    recipient_name: str = ""


# =============================================================================
# Responses
# =============================================================================


class ContractSummaryResponse(BaseModel):
    """Contract listing entry."""

    id: str
    title: str
    contract_type: ContractType
    status: ContractStatus
    version: int
    role: PartyId | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_contract(cls, contract: Contract, role: PartyId | None = None) -> "ContractSummaryResponse":
        return cls(
            id=contract.id,
            title=contract.title,
            contract_type=contract.contract_type,
            status=contract.status,
            version=contract.version,
            role=role,
            created_at=contract.created_at,
            updated_at=contract.updated_at,
        )


class ContractListResponse(BaseModel):
    contracts: list[ContractSummaryResponse]
    total: int


class ContractResponse(BaseModel):
    """Full contract as seen by one party."""

    id: str
    title: str
    contract_type: ContractType
    status: ContractStatus
    version: int
    role: PartyId
    parties: list[ContractParty]
    document: DocumentModel
    view: list[dict[str, Any]] = Field(default_factory=list, description="Interactive spans per block")
    party_complete: bool = False
    document_complete: bool = False
    outstanding: list[dict[str, Any]] = Field(default_factory=list)
    summary: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    sent_at: datetime | None = None
    completed_at: datetime | None = None


class TextResponse(BaseModel):
    contract_id: str
    text: str


class SummaryResponse(BaseModel):
    contract_id: str
    summary: list[str]


class ErrorResponse(BaseModel):
    """Error body for every domain failure."""

    error: str
    detail: str
    context: dict[str, Any] = Field(default_factory=dict)
    retryable: bool = False
