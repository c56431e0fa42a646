"""
Contract record: the persisted envelope around a DocumentModel.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from clausesign.models.document import DocumentModel, PartyId


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContractStatus(str, Enum):
    """Lifecycle status for a contract."""

    DRAFT = "draft"
    SENT = "sent"
    PENDING = "pending"
    COMPLETED = "completed"


class ContractType(str, Enum):
    """Kind of agreement requested."""

    SERVICE = "service"
    NDA = "nda"
    EMPLOYMENT = "employment"
    LEASE = "lease"
    CUSTOM = "custom"


class CurrentUser(BaseModel):
    """Authenticated caller, as supplied by the auth layer."""

    id: str
    email: str
    name: str = ""


class ContractParty(BaseModel):
    """Real-world identity behind one signing role."""

    name: str = ""
    email: str
    role: PartyId
    signed: bool = False
    signed_at: datetime | None = None


class Contract(BaseModel):
    """
    A drafted agreement and its signing state.

    ``version`` increases by one on every successful save and is used for
    compare-and-swap writes in the storage layer.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    title: str = Field(..., description="Display title")
    contract_type: ContractType = Field(default=ContractType.CUSTOM)
    owner_id: str = Field(..., description="User id of the originating party")
    owner_email: str = ""
    prompt: str = Field(default="", description="Natural-language requirements the draft came from")

    document: DocumentModel = Field(default_factory=DocumentModel)
    parties: list[ContractParty] = Field(default_factory=list)
    summary: list[str] = Field(default_factory=list)

    status: ContractStatus = Field(default=ContractStatus.DRAFT)
    version: int = 0

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    sent_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_frozen(self) -> bool:
        return self.status == ContractStatus.COMPLETED

    def party(self, role: PartyId) -> ContractParty | None:
        for entry in self.parties:
            if entry.role == role:
                return entry
        return None

    def role_for(self, user: CurrentUser) -> PartyId | None:
        """Signing role ``user`` holds on this contract, if any."""
        if user.id == self.owner_id:
            return PartyId.ORIGINATOR
        email = user.email.strip().lower()
        for entry in self.parties:
            if entry.role == PartyId.COUNTERPARTY and entry.email.strip().lower() == email:
                return PartyId.COUNTERPARTY
        return None

    def party_labels(self) -> dict[PartyId, str]:
        """Human-readable label for each role, used on printed signature lines."""
        labels = {PartyId.ORIGINATOR: "Originator", PartyId.COUNTERPARTY: "Counterparty"}
        for entry in self.parties:
            if entry.name:
                labels[entry.role] = entry.name
            elif entry.email:
                labels[entry.role] = entry.email
        return labels
