"""API routes for drafting and signing contracts."""

from fastapi import APIRouter, Depends, Header, Response

from clausesign.engine.completion import document_is_complete, outstanding_signatures
from clausesign.models.api import (
    AssignPartyRequest,
    ContractListResponse,
    ContractResponse,
    ContractSummaryResponse,
    EditBlockRequest,
    FillInRequest,
    GenerateRequest,
    RegenerateRequest,
    SendRequest,
    SignRequest,
    SummaryResponse,
    TextResponse,
)
from clausesign.models.contract import Contract, CurrentUser
from clausesign.models.document import PartyId
from clausesign.services.contract_service import ContractService, get_contract_service

router = APIRouter(tags=["contracts"])


def get_service() -> ContractService:
    return get_contract_service()


def get_current_user(
    x_user_id: str = Header(..., description="Authenticated user id"),
    x_user_email: str = Header(..., description="Authenticated user email"),
    x_user_name: str = Header("", description="Display name"),
) -> CurrentUser:
    """Caller identity, forwarded by the authenticating proxy."""
    return CurrentUser(id=x_user_id, email=x_user_email, name=x_user_name)


def _contract_response(service: ContractService, contract: Contract, role: PartyId) -> ContractResponse:
    doc = contract.document
    return ContractResponse(
        id=contract.id,
        title=contract.title,
        contract_type=contract.contract_type,
        status=contract.status,
        version=contract.version,
        role=role,
        parties=contract.parties,
        document=doc,
        view=[block.to_dict() for block in service.render_for(contract, role)],
        party_complete=not outstanding_signatures(doc, role),
        document_complete=document_is_complete(doc),
        outstanding=[
            {"block_index": m.block_index, "ordinal": m.ordinal, "party": m.party.value}
            for m in outstanding_signatures(doc)
        ],
        summary=contract.summary,
        created_at=contract.created_at,
        updated_at=contract.updated_at,
        sent_at=contract.sent_at,
        completed_at=contract.completed_at,
    )


def _respond(service: ContractService, contract: Contract, user: CurrentUser) -> ContractResponse:
    return _contract_response(service, contract, contract.role_for(user))


# === Drafting ===

@router.post("/contracts/generate", response_model=ContractResponse, status_code=201)
def generate_contract(
    request: GenerateRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    """Draft a new contract from a natural-language prompt."""
    contract = service.create_contract(
        user, request.prompt, title=request.title, contract_type=request.contract_type
    )
    return _respond(service, contract, user)


@router.get("/contracts", response_model=ContractListResponse)
def list_contracts(
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    """Contracts the caller owns or has been asked to sign."""
    contracts = service.list_contracts(user)
    return ContractListResponse(
        contracts=[ContractSummaryResponse.from_contract(c, c.role_for(user)) for c in contracts],
        total=len(contracts),
    )


@router.get("/contracts/{contract_id}", response_model=ContractResponse)
def get_contract(
    contract_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    contract, role = service.open_contract(contract_id, user)
    return _contract_response(service, contract, role)


@router.get("/contracts/{contract_id}/text", response_model=TextResponse)
def get_contract_text(
    contract_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    return TextResponse(contract_id=contract_id, text=service.plain_text(contract_id, user))


@router.get("/contracts/{contract_id}/summary", response_model=SummaryResponse)
def get_contract_summary(
    contract_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    return SummaryResponse(contract_id=contract_id, summary=service.summarize(contract_id, user))


@router.post("/contracts/{contract_id}/regenerate", response_model=ContractResponse)
def regenerate_contract(
    contract_id: str,
    request: RegenerateRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    """Regenerate the whole contract from new instructions."""
    contract = service.regenerate_document(
        contract_id, user, request.instructions, expected_version=request.expected_version
    )
    return _respond(service, contract, user)


@router.post("/contracts/{contract_id}/blocks/{block_index}/regenerate", response_model=ContractResponse)
def regenerate_block(
    contract_id: str,
    block_index: int,
    request: RegenerateRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    """Regenerate a single block; other blocks are left as they are."""
    contract = service.regenerate_block(
        contract_id,
        user,
        block_index,
        request.instructions,
        expected_version=request.expected_version,
    )
    return _respond(service, contract, user)


# === Editing ===

@router.put("/contracts/{contract_id}/blocks/{block_index}", response_model=ContractResponse)
def edit_block(
    contract_id: str,
    block_index: int,
    request: EditBlockRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    contract = service.edit_block(
        contract_id, user, block_index, request.text, expected_version=request.expected_version
    )
    return _respond(service, contract, user)


@router.put(
    "/contracts/{contract_id}/blocks/{block_index}/fields/{field_index}",
    response_model=ContractResponse,
)
def fill_in_field(
    contract_id: str,
    block_index: int,
    field_index: int,
    request: FillInRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    contract = service.fill_in(
        contract_id,
        user,
        block_index,
        field_index,
        request.value,
        expected_version=request.expected_version,
    )
    return _respond(service, contract, user)


@router.put(
    "/contracts/{contract_id}/blocks/{block_index}/signatures/{ordinal}/party",
    response_model=ContractResponse,
)
def assign_signature_party(
    contract_id: str,
    block_index: int,
    ordinal: int,
    request: AssignPartyRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    contract = service.assign_party(
        contract_id,
        user,
        block_index,
        ordinal,
        request.party,
        expected_version=request.expected_version,
    )
    return _respond(service, contract, user)


# === Signing and delivery ===

@router.post(
    "/contracts/{contract_id}/blocks/{block_index}/signatures/{ordinal}",
    response_model=ContractResponse,
)
def sign(
    contract_id: str,
    block_index: int,
    ordinal: int,
    request: SignRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    """Sign one of the caller's signature lines."""
    contract = service.sign(
        contract_id,
        user,
        block_index,
        ordinal,
        request.image,
        expected_version=request.expected_version,
    )
    return _respond(service, contract, user)


@router.post("/contracts/{contract_id}/send", response_model=ContractResponse)
def send_contract(
    contract_id: str,
    request: SendRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    """Email a signing link to the counterparty."""
    contract = service.send(contract_id, user, request.recipient_email, request.recipient_name)
    return _respond(service, contract, user)


@router.post("/contracts/{contract_id}/finalize", response_model=ContractResponse)
def finalize_contract(
    contract_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    """Complete a fully signed contract and email the PDF to every party."""
    contract = service.finalize(contract_id, user)
    return _respond(service, contract, user)


@router.get("/contracts/{contract_id}/pdf")
def export_pdf(
    contract_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ContractService = Depends(get_service),
):
    filename, content = service.export_pdf(contract_id, user)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
