"""
Contract lifecycle service.

Coordinates the pure document engine with storage, drafting, mail and PDF
rendering. Every mutation loads the contract, computes the new document
with pure functions, and persists it with a compare-and-swap on the version
it loaded, so nothing is written unless every step succeeded.
"""

from functools import lru_cache
from typing import Callable

import structlog

from clausesign.config import get_settings
from clausesign.engine.codec import to_plain_text
from clausesign.engine.completion import (
    ensure_document_complete,
    ensure_party_complete,
    party_is_complete,
)
from clausesign.engine.reconcile import edit_block_text
from clausesign.engine.signing import (
    assign_party,
    capture_signature,
    clear_party_signatures,
    fill_in_field,
)
from clausesign.errors import (
    ContractNotFound,
    DocumentFrozen,
    InvalidFieldValue,
    NotEditable,
    VersionConflict,
)
from clausesign.models.contract import (
    Contract,
    ContractParty,
    ContractStatus,
    ContractType,
    CurrentUser,
    utcnow,
)
from clausesign.models.document import DocumentModel, PartyId
from clausesign.rendering.interactive import RenderedBlock, render_document
from clausesign.rendering.pdf import html_to_pdf
from clausesign.rendering.print_view import render_print_html
from clausesign.services.drafting_service import DraftingService, get_drafting_service
from clausesign.services.mail_service import (
    COMPLETED_SUBJECT,
    SIGN_REQUEST_SUBJECT,
    MailAttachment,
    MailService,
    completed_html,
    get_mail_service,
    sign_request_html,
)
from clausesign.storage import ContractRepository, get_contract_repository

logger = structlog.get_logger(__name__)

TITLE_MAX_LENGTH = 80


def pdf_filename(contract_id: str) -> str:
    return f"contract-{contract_id}.pdf"


def _default_title(prompt: str) -> str:
    first_line = prompt.strip().splitlines()[0] if prompt.strip() else "Untitled contract"
    if len(first_line) <= TITLE_MAX_LENGTH:
        return first_line
    return first_line[: TITLE_MAX_LENGTH - 3].rstrip() + "..."


class ContractService:
    """Drafting, editing, signing and delivery of contracts."""

    def __init__(
        self,
        repository: ContractRepository | None = None,
        drafting: DraftingService | None = None,
        mailer: MailService | None = None,
        pdf_renderer: Callable[[str], bytes] | None = None,
    ):
        self.settings = get_settings()
        self.repository = repository or get_contract_repository()
        self.drafting = drafting or get_drafting_service()
        self.mailer = mailer or get_mail_service()
        self.pdf_renderer = pdf_renderer or html_to_pdf

    # =========================================================================
    # Access helpers
    # =========================================================================

    def open_contract(self, contract_id: str, user: CurrentUser) -> tuple[Contract, PartyId]:
        """Load a contract and the role ``user`` holds on it."""
        contract = self.repository.load(contract_id)
        role = contract.role_for(user) if contract else None
        if contract is None or role is None:
            raise ContractNotFound(f"Contract {contract_id} not found", contract_id=contract_id)
        return contract, role

    def _ensure_mutable(self, contract: Contract) -> None:
        if contract.is_frozen:
            raise DocumentFrozen(
                f"Contract {contract.id} is completed and can no longer change",
                contract_id=contract.id,
            )

    def _ensure_editable(self, contract: Contract, role: PartyId) -> None:
        self._ensure_mutable(contract)
        if role != PartyId.ORIGINATOR:
            raise NotEditable(
                "Only the originating party can change the contract text",
                contract_id=contract.id,
                party=role.value,
            )
        if contract.status != ContractStatus.DRAFT:
            raise NotEditable(
                f"Contract text can only change while in draft (status is {contract.status.value})",
                contract_id=contract.id,
                status=contract.status.value,
            )

    def _check_version(self, contract: Contract, expected_version: int | None) -> None:
        if expected_version is not None and expected_version != contract.version:
            raise VersionConflict(
                f"Contract {contract.id} is at version {contract.version}, not {expected_version}",
                contract_id=contract.id,
                expected_version=expected_version,
                actual_version=contract.version,
            )

    def _commit(self, contract: Contract, document: DocumentModel | None = None, **changes) -> Contract:
        loaded_version = contract.version
        if document is not None:
            changes["document"] = document
        changes["updated_at"] = utcnow()
        return self.repository.save(contract.model_copy(update=changes), expected_version=loaded_version)

    def render_for(self, contract: Contract, role: PartyId) -> list[RenderedBlock]:
        """Interactive view of ``contract`` as seen by ``role``."""
        return render_document(
            contract.document,
            viewer=role,
            frozen=contract.is_frozen,
            editable=role == PartyId.ORIGINATOR and contract.status == ContractStatus.DRAFT,
        )

    # =========================================================================
    # Drafting
    # =========================================================================

    def create_contract(
        self,
        user: CurrentUser,
        prompt: str,
        title: str | None = None,
        contract_type: ContractType = ContractType.CUSTOM,
    ) -> Contract:
        """Draft a new contract from a natural-language request."""
        document = self.drafting.generate_document(prompt, author_name=user.name)
        contract = Contract(
            title=title or _default_title(prompt),
            contract_type=contract_type,
            owner_id=user.id,
            owner_email=user.email,
            prompt=prompt,
            document=document,
            parties=[ContractParty(name=user.name, email=user.email, role=PartyId.ORIGINATOR)],
        )
        saved = self.repository.save(contract)
        logger.info(
            "contract_created",
            contract_id=saved.id,
            owner_id=user.id,
            blocks=len(document.blocks),
        )
        return saved

    def get_contract(self, contract_id: str, user: CurrentUser) -> Contract:
        contract, _ = self.open_contract(contract_id, user)
        return contract

    def list_contracts(self, user: CurrentUser) -> list[Contract]:
        return self.repository.list_for_user(user)

    def regenerate_block(
        self,
        contract_id: str,
        user: CurrentUser,
        block_index: int,
        instructions: str,
        expected_version: int | None = None,
    ) -> Contract:
        contract, role = self.open_contract(contract_id, user)
        self._ensure_editable(contract, role)
        self._check_version(contract, expected_version)

        document = self.drafting.regenerate_block(contract.document, block_index, instructions)
        saved = self._commit(contract, document)
        logger.info("block_regenerated", contract_id=contract_id, block_index=block_index)
        return saved

    def regenerate_document(
        self,
        contract_id: str,
        user: CurrentUser,
        instructions: str,
        expected_version: int | None = None,
    ) -> Contract:
        contract, role = self.open_contract(contract_id, user)
        self._ensure_editable(contract, role)
        self._check_version(contract, expected_version)

        document = self.drafting.regenerate_document(contract.document, instructions)
        saved = self._commit(contract, document)
        logger.info(
            "document_regenerated",
            contract_id=contract_id,
            old_blocks=len(contract.document.blocks),
            new_blocks=len(document.blocks),
        )
        return saved

    # =========================================================================
    # Manual edits
    # =========================================================================

    def edit_block(
        self,
        contract_id: str,
        user: CurrentUser,
        block_index: int,
        text: str,
        expected_version: int | None = None,
    ) -> Contract:
        """Replace a block's text by hand; new signature lines go to the editor, flagged."""
        contract, role = self.open_contract(contract_id, user)
        self._ensure_editable(contract, role)
        self._check_version(contract, expected_version)

        document, change = edit_block_text(contract.document, block_index, text, role)
        saved = self._commit(contract, document)
        logger.info("block_edited", contract_id=contract_id, block_index=block_index, **change.to_dict())
        return saved

    def fill_in(
        self,
        contract_id: str,
        user: CurrentUser,
        block_index: int,
        field_index: int,
        value: str,
        expected_version: int | None = None,
    ) -> Contract:
        contract, role = self.open_contract(contract_id, user)
        self._ensure_editable(contract, role)
        self._check_version(contract, expected_version)

        document = fill_in_field(contract.document, block_index, field_index, value)
        saved = self._commit(contract, document)
        logger.info("field_filled", contract_id=contract_id, block_index=block_index, field_index=field_index)
        return saved

    def assign_party(
        self,
        contract_id: str,
        user: CurrentUser,
        block_index: int,
        ordinal: int,
        party: PartyId,
        expected_version: int | None = None,
    ) -> Contract:
        contract, role = self.open_contract(contract_id, user)
        self._ensure_editable(contract, role)
        self._check_version(contract, expected_version)

        document = assign_party(contract.document, block_index, ordinal, party)
        saved = self._commit(contract, document)
        logger.info(
            "signature_assigned",
            contract_id=contract_id,
            block_index=block_index,
            ordinal=ordinal,
            party=PartyId(party).value,
        )
        return saved

    # =========================================================================
    # Signing
    # =========================================================================

    def sign(
        self,
        contract_id: str,
        user: CurrentUser,
        block_index: int,
        ordinal: int,
        image: str,
        expected_version: int | None = None,
    ) -> Contract:
        """Capture the caller's signature into one of their signature lines."""
        contract, role = self.open_contract(contract_id, user)
        self._ensure_mutable(contract)
        self._check_version(contract, expected_version)

        document = capture_signature(contract.document, block_index, ordinal, role, image)

        changes: dict = {}
        if role == PartyId.COUNTERPARTY and contract.status == ContractStatus.SENT:
            changes["status"] = ContractStatus.PENDING

        complete = party_is_complete(document, role)
        parties = []
        for entry in contract.parties:
            if entry.role == role:
                entry = entry.model_copy(
                    update={
                        "signed": complete,
                        "signed_at": (entry.signed_at or utcnow()) if complete else None,
                    }
                )
            parties.append(entry)
        changes["parties"] = parties

        saved = self._commit(contract, document, **changes)
        logger.info(
            "contract_signed",
            contract_id=contract_id,
            party=role.value,
            party_complete=complete,
            status=saved.status.value,
        )
        return saved

    # =========================================================================
    # Delivery
    # =========================================================================

    def send(
        self,
        contract_id: str,
        user: CurrentUser,
        recipient_email: str,
        recipient_name: str = "",
    ) -> Contract:
        """
        Dispatch the contract to the counterparty for signing.

        The originator must have signed every one of their own signature
        lines first. Re-sending to a new address replaces the counterparty
        and discards any signatures the previous one captured.
        """
        contract, role = self.open_contract(contract_id, user)
        self._ensure_mutable(contract)
        if role != PartyId.ORIGINATOR:
            raise NotEditable(
                "Only the originating party can send the contract",
                contract_id=contract_id,
                party=role.value,
            )
        recipient_email = recipient_email.strip()
        if not recipient_email or "@" not in recipient_email:
            raise InvalidFieldValue("A valid recipient email is required", recipient=recipient_email)

        ensure_party_complete(contract.document, PartyId.ORIGINATOR)

        document = contract.document
        previous = contract.party(PartyId.COUNTERPARTY)
        if previous is not None and previous.email.strip().lower() == recipient_email.lower():
            counterparty = previous.model_copy(update={"name": recipient_name or previous.name})
        else:
            counterparty = ContractParty(
                name=recipient_name, email=recipient_email, role=PartyId.COUNTERPARTY
            )
            if previous is not None:
                # A new counterparty starts with every PartyB line unsigned.
                document, cleared = clear_party_signatures(document, PartyId.COUNTERPARTY)
                logger.info(
                    "counterparty_replaced",
                    contract_id=contract_id,
                    previous=previous.email,
                    cleared_signatures=len(cleared),
                )

        parties = [p for p in contract.parties if p.role != PartyId.COUNTERPARTY]
        parties.append(counterparty)
        saved = self._commit(
            contract,
            document,
            parties=parties,
            status=ContractStatus.SENT,
            sent_at=utcnow(),
        )

        sign_url = f"{self.settings.signing_url_base}/{saved.id}"
        self.mailer.send_mail(
            recipient_email,
            SIGN_REQUEST_SUBJECT,
            sign_request_html(sign_url, saved.title, user.name),
        )
        logger.info("contract_sent", contract_id=contract_id, recipient=recipient_email)
        return saved

    def finalize(self, contract_id: str, user: CurrentUser) -> Contract:
        """
        Complete the contract once every signature line is signed.

        The PDF is rendered before anything is written; once the contract is
        stored as completed, the PDF is emailed to every party.
        """
        contract, _ = self.open_contract(contract_id, user)
        self._ensure_mutable(contract)
        ensure_document_complete(contract.document)

        now = utcnow()
        pdf_bytes = self._render_pdf(contract)
        parties = [
            p.model_copy(update={"signed": True, "signed_at": p.signed_at or now})
            for p in contract.parties
        ]
        saved = self._commit(
            contract,
            parties=parties,
            status=ContractStatus.COMPLETED,
            completed_at=now,
        )
        logger.info("contract_finalized", contract_id=contract_id)

        recipients = [p.email for p in saved.parties if p.email]
        if recipients:
            self.mailer.send_mail(
                recipients,
                COMPLETED_SUBJECT,
                completed_html(saved.title),
                [MailAttachment(filename=pdf_filename(saved.id), content=pdf_bytes)],
            )
        return saved

    # =========================================================================
    # Views
    # =========================================================================

    def _render_pdf(self, contract: Contract) -> bytes:
        html = render_print_html(
            contract.document,
            contract_id=contract.id,
            title=contract.title,
            party_labels=contract.party_labels(),
        )
        return self.pdf_renderer(html)

    def export_pdf(self, contract_id: str, user: CurrentUser) -> tuple[str, bytes]:
        """Returns (suggested filename, PDF bytes)."""
        contract, _ = self.open_contract(contract_id, user)
        return pdf_filename(contract.id), self._render_pdf(contract)

    def plain_text(self, contract_id: str, user: CurrentUser) -> str:
        contract, _ = self.open_contract(contract_id, user)
        return to_plain_text(contract.document)

    def summarize(self, contract_id: str, user: CurrentUser) -> list[str]:
        """Four-point summary, stored on the contract as metadata."""
        contract, _ = self.open_contract(contract_id, user)
        points = self.drafting.summarize(contract.document)
        if points != contract.summary:
            self._commit(contract, summary=points)
        return points


@lru_cache()
def get_contract_service() -> ContractService:
    """Get cached contract service singleton."""
    return ContractService()
