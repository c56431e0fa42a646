"""Shared pytest fixtures and mocks for the ClauseSign test suite."""

import pytest
from unittest.mock import MagicMock

from clausesign.markers import FILL_IN_MARKER, SIGNATURE_MARKER
from clausesign.models.contract import CurrentUser
from clausesign.models.document import Block, DocumentModel, PartyId, SignatureBinding
from clausesign.services.contract_service import ContractService
from clausesign.services.drafting_service import DraftingService
from clausesign.storage.memory import InMemoryContractRepository

SIG = SIGNATURE_MARKER
FILL = FILL_IN_MARKER

# Small but valid base64 image data URLs
IMAGE_A = "data:image/png;base64,c2lnbmF0dXJlLWE="
IMAGE_B = "data:image/png;base64,c2lnbmF0dXJlLWI="
PNG_PIXEL = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

FAKE_PDF = b"%PDF-1.4 fake"


# ---------------------------------------------------------------------------
# Singleton cache clearing (autouse)
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clear_singletons():
    """Clear all @lru_cache singletons between tests."""
    from clausesign.services.contract_service import get_contract_service
    from clausesign.services.drafting_service import get_drafting_service
    from clausesign.services.llm_service import get_llm_service
    from clausesign.services.mail_service import get_mail_service
    from clausesign.storage import get_contract_repository

    get_contract_service.cache_clear()
    get_drafting_service.cache_clear()
    get_llm_service.cache_clear()
    get_mail_service.cache_clear()
    get_contract_repository.cache_clear()
    yield


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def owner():
    return CurrentUser(id="user-alice", email="alice@acme.test", name="Alice Smith")


@pytest.fixture
def counterparty_user():
    return CurrentUser(id="user-bob", email="bob@beta.test", name="Bob Jones")


@pytest.fixture
def stranger():
    return CurrentUser(id="user-eve", email="eve@else.test", name="Eve")


@pytest.fixture
def sample_wire():
    """Three-block document in the drafting model's JSON shape."""
    return {
        "blocks": [
            {
                "text": "This Services Agreement is made between Acme Inc. and Beta LLC.",
                "signatures": [],
            },
            {
                "text": f"Client shall pay {FILL} within 30 days of each invoice.",
                "signatures": [],
            },
            {
                "text": f"Acme Inc.: {SIG}\nBeta LLC: {SIG}",
                "signatures": [
                    {"party": "PartyA", "img_url": "", "index": 0},
                    {"party": "PartyB", "img_url": "", "index": 1},
                ],
            },
        ],
        "unknowns": ["Payment amount"],
    }


@pytest.fixture
def sample_document():
    """Same document as ``sample_wire``, built directly."""
    return DocumentModel(
        blocks=[
            Block(text="This Services Agreement is made between Acme Inc. and Beta LLC."),
            Block(text=f"Client shall pay {FILL} within 30 days of each invoice."),
            Block(
                text=f"Acme Inc.: {SIG}\nBeta LLC: {SIG}",
                bindings=[
                    SignatureBinding(party=PartyId.ORIGINATOR, ordinal=0),
                    SignatureBinding(party=PartyId.COUNTERPARTY, ordinal=1),
                ],
            ),
        ],
        unknowns=["Payment amount"],
    )


# ---------------------------------------------------------------------------
# Mock service factories
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_llm(sample_wire):
    """LLMService stand-in whose JSON responses tests can swap."""
    mock = MagicMock()
    mock.generate_json = MagicMock(return_value=(sample_wire, "mock-model"))
    mock.configured = True
    return mock


@pytest.fixture
def drafting(mock_llm):
    return DraftingService(llm=mock_llm)


@pytest.fixture
def repository():
    return InMemoryContractRepository()


@pytest.fixture
def mailer():
    mock = MagicMock()
    mock.send_mail = MagicMock(return_value=True)
    return mock


@pytest.fixture
def pdf_renderer():
    return MagicMock(return_value=FAKE_PDF)


@pytest.fixture
def contract_service(repository, drafting, mailer, pdf_renderer):
    return ContractService(
        repository=repository,
        drafting=drafting,
        mailer=mailer,
        pdf_renderer=pdf_renderer,
    )
