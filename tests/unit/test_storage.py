"""Tests for clausesign/storage — in-memory and SQL repositories."""

from datetime import timedelta

import pytest

from clausesign.errors import VersionConflict
from clausesign.models.contract import Contract, ContractParty, ContractStatus, utcnow
from clausesign.models.document import PartyId
from clausesign.storage import get_contract_repository
from clausesign.storage.memory import InMemoryContractRepository
from clausesign.storage.sql import SQLContractRepository

IMAGE = "data:image/png;base64,c2lnbmF0dXJlLWE="


@pytest.fixture(params=["memory", "sql"])
def repo(request, tmp_path):
    if request.param == "memory":
        yield InMemoryContractRepository()
    else:
        repository = SQLContractRepository(f"sqlite:///{tmp_path / 'contracts.db'}")
        yield repository
        repository.close()


@pytest.fixture
def contract(sample_document, owner):
    document = sample_document.model_copy(deep=True)
    document.blocks[2].bindings[0].image_data = IMAGE
    document.blocks[2].bindings[1].confirmed = False
    return Contract(
        title="Services Agreement",
        owner_id=owner.id,
        owner_email=owner.email,
        prompt="Services agreement",
        document=document,
        parties=[ContractParty(name=owner.name, email=owner.email, role=PartyId.ORIGINATOR)],
        summary=["one", "two", "three", "four"],
    )


class TestSaveLoad:

    def test_new_contract_gets_version_one(self, repo, contract):
        saved = repo.save(contract)
        assert saved.version == 1

    def test_round_trip(self, repo, contract):
        repo.save(contract)
        loaded = repo.load(contract.id)
        assert loaded.document == contract.document
        assert loaded.document.blocks[2].bindings[1].confirmed is False
        assert loaded.parties == contract.parties
        assert loaded.summary == contract.summary
        assert loaded.created_at == contract.created_at
        assert loaded.version == 1

    def test_missing(self, repo):
        assert repo.load("nope") is None

    def test_update_increments_version(self, repo, contract):
        saved = repo.save(contract)
        updated = repo.save(
            saved.model_copy(update={"status": ContractStatus.SENT}), expected_version=saved.version
        )
        assert updated.version == 2
        assert repo.load(contract.id).status == ContractStatus.SENT

    def test_loaded_copy_is_independent(self, repo, contract):
        repo.save(contract)
        loaded = repo.load(contract.id)
        loaded.document.blocks[2].bindings[0].image_data = None
        assert repo.load(contract.id).document.blocks[2].bindings[0].image_data == IMAGE

    def test_health_check(self, repo):
        assert repo.health_check() is True


class TestCompareAndSwap:

    def test_stale_write_rejected(self, repo, contract):
        saved = repo.save(contract)
        repo.save(saved.model_copy(update={"title": "First"}), expected_version=1)

        with pytest.raises(VersionConflict):
            repo.save(saved.model_copy(update={"title": "Second"}), expected_version=1)
        assert repo.load(contract.id).title == "First"

    def test_duplicate_create_rejected(self, repo, contract):
        repo.save(contract)
        with pytest.raises(VersionConflict):
            repo.save(contract)

    def test_update_of_unknown_contract_rejected(self, repo, contract):
        with pytest.raises(VersionConflict):
            repo.save(contract, expected_version=3)


class TestListForUser:

    def test_owner_and_counterparty(self, repo, contract, owner, counterparty_user, stranger):
        older = contract.model_copy(
            update={"id": "older", "created_at": contract.created_at - timedelta(days=1)}
        )
        shared = contract.model_copy(
            update={
                "parties": contract.parties
                + [ContractParty(email="Bob@Beta.test", role=PartyId.COUNTERPARTY)]
            }
        )
        repo.save(older)
        repo.save(shared)

        assert [c.id for c in repo.list_for_user(owner)] == [shared.id, "older"]
        assert [c.id for c in repo.list_for_user(counterparty_user)] == [shared.id]
        assert repo.list_for_user(stranger) == []


class TestFactory:

    def test_memory_default(self):
        assert isinstance(get_contract_repository(), InMemoryContractRepository)

    def test_singleton(self):
        assert get_contract_repository() is get_contract_repository()

    def test_unknown_backend(self, monkeypatch):
        from clausesign.config import settings

        monkeypatch.setattr(settings, "storage_backend", "cassandra")
        with pytest.raises(ValueError):
            get_contract_repository()


def test_utcnow_is_aware():
    assert utcnow().tzinfo is not None
