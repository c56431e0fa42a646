"""In-memory contract repository for development and tests."""

import threading

import structlog

from clausesign.errors import VersionConflict
from clausesign.models.contract import Contract, CurrentUser
from clausesign.models.document import PartyId
from clausesign.storage.base import ContractRepository

logger = structlog.get_logger(__name__)


class InMemoryContractRepository(ContractRepository):
    """Dict-backed store; copies on the way in and out so callers never share state."""

    def __init__(self):
        self._contracts: dict[str, Contract] = {}
        self._lock = threading.Lock()

    def load(self, contract_id: str) -> Contract | None:
        with self._lock:
            stored = self._contracts.get(contract_id)
            return stored.model_copy(deep=True) if stored else None

    def save(self, contract: Contract, expected_version: int | None = None) -> Contract:
        with self._lock:
            stored = self._contracts.get(contract.id)
            current = stored.version if stored else None
            if current != expected_version:
                raise VersionConflict(
                    f"Contract {contract.id} changed since it was loaded",
                    contract_id=contract.id,
                    expected_version=expected_version,
                    actual_version=current,
                )
            saved = contract.model_copy(deep=True, update={"version": (current or 0) + 1})
            self._contracts[contract.id] = saved
        logger.debug("contract_saved", contract_id=contract.id, version=saved.version)
        return saved.model_copy(deep=True)

    def list_for_user(self, user: CurrentUser) -> list[Contract]:
        email = user.email.strip().lower()
        with self._lock:
            found = [
                c.model_copy(deep=True)
                for c in self._contracts.values()
                if c.owner_id == user.id
                or any(
                    p.role == PartyId.COUNTERPARTY and p.email.strip().lower() == email
                    for p in c.parties
                )
            ]
        return sorted(found, key=lambda c: c.created_at, reverse=True)
