"""Storage interface for contract records."""

from abc import ABC, abstractmethod

from clausesign.models.contract import Contract, CurrentUser


class ContractRepository(ABC):
    """
    Persistence boundary for contracts.

    ``save`` is a compare-and-swap on ``Contract.version``: it succeeds only
    if the stored version still equals ``expected_version`` (None for a new
    contract), then stores the record with its version incremented.
    """

    @abstractmethod
    def load(self, contract_id: str) -> Contract | None:
        """Get a contract by ID."""

    @abstractmethod
    def save(self, contract: Contract, expected_version: int | None = None) -> Contract:
        """Persist ``contract`` and return it with its new version."""

    @abstractmethod
    def list_for_user(self, user: CurrentUser) -> list[Contract]:
        """Contracts the user owns or has been asked to sign, newest first."""

    def health_check(self) -> bool:
        return True
