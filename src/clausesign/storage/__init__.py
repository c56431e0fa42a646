"""
Storage adapters for ClauseSign.

STORAGE_BACKEND selects the repository: ``memory`` (default) or ``sql``.
"""

from functools import lru_cache

from clausesign.config import get_settings
from clausesign.storage.base import ContractRepository
from clausesign.storage.memory import InMemoryContractRepository
from clausesign.storage.sql import SQLContractRepository


@lru_cache()
def get_contract_repository() -> ContractRepository:
    """Get cached repository singleton for the configured backend."""
    backend = get_settings().storage_backend.lower()
    if backend == "memory":
        return InMemoryContractRepository()
    if backend == "sql":
        return SQLContractRepository()
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")


__all__ = [
    "ContractRepository",
    "InMemoryContractRepository",
    "SQLContractRepository",
    "get_contract_repository",
]
