"""
SQL contract repository using SQLAlchemy.

Works against any SQLAlchemy URL; SQLite is the default. The document is
stored as its serialized text blob next to the status and party metadata.
"""

import json
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from clausesign.config import get_settings
from clausesign.engine.codec import dump_document, load_document
from clausesign.errors import CollaboratorUnavailable, VersionConflict
from clausesign.models.contract import (
    Contract,
    ContractParty,
    ContractStatus,
    ContractType,
    CurrentUser,
)
from clausesign.models.document import PartyId
from clausesign.storage.base import ContractRepository

logger = structlog.get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS contracts (
    id VARCHAR(64) PRIMARY KEY,
    title TEXT NOT NULL,
    contract_type VARCHAR(32) NOT NULL,
    owner_id VARCHAR(255) NOT NULL,
    owner_email VARCHAR(255),
    counterparty_email VARCHAR(255),
    prompt TEXT,
    document TEXT NOT NULL,
    parties TEXT NOT NULL,
    summary TEXT,
    status VARCHAR(32) NOT NULL,
    version INTEGER NOT NULL,
    created_at VARCHAR(40) NOT NULL,
    updated_at VARCHAR(40) NOT NULL,
    sent_at VARCHAR(40),
    completed_at VARCHAR(40)
)
"""

COLUMNS = (
    "id, title, contract_type, owner_id, owner_email, counterparty_email, prompt, "
    "document, parties, summary, status, version, created_at, updated_at, sent_at, completed_at"
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLContractRepository(ContractRepository):
    """Contract storage in a single ``contracts`` table."""

    def __init__(self, database_url: str | None = None):
        settings = get_settings()
        self.database_url = database_url or settings.database_url

        self.engine = create_engine(self.database_url, echo=settings.debug, pool_pre_ping=True)
        self.session_factory = sessionmaker(self.engine, expire_on_commit=False)
        self.create_schema()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Get a database session."""
        with self.session_factory() as session:
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise

    def create_schema(self) -> None:
        try:
            with self.session() as session:
                session.execute(text(SCHEMA))
        except SQLAlchemyError as e:
            raise CollaboratorUnavailable("storage", f"Could not initialise schema: {e}") from e

    def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            with self.session() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("storage_health_check_failed", error=str(e))
            return False

    def close(self) -> None:
        self.engine.dispose()

    # =========================================================================
    # Contract Operations
    # =========================================================================

    def load(self, contract_id: str) -> Contract | None:
        try:
            with self.session() as session:
                row = session.execute(
                    text(f"SELECT {COLUMNS} FROM contracts WHERE id = :id"),
                    {"id": contract_id},
                ).mappings().fetchone()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailable("storage", f"Failed to load contract: {e}") from e
        return self._row_to_contract(row) if row else None

    def save(self, contract: Contract, expected_version: int | None = None) -> Contract:
        saved = contract.model_copy(update={"version": (expected_version or 0) + 1})
        params = self._contract_to_params(saved)
        params["expected_version"] = expected_version

        try:
            with self.session() as session:
                if expected_version is None:
                    session.execute(
                        text(f"""
                            INSERT INTO contracts ({COLUMNS}) VALUES (
                                :id, :title, :contract_type, :owner_id, :owner_email,
                                :counterparty_email, :prompt, :document, :parties, :summary,
                                :status, :version, :created_at, :updated_at, :sent_at,
                                :completed_at
                            )
                        """),
                        params,
                    )
                else:
                    result = session.execute(
                        text("""
                            UPDATE contracts SET
                                title = :title, contract_type = :contract_type,
                                owner_email = :owner_email,
                                counterparty_email = :counterparty_email, prompt = :prompt,
                                document = :document, parties = :parties, summary = :summary,
                                status = :status, version = :version,
                                updated_at = :updated_at, sent_at = :sent_at,
                                completed_at = :completed_at
                            WHERE id = :id AND version = :expected_version
                        """),
                        params,
                    )
                    if result.rowcount != 1:
                        raise VersionConflict(
                            f"Contract {contract.id} changed since it was loaded",
                            contract_id=contract.id,
                            expected_version=expected_version,
                        )
        except IntegrityError as e:
            raise VersionConflict(
                f"Contract {contract.id} already exists",
                contract_id=contract.id,
                expected_version=expected_version,
            ) from e
        except SQLAlchemyError as e:
            raise CollaboratorUnavailable("storage", f"Failed to save contract: {e}") from e

        logger.debug("contract_saved", contract_id=saved.id, version=saved.version)
        return saved

    def list_for_user(self, user: CurrentUser) -> list[Contract]:
        try:
            with self.session() as session:
                rows = session.execute(
                    text(f"""
                        SELECT {COLUMNS} FROM contracts
                        WHERE owner_id = :owner_id OR LOWER(counterparty_email) = :email
                        ORDER BY created_at DESC
                    """),
                    {"owner_id": user.id, "email": user.email.strip().lower()},
                ).mappings().fetchall()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailable("storage", f"Failed to list contracts: {e}") from e
        return [self._row_to_contract(row) for row in rows]

    # =========================================================================
    # Row mapping
    # =========================================================================

    def _contract_to_params(self, contract: Contract) -> dict[str, Any]:
        counterparty = contract.party(PartyId.COUNTERPARTY)
        return {
            "id": contract.id,
            "title": contract.title,
            "contract_type": contract.contract_type.value,
            "owner_id": contract.owner_id,
            "owner_email": contract.owner_email,
            "counterparty_email": counterparty.email.strip().lower() if counterparty else None,
            "prompt": contract.prompt,
            "document": dump_document(contract.document),
            "parties": json.dumps([p.model_dump(mode="json") for p in contract.parties]),
            "summary": json.dumps(contract.summary),
            "status": contract.status.value,
            "version": contract.version,
            "created_at": _iso(contract.created_at),
            "updated_at": _iso(contract.updated_at),
            "sent_at": _iso(contract.sent_at),
            "completed_at": _iso(contract.completed_at),
        }

    def _row_to_contract(self, row: Any) -> Contract:
        return Contract(
            id=row["id"],
            title=row["title"],
            contract_type=ContractType(row["contract_type"]),
            owner_id=row["owner_id"],
            owner_email=row["owner_email"] or "",
            prompt=row["prompt"] or "",
            document=load_document(row["document"]),
            parties=[ContractParty.model_validate(p) for p in json.loads(row["parties"])],
            summary=json.loads(row["summary"]) if row["summary"] else [],
            status=ContractStatus(row["status"]),
            version=row["version"],
            created_at=_parse(row["created_at"]),
            updated_at=_parse(row["updated_at"]),
            sent_at=_parse(row["sent_at"]),
            completed_at=_parse(row["completed_at"]),
        )
