"""
Domain errors for contract drafting and signing.

Every error carries a stable ``code``, a ``context`` dict that points at the
offending block, ordinal or party, and a ``retryable`` flag so callers can
decide whether to offer a retry.
"""

from typing import Any


class ContractError(Exception):
    """Base exception for contract operations."""

    code = "contract_error"
    retryable = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "detail": self.message,
            "context": self.context,
            "retryable": self.retryable,
        }


class GenerationContractViolation(ContractError):
    """Model output was malformed or its signature counts did not line up."""

    code = "generation_contract_violation"
    retryable = True


class BindingMismatch(ContractError):
    """A block's bindings do not match the signature markers in its text."""

    code = "binding_mismatch"

    def __init__(self, expected: int, actual: int, block_index: int | None = None):
        super().__init__(
            f"Block has {expected} signature marker(s) but {actual} binding(s)",
            expected=expected,
            actual=actual,
            block_index=block_index,
        )
        self.expected = expected
        self.actual = actual
        self.block_index = block_index


class WrongParty(ContractError):
    """A party tried to write into a binding owned by the other party."""

    code = "wrong_party"


class OutOfRange(ContractError):
    """A block, signature ordinal or fill-in field does not exist."""

    code = "out_of_range"


class IncompleteSignatures(ContractError):
    """Finalize or send attempted while signature markers are still blank."""

    code = "incomplete_signatures"

    def __init__(self, message: str, missing: list[tuple[int, int, str]]):
        super().__init__(
            message,
            missing=[
                {"block_index": b, "ordinal": o, "party": p} for b, o, p in missing
            ],
        )
        self.missing = missing


class DocumentFrozen(ContractError):
    """The contract is completed and can no longer change."""

    code = "document_frozen"


class NotEditable(ContractError):
    """The contract's text cannot be changed by this caller in its current state."""

    code = "not_editable"


class VersionConflict(ContractError):
    """The stored contract changed since the caller loaded it."""

    code = "version_conflict"
    retryable = True


class ContractNotFound(ContractError):
    """Unknown contract, or one the caller is not a party to."""

    code = "contract_not_found"


class InvalidSignatureImage(ContractError):
    code = "invalid_signature_image"


class InvalidFieldValue(ContractError):
    code = "invalid_field_value"


class CollaboratorUnavailable(ContractError):
    """A transport failure talking to the LLM, storage, mail or PDF backend."""

    code = "collaborator_unavailable"
    retryable = True

    def __init__(self, service: str, message: str, **context: Any):
        super().__init__(message, service=service, **context)
        self.service = service
