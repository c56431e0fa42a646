"""
Services for ClauseSign.

- LLMService: provider access with fallback and retry
- DraftingService: document generation and regeneration
- MailService: SMTP delivery
- ContractService: the contract lifecycle
"""

from clausesign.services.llm_service import LLMService, get_llm_service
from clausesign.services.drafting_service import DraftingService, get_drafting_service
from clausesign.services.mail_service import MailAttachment, MailService, get_mail_service
from clausesign.services.contract_service import ContractService, get_contract_service

__all__ = [
    "LLMService",
    "get_llm_service",
    "DraftingService",
    "get_drafting_service",
    "MailAttachment",
    "MailService",
    "get_mail_service",
    "ContractService",
    "get_contract_service",
]
