"""
Services module - Business logic layer.

Contains:
- Language model client, prompts and the legal/plain converter
- Credit accounting and the conversion workflow
- Documents, versions and approvals
- Object storage and text extraction
"""

from .approvals import ApprovalService
from .conversion import ConversionService, ConversionResult
from .converter import LegalTextConverter, ConversionOutput
from .credits import CreditService, estimate_credits
from .documents import DocumentService
from .llm import LLMClient, LLMResponse
from .storage import ObjectStorage
from .text_extraction import ExtractedText, extract_text

__all__ = [
    "ApprovalService",
    "ConversionService",
    "ConversionResult",
    "LegalTextConverter",
    "ConversionOutput",
    "CreditService",
    "estimate_credits",
    "DocumentService",
    "LLMClient",
    "LLMResponse",
    "ObjectStorage",
    "ExtractedText",
    "extract_text",
]
