"""
Conversion Service - convert text, persist the result and charge credits.

Order of operations:
1. validate input and ownership (no writes)
2. check the balance against the estimated cost (402 before any AI call)
3. call the language model
4. write the document, debit the balance and log the usage in one
   transaction; a concurrent spend that empties the balance rolls it back
"""
from dataclasses import dataclass, field
from typing import Optional, List, Any, Dict

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import InsufficientCredits, NotFound, ValidationFailed, UpstreamError
from .converter import CONVERSION_TYPES, LEGAL_TO_PLAIN, LegalTextConverter
from .credits import CreditService, estimate_credits
from .documents import CONVERSION_TITLES, DocumentService

logger = structlog.get_logger()


@dataclass
class ConversionResult:
    converted_text: str
    credits_used: int
    remaining_credits: int
    document_id: str
    key_terms: Optional[List[Any]] = None
    summary: Optional[str] = None
    document: Dict[str, Any] = field(default_factory=dict)


class ConversionService:
    """Conversion and credit accounting for one request's session."""

    def __init__(self, db: AsyncSession, converter: LegalTextConverter):
        self.db = db
        self.converter = converter
        self.credits = CreditService(db)
        self.documents = DocumentService(db)

    async def convert(
        self,
        user_id: str,
        conversion_type: str,
        text: Optional[str] = None,
        document_id: Optional[str] = None,
        title: Optional[str] = None,
        document_type: str = "other",
    ) -> ConversionResult:
        if conversion_type not in CONVERSION_TYPES:
            raise ValidationFailed("Invalid conversion type")

        # Text sent with a document id replaces the stored source
        supplied_text = text
        if document_id:
            document = await self.documents.get_owned_document(document_id, user_id)
            text = text or document["original_content"]

        if not text or not text.strip():
            raise ValidationFailed("Missing required fields")

        balance = await self.credits.get_balance(user_id)
        if balance is None:
            raise NotFound("User not found")

        credits_needed = estimate_credits(len(text), conversion_type)
        if balance < credits_needed:
            logger.info("Conversion rejected for insufficient credits",
                        user_id=user_id, credits_needed=credits_needed, available=balance)
            raise InsufficientCredits(credits_needed, balance)

        try:
            output = await self.converter.convert(text, conversion_type)
        except UpstreamError:
            if document_id:
                await self.documents.set_status(document_id, "failed")
                await self.db.commit()
            raise

        try:
            if document_id:
                document = await self.documents.complete_conversion(
                    document_id,
                    converted_content=output.converted_text,
                    conversion_type=conversion_type,
                    credits_used=credits_needed,
                    key_terms=output.key_terms,
                    summary=output.summary,
                    original_content=supplied_text or None,
                )
            else:
                document = await self.documents.create_document(
                    user_id,
                    title or CONVERSION_TITLES[conversion_type],
                    text,
                    status="completed",
                    document_type=document_type,
                    conversion_type=conversion_type,
                    converted_content=output.converted_text,
                    credits_used=credits_needed,
                    key_terms=output.key_terms,
                    summary=output.summary,
                )

            remaining = await self.credits.charge(
                user_id,
                credits_needed,
                description=f"LegalEase: {conversion_type} conversion",
                document_id=str(document["id"]),
                metadata={"text_length": len(text), "conversion_type": conversion_type},
            )
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Conversion completed",
                    user_id=user_id,
                    document_id=str(document["id"]),
                    conversion_type=conversion_type,
                    credits_used=credits_needed,
                    remaining_credits=remaining)

        return ConversionResult(
            converted_text=output.converted_text,
            credits_used=credits_needed,
            remaining_credits=remaining,
            document_id=str(document["id"]),
            key_terms=output.key_terms if conversion_type == LEGAL_TO_PLAIN else None,
            summary=output.summary if conversion_type == LEGAL_TO_PLAIN else None,
            document=document,
        )
