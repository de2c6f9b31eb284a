"""
Convert Router - legal/plain conversion charged against the credit balance
"""
from typing import Optional, List, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from ..dependencies import get_conversion_service
from ..services.conversion import ConversionService

router = APIRouter()


class ConvertRequest(BaseModel):
    text: Optional[str] = None
    conversion_type: str = Field(..., alias="conversionType")
    user_id: UUID = Field(..., alias="userId")
    document_id: Optional[UUID] = Field(default=None, alias="documentId")
    title: Optional[str] = Field(default=None, max_length=255)
    document_type: str = Field(default="other", alias="documentType",
                               pattern="^(contract|agreement|terms|policy|other)$")

    model_config = ConfigDict(populate_by_name=True)


class ConvertResponse(BaseModel):
    success: bool = True
    converted_text: str = Field(..., serialization_alias="convertedText")
    key_terms: Optional[List[Any]] = Field(default=None, serialization_alias="keyTerms")
    summary: Optional[str] = None
    credits_used: int = Field(..., serialization_alias="creditsUsed")
    remaining_credits: int = Field(..., serialization_alias="remainingCredits")
    document_id: str = Field(..., serialization_alias="documentId")


@router.post("", response_model=ConvertResponse, response_model_by_alias=True)
async def convert(
    body: ConvertRequest,
    service: ConversionService = Depends(get_conversion_service),
):
    """
    Convert text between legal and plain language.

    The balance is checked before the language model is called and debited
    only after a successful conversion.
    """
    result = await service.convert(
        user_id=str(body.user_id),
        conversion_type=body.conversion_type,
        text=body.text,
        document_id=str(body.document_id) if body.document_id else None,
        title=body.title,
        document_type=body.document_type,
    )
    return ConvertResponse(
        converted_text=result.converted_text,
        key_terms=result.key_terms,
        summary=result.summary,
        credits_used=result.credits_used,
        remaining_credits=result.remaining_credits,
        document_id=result.document_id,
    )
