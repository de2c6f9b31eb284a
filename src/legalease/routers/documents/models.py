"""
Documents Models - Pydantic models for document endpoints
"""
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DocumentCreate(BaseModel):
    """Create a document without converting it"""
    user_id: UUID = Field(..., alias="userId")
    title: str = Field(..., min_length=1, max_length=255)
    content: str
    document_type: str = Field(default="other", alias="documentType",
                               pattern="^(contract|agreement|terms|policy|other)$")
    conversion_type: Optional[str] = Field(default=None, alias="conversionType",
                                           pattern="^(legal-to-plain|plain-to-legal)$")
    tags: List[str] = Field(default_factory=list)
    organization_id: Optional[UUID] = Field(default=None, alias="organizationId")

    model_config = ConfigDict(populate_by_name=True)


class DocumentDelete(BaseModel):
    document_id: UUID = Field(..., alias="documentId")
    user_id: UUID = Field(..., alias="userId")

    model_config = ConfigDict(populate_by_name=True)


class VersionCreate(BaseModel):
    notes: Optional[str] = None
    created_by: Optional[UUID] = Field(default=None, alias="createdBy")

    model_config = ConfigDict(populate_by_name=True)


class VersionRestore(BaseModel):
    restored_by: Optional[UUID] = Field(default=None, alias="restoredBy")

    model_config = ConfigDict(populate_by_name=True)
