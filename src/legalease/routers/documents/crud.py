"""
Documents CRUD - list, create, read and delete documents
"""
from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query

from ...config import settings
from ...dependencies import get_document_service, get_storage
from ...errors import ValidationFailed
from ...services.documents import DocumentService
from ...services.storage import ObjectStorage
from .models import DocumentCreate, DocumentDelete

logger = structlog.get_logger()
router = APIRouter()


@router.get("")
async def list_documents(
    user_id: Optional[UUID] = Query(default=None, alias="userId"),
    documents: DocumentService = Depends(get_document_service),
):
    """List a user's documents, newest first"""
    if not user_id:
        raise ValidationFailed("Missing userId")
    return {"documents": await documents.list_for_user(str(user_id))}


@router.post("", status_code=201)
async def create_document(
    body: DocumentCreate,
    documents: DocumentService = Depends(get_document_service),
):
    document = await documents.create_document(
        str(body.user_id),
        body.title,
        body.content,
        document_type=body.document_type,
        conversion_type=body.conversion_type,
        tags=body.tags,
        organization_id=str(body.organization_id) if body.organization_id else None,
    )
    return {"success": True, "document": document}


@router.delete("")
async def delete_document(
    body: DocumentDelete,
    documents: DocumentService = Depends(get_document_service),
    storage: ObjectStorage = Depends(get_storage),
):
    """
    Delete a document and its stored files.

    Only the owner may delete; any other caller gets 403 and nothing changes.
    """
    document_id = str(body.document_id)
    await documents.get_owned_document(document_id, str(body.user_id))

    keys = await documents.delete_document(document_id)
    await storage.delete_objects(settings.DOCUMENTS_BUCKET, keys)

    logger.info("Document and files deleted", document_id=document_id, files=len(keys))
    return {"success": True}


@router.get("/{document_id}")
async def get_document(
    document_id: UUID,
    user_id: Optional[UUID] = Query(default=None, alias="userId"),
    documents: DocumentService = Depends(get_document_service),
):
    """Get one document; with ``userId`` the caller must own it"""
    if user_id:
        document = await documents.get_owned_document(str(document_id), str(user_id))
    else:
        document = await documents.get_document(str(document_id))
    return {"document": document}
