"""
Documents Versions - snapshot and restore document contents
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from ...dependencies import get_document_service
from ...services.documents import DocumentService
from .models import VersionCreate, VersionRestore

router = APIRouter()


@router.get("/{document_id}/versions")
async def list_versions(document_id: UUID, documents: DocumentService = Depends(get_document_service)):
    await documents.get_document(str(document_id))
    return {"versions": await documents.list_versions(str(document_id))}


@router.post("/{document_id}/versions", status_code=201)
async def create_version(
    document_id: UUID,
    body: Optional[VersionCreate] = None,
    documents: DocumentService = Depends(get_document_service),
):
    body = body or VersionCreate()
    version = await documents.create_version(
        str(document_id),
        created_by=str(body.created_by) if body.created_by else None,
        notes=body.notes,
    )
    return {"success": True, "version": version}


@router.post("/{document_id}/versions/{version_id}/restore")
async def restore_version(
    document_id: UUID,
    version_id: UUID,
    body: Optional[VersionRestore] = None,
    documents: DocumentService = Depends(get_document_service),
):
    """Snapshot the current contents, then copy the chosen version back"""
    body = body or VersionRestore()
    document = await documents.restore_version(
        str(document_id),
        str(version_id),
        restored_by=str(body.restored_by) if body.restored_by else None,
    )
    return {"success": True, "document": document}
