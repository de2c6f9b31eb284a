"""
Archive Router - archive documents and recall them from the archive
"""
from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..errors import NotFound
from ..services.documents import DOCUMENT_COLUMNS

logger = structlog.get_logger()
router = APIRouter()


class ArchiveRequest(BaseModel):
    document_id: UUID
    archived_by: Optional[UUID] = None
    archive_reason: Optional[str] = None


class RecallRequest(BaseModel):
    recalled_by: Optional[UUID] = None
    recall_reason: Optional[str] = None


@router.get("")
async def list_archived(
    organization_id: Optional[UUID] = Query(default=None),
    archived_by: Optional[UUID] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
):
    """List archived documents, most recently archived first"""
    query = f"SELECT {DOCUMENT_COLUMNS} FROM documents WHERE is_archived = TRUE"
    params = {"limit": limit}

    if organization_id:
        query += " AND organization_id = :organization_id"
        params["organization_id"] = str(organization_id)

    if archived_by:
        query += " AND archived_by = :archived_by"
        params["archived_by"] = str(archived_by)

    query += " ORDER BY archived_at DESC LIMIT :limit"

    result = await db.execute(text(query), params)
    documents = [dict(row) for row in result.mappings().all()]
    return {"documents": documents, "total": len(documents)}


@router.post("")
async def archive_document(body: ArchiveRequest, db: AsyncSession = Depends(get_db)):
    """
    Archive a document.

    Archiving an already archived document leaves it archived and keeps the
    original archive timestamp. A repeat call that omits the actor or the
    reason keeps the stored value.
    """
    result = await db.execute(
        text(f"""
            UPDATE documents
            SET is_archived = TRUE,
                archived_at = CASE WHEN is_archived THEN archived_at ELSE NOW() END,
                archived_by = CASE WHEN is_archived THEN COALESCE(:archived_by, archived_by) ELSE :archived_by END,
                archive_reason = CASE WHEN is_archived THEN COALESCE(:archive_reason, archive_reason) ELSE :archive_reason END,
                updated_at = NOW()
            WHERE id = :id
            RETURNING {DOCUMENT_COLUMNS}
        """),
        {
            "id": str(body.document_id),
            "archived_by": str(body.archived_by) if body.archived_by else None,
            "archive_reason": body.archive_reason,
        }
    )
    row = result.mappings().first()
    if not row:
        raise NotFound("Document not found")

    logger.info("Document archived", document_id=str(body.document_id))
    return {"success": True, "document": dict(row)}


@router.post("/{document_id}/recall")
async def recall_document(
    document_id: UUID,
    body: Optional[RecallRequest] = None,
    db: AsyncSession = Depends(get_db)
):
    """Bring an archived document back; 404 when it is missing or not archived"""
    body = body or RecallRequest()
    result = await db.execute(
        text(f"""
            UPDATE documents
            SET is_archived = FALSE,
                archived_at = NULL,
                archived_by = NULL,
                archive_reason = NULL,
                recalled_at = NOW(),
                recalled_by = :recalled_by,
                recall_reason = :recall_reason,
                updated_at = NOW()
            WHERE id = :id AND is_archived = TRUE
            RETURNING {DOCUMENT_COLUMNS}
        """),
        {
            "id": str(document_id),
            "recalled_by": str(body.recalled_by) if body.recalled_by else None,
            "recall_reason": body.recall_reason,
        }
    )
    row = result.mappings().first()
    if not row:
        raise NotFound("Document not found or not archived")

    logger.info("Document recalled", document_id=str(document_id))
    return {"success": True, "document": dict(row)}
