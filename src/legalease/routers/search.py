"""
Search Router - filtered document search
"""
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..services.documents import DOCUMENT_COLUMNS

router = APIRouter()


def parse_tags(raw: Optional[str]) -> List[str]:
    return [tag.strip() for tag in (raw or "").split(",") if tag.strip()]


def escape_like(value: str) -> str:
    """Match ``value`` literally inside an ILIKE pattern with ESCAPE '\\'"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_filters(
    q: Optional[str] = None,
    user_id: Optional[str] = None,
    organization_id: Optional[str] = None,
    document_type: Optional[str] = None,
    status: Optional[str] = None,
    is_archived: Optional[bool] = None,
    created_after: Optional[datetime] = None,
    created_before: Optional[datetime] = None,
    tags: Optional[List[str]] = None,
) -> Tuple[str, Dict[str, Any]]:
    """One predicate per provided filter, ANDed together"""
    conditions = ["1=1"]
    params: Dict[str, Any] = {}

    if q:
        conditions.append(
            r"(title ILIKE :q ESCAPE '\' OR original_content ILIKE :q ESCAPE '\'"
            r" OR converted_content ILIKE :q ESCAPE '\')"
        )
        params["q"] = f"%{escape_like(q)}%"
    if user_id:
        conditions.append("user_id = :user_id")
        params["user_id"] = user_id
    if organization_id:
        conditions.append("organization_id = :organization_id")
        params["organization_id"] = organization_id
    if document_type:
        conditions.append("document_type = :document_type")
        params["document_type"] = document_type
    if status:
        conditions.append("status = :status")
        params["status"] = status
    if is_archived is not None:
        conditions.append("is_archived = :is_archived")
        params["is_archived"] = is_archived
    if created_after:
        conditions.append("created_at >= :created_after")
        params["created_after"] = created_after
    if created_before:
        conditions.append("created_at <= :created_before")
        params["created_before"] = created_before
    if tags:
        conditions.append("tags @> CAST(:tags AS text[])")
        params["tags"] = tags

    return " AND ".join(conditions), params


@router.get("")
async def search_documents(
    q: Optional[str] = Query(default=None),
    user_id: Optional[UUID] = Query(default=None),
    organization_id: Optional[UUID] = Query(default=None),
    document_type: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    is_archived: Optional[bool] = Query(default=None),
    created_after: Optional[datetime] = Query(default=None),
    created_before: Optional[datetime] = Query(default=None),
    tags: Optional[str] = Query(default=None, description="Comma separated; all must match"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    """Search documents, newest first"""
    where, params = build_filters(
        q=q.strip() if q else None,
        user_id=str(user_id) if user_id else None,
        organization_id=str(organization_id) if organization_id else None,
        document_type=document_type,
        status=status,
        is_archived=is_archived,
        created_after=created_after,
        created_before=created_before,
        tags=parse_tags(tags),
    )

    count_result = await db.execute(text(f"SELECT COUNT(*) FROM documents WHERE {where}"), params)
    total = count_result.scalar() or 0

    result = await db.execute(
        text(f"""
            SELECT {DOCUMENT_COLUMNS} FROM documents
            WHERE {where}
            ORDER BY created_at DESC
            LIMIT :limit OFFSET :offset
        """),
        {**params, "limit": limit, "offset": offset}
    )
    documents = [dict(row) for row in result.mappings().all()]

    return {"documents": documents, "total": total, "limit": limit, "offset": offset}
