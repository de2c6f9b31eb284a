"""
Reports Router - organization analytics
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db

router = APIRouter()


@router.get("/analytics")
async def get_analytics(
    organization_id: Optional[UUID] = Query(default=None),
    db: AsyncSession = Depends(get_db)
):
    """
    Document and approval analytics.

    Scoped to one organization when ``organization_id`` is given, otherwise
    across all documents. Team counts go through team membership: a document
    counts for every team its owner belongs to.
    """
    params = {}
    doc_filter = ""
    approval_filter = ""
    team_filter = ""
    if organization_id:
        params["organization_id"] = str(organization_id)
        doc_filter = "AND d.organization_id = :organization_id"
        approval_filter = "AND d2.organization_id = :organization_id"
        team_filter = "WHERE t.organization_id = :organization_id"

    result = await db.execute(
        text(f"""
            SELECT
                COUNT(*) AS total_documents,
                COUNT(DISTINCT d.user_id) AS active_users,
                COUNT(*) FILTER (WHERE d.is_archived) AS archived_documents,
                (SELECT COUNT(*) FROM document_approvals a
                 JOIN documents d2 ON d2.id = a.document_id
                 WHERE a.status = 'pending'
                 {approval_filter}) AS pending_approvals
            FROM documents d
            WHERE 1=1 {doc_filter}
        """),
        params
    )
    summary = dict(result.mappings().one())

    result = await db.execute(
        text(f"""
            SELECT d.document_type, COUNT(*) AS count
            FROM documents d
            WHERE 1=1 {doc_filter}
            GROUP BY d.document_type
            ORDER BY count DESC
        """),
        params
    )
    by_type = {row["document_type"]: row["count"] for row in result.mappings().all()}

    result = await db.execute(
        text(f"""
            SELECT d.status, COUNT(*) AS count
            FROM documents d
            WHERE 1=1 {doc_filter}
            GROUP BY d.status
            ORDER BY count DESC
        """),
        params
    )
    by_status = {row["status"]: row["count"] for row in result.mappings().all()}

    result = await db.execute(
        text(f"""
            SELECT t.id, t.name, COUNT(d.id) AS document_count
            FROM teams t
            LEFT JOIN team_members m ON m.team_id = t.id
            LEFT JOIN documents d ON d.user_id = m.user_id {doc_filter}
            {team_filter}
            GROUP BY t.id, t.name
            ORDER BY document_count DESC, t.name
        """),
        params
    )
    teams = [
        {"teamId": str(row["id"]), "name": row["name"], "documentCount": row["document_count"]}
        for row in result.mappings().all()
    ]

    return {
        "summary": {
            "totalDocuments": summary["total_documents"],
            "activeUsers": summary["active_users"],
            "pendingApprovals": summary["pending_approvals"],
            "archivedDocuments": summary["archived_documents"],
        },
        "documentsByType": by_type,
        "documentsByStatus": by_status,
        "teamStats": teams,
    }
