"""
Document Service - document rows, ownership checks and version history.
"""
import json
from typing import Optional, Dict, List, Any

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import Forbidden, NotFound

logger = structlog.get_logger()

DOCUMENT_COLUMNS = """
    id, user_id, organization_id, title, original_content, converted_content,
    conversion_type, document_type, status, credits_used, key_terms, summary, tags,
    original_file, converted_file, file_type, word_count, character_count, metadata,
    is_archived, archived_at, archived_by, archive_reason,
    recalled_at, recalled_by, recall_reason, created_at, updated_at
"""

CONVERSION_TITLES = {
    "legal-to-plain": "Legal to Plain Conversion",
    "plain-to-legal": "Plain to Legal Conversion",
}


class DocumentService:
    """Document operations for one request's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_document(self, document_id: str) -> Dict[str, Any]:
        result = await self.db.execute(
            text(f"SELECT {DOCUMENT_COLUMNS} FROM documents WHERE id = :id"),
            {"id": document_id}
        )
        row = result.mappings().first()
        if not row:
            raise NotFound("Document not found")
        return dict(row)

    async def get_owned_document(self, document_id: str, user_id: str) -> Dict[str, Any]:
        """Fetch a document, 404 when missing and 403 when owned by someone else"""
        document = await self.get_document(document_id)
        if str(document["user_id"]) != str(user_id):
            logger.warning("Document ownership mismatch", document_id=document_id, user_id=user_id)
            raise Forbidden("Unauthorized")
        return document

    async def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            text(f"""
                SELECT {DOCUMENT_COLUMNS} FROM documents
                WHERE user_id = :user_id
                ORDER BY created_at DESC
            """),
            {"user_id": user_id}
        )
        return [dict(row) for row in result.mappings().all()]

    async def create_document(
        self,
        user_id: str,
        title: str,
        original_content: str,
        *,
        status: str = "pending",
        document_type: str = "other",
        conversion_type: Optional[str] = None,
        converted_content: Optional[str] = None,
        credits_used: int = 0,
        key_terms: Optional[List[Any]] = None,
        summary: Optional[str] = None,
        tags: Optional[List[str]] = None,
        organization_id: Optional[str] = None,
        original_file: Optional[str] = None,
        file_type: Optional[str] = None,
        word_count: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        result = await self.db.execute(
            text(f"""
                INSERT INTO documents
                (user_id, organization_id, title, original_content, converted_content,
                 conversion_type, document_type, status, credits_used, key_terms, summary, tags,
                 original_file, file_type, word_count, character_count, metadata)
                VALUES (:user_id, :organization_id, :title, :original_content, :converted_content,
                        :conversion_type, :document_type, :status, :credits_used,
                        CAST(:key_terms AS jsonb), :summary, :tags,
                        :original_file, :file_type, :word_count, :character_count,
                        CAST(:metadata AS jsonb))
                RETURNING {DOCUMENT_COLUMNS}
            """),
            {
                "user_id": user_id, "organization_id": organization_id, "title": title,
                "original_content": original_content, "converted_content": converted_content,
                "conversion_type": conversion_type, "document_type": document_type,
                "status": status, "credits_used": credits_used,
                "key_terms": json.dumps(key_terms) if key_terms is not None else None,
                "summary": summary, "tags": tags or [],
                "original_file": original_file, "file_type": file_type,
                "word_count": word_count if word_count is not None else len(original_content.split()),
                "character_count": len(original_content),
                "metadata": json.dumps(metadata or {}),
            }
        )
        document = dict(result.mappings().one())
        logger.info("Document created", document_id=str(document["id"]), user_id=user_id, status=status)
        return document

    async def complete_conversion(
        self,
        document_id: str,
        converted_content: str,
        conversion_type: str,
        credits_used: int,
        key_terms: Optional[List[Any]] = None,
        summary: Optional[str] = None,
        original_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Store a conversion result; ``original_content`` replaces the source text when given"""
        result = await self.db.execute(
            text(f"""
                UPDATE documents
                SET converted_content = :converted_content, conversion_type = :conversion_type,
                    original_content = COALESCE(:original_content, original_content),
                    word_count = COALESCE(:word_count, word_count),
                    character_count = COALESCE(:character_count, character_count),
                    status = 'completed', credits_used = credits_used + :credits_used,
                    key_terms = CAST(:key_terms AS jsonb), summary = :summary, updated_at = NOW()
                WHERE id = :id
                RETURNING {DOCUMENT_COLUMNS}
            """),
            {
                "id": document_id, "converted_content": converted_content,
                "conversion_type": conversion_type, "credits_used": credits_used,
                "key_terms": json.dumps(key_terms) if key_terms is not None else None,
                "summary": summary,
                "original_content": original_content,
                "word_count": len(original_content.split()) if original_content is not None else None,
                "character_count": len(original_content) if original_content is not None else None,
            }
        )
        row = result.mappings().first()
        if not row:
            raise NotFound("Document not found")
        return dict(row)

    async def set_status(self, document_id: str, status: str):
        await self.db.execute(
            text("UPDATE documents SET status = :status, updated_at = NOW() WHERE id = :id"),
            {"id": document_id, "status": status}
        )

    async def delete_document(self, document_id: str) -> List[str]:
        """Delete the row; returns the storage keys it referenced"""
        result = await self.db.execute(
            text("DELETE FROM documents WHERE id = :id RETURNING original_file, converted_file"),
            {"id": document_id}
        )
        row = result.fetchone()
        if not row:
            raise NotFound("Document not found")
        logger.info("Document deleted", document_id=document_id)
        return [key for key in row if key]

    # Version history

    async def list_versions(self, document_id: str) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            text("""
                SELECT id, document_id, version_number, original_content, converted_content,
                       notes, created_by, created_at
                FROM document_versions
                WHERE document_id = :document_id
                ORDER BY version_number DESC
            """),
            {"document_id": document_id}
        )
        return [dict(row) for row in result.mappings().all()]

    async def create_version(self, document_id: str, created_by: Optional[str] = None,
                             notes: Optional[str] = None) -> Dict[str, Any]:
        """Snapshot the document's current contents as the next version"""
        result = await self.db.execute(
            text("""
                INSERT INTO document_versions
                (document_id, version_number, original_content, converted_content, notes, created_by)
                SELECT d.id,
                       COALESCE((SELECT MAX(version_number) FROM document_versions
                                 WHERE document_id = d.id), 0) + 1,
                       d.original_content, d.converted_content, :notes, :created_by
                FROM documents d WHERE d.id = :document_id
                RETURNING id, document_id, version_number, original_content, converted_content,
                          notes, created_by, created_at
            """),
            {"document_id": document_id, "notes": notes, "created_by": created_by}
        )
        row = result.mappings().first()
        if not row:
            raise NotFound("Document not found")
        logger.info("Document version created", document_id=document_id, version=row["version_number"])
        return dict(row)

    async def restore_version(self, document_id: str, version_id: str,
                              restored_by: Optional[str] = None) -> Dict[str, Any]:
        result = await self.db.execute(
            text("""
                SELECT version_number, original_content, converted_content
                FROM document_versions WHERE id = :version_id AND document_id = :document_id
            """),
            {"version_id": version_id, "document_id": document_id}
        )
        version = result.fetchone()
        if not version:
            raise NotFound("Version not found")

        await self.create_version(document_id, created_by=restored_by,
                                  notes=f"Before restoring version {version[0]}")

        result = await self.db.execute(
            text(f"""
                UPDATE documents
                SET original_content = :original_content, converted_content = :converted_content,
                    word_count = :word_count, character_count = :character_count, updated_at = NOW()
                WHERE id = :id
                RETURNING {DOCUMENT_COLUMNS}
            """),
            {"id": document_id, "original_content": version[1], "converted_content": version[2],
             "word_count": len((version[1] or "").split()), "character_count": len(version[1] or "")}
        )
        logger.info("Document version restored", document_id=document_id, version=version[0])
        return dict(result.mappings().one())
