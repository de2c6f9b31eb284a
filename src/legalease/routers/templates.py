"""
Templates Router - reusable document templates with branding
"""
import json
from typing import Optional, List, Dict, Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..errors import Forbidden, NotFound, ValidationFailed
from ..sql import build_update, update_values

logger = structlog.get_logger()
router = APIRouter()

TEMPLATE_COLUMNS = """
    id, user_id, name, category, description, content, branding_config, legal_clauses,
    is_public, created_at, updated_at
"""

DEFAULT_BRANDING = {"primaryColor": "#1e40af", "secondaryColor": "#3b82f6"}


class TemplateCreate(BaseModel):
    user_id: UUID = Field(..., alias="userId")
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1)
    description: Optional[str] = None
    branding_config: Optional[Dict[str, Any]] = Field(default=None, alias="brandingConfig")
    legal_clauses: Optional[List[Any]] = Field(default=None, alias="legalClauses")

    model_config = ConfigDict(populate_by_name=True)


class TemplateUpdate(BaseModel):
    """Template id, owner, and the fields an update may change"""
    template_id: UUID = Field(..., alias="templateId")
    user_id: UUID = Field(..., alias="userId")
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    content: Optional[str] = None
    branding_config: Optional[Dict[str, Any]] = Field(default=None, alias="brandingConfig")
    legal_clauses: Optional[List[Any]] = Field(default=None, alias="legalClauses")

    model_config = ConfigDict(populate_by_name=True)


class TemplateDelete(BaseModel):
    template_id: UUID = Field(..., alias="templateId")
    user_id: UUID = Field(..., alias="userId")

    model_config = ConfigDict(populate_by_name=True)


async def _require_owner(db: AsyncSession, template_id: str, user_id: str):
    result = await db.execute(
        text("SELECT user_id FROM document_templates WHERE id = :id"),
        {"id": template_id}
    )
    row = result.fetchone()
    if not row:
        raise NotFound("Template not found")
    if str(row[0]) != user_id:
        raise Forbidden("Unauthorized")


@router.get("")
async def list_templates(
    user_id: Optional[UUID] = Query(default=None, alias="userId"),
    include_public: bool = Query(default=False, alias="includePublic"),
    db: AsyncSession = Depends(get_db)
):
    """The user's templates, optionally with public ones; public only without a user"""
    params = {}
    if user_id and include_public:
        where = "user_id = :user_id OR is_public = TRUE"
        params["user_id"] = str(user_id)
    elif user_id:
        where = "user_id = :user_id"
        params["user_id"] = str(user_id)
    else:
        where = "is_public = TRUE"

    result = await db.execute(
        text(f"SELECT {TEMPLATE_COLUMNS} FROM document_templates WHERE {where} ORDER BY created_at DESC"),
        params
    )
    return {"templates": [dict(row) for row in result.mappings().all()]}


@router.post("", status_code=201)
async def create_template(body: TemplateCreate, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        text(f"""
            INSERT INTO document_templates
            (user_id, name, category, description, content, branding_config, legal_clauses, is_public)
            VALUES (:user_id, :name, :category, :description, :content,
                    CAST(:branding_config AS jsonb), CAST(:legal_clauses AS jsonb), FALSE)
            RETURNING {TEMPLATE_COLUMNS}
        """),
        {
            "user_id": str(body.user_id), "name": body.name, "category": body.category,
            "description": body.description, "content": body.content,
            "branding_config": json.dumps(body.branding_config or DEFAULT_BRANDING),
            "legal_clauses": json.dumps(body.legal_clauses or []),
        }
    )
    template = dict(result.mappings().one())
    logger.info("Template created", template_id=str(template["id"]), user_id=str(body.user_id))
    return {"template": template}


@router.put("")
async def update_template(body: TemplateUpdate, db: AsyncSession = Depends(get_db)):
    """Update an owned template; only content fields can change"""
    template_id = str(body.template_id)
    await _require_owner(db, template_id, str(body.user_id))

    values = update_values(body, nullable={"description"})
    values.pop("template_id", None)
    values.pop("user_id", None)
    if not values:
        raise ValidationFailed("No valid fields to update")

    assignments, params = build_update(values, jsonb_fields={"branding_config", "legal_clauses"})
    result = await db.execute(
        text(f"UPDATE document_templates SET {assignments} WHERE id = :id RETURNING {TEMPLATE_COLUMNS}"),
        {**params, "id": template_id}
    )
    logger.info("Template updated", template_id=template_id, fields=sorted(values))
    return {"template": dict(result.mappings().one())}


@router.delete("")
async def delete_template(body: TemplateDelete, db: AsyncSession = Depends(get_db)):
    template_id = str(body.template_id)
    await _require_owner(db, template_id, str(body.user_id))

    await db.execute(text("DELETE FROM document_templates WHERE id = :id"), {"id": template_id})
    logger.info("Template deleted", template_id=template_id)
    return {"success": True}
