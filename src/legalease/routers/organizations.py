"""
Organizations Router - tenants, their members and teams
"""
import re
from typing import Optional, List, Dict, Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..errors import Conflict, NotFound, ValidationFailed
from ..sql import build_update, update_values

logger = structlog.get_logger()
router = APIRouter()

ORGANIZATION_COLUMNS = """
    id, name, slug, plan, max_users, max_documents, max_storage_gb, features, settings,
    billing_email, subscription_status, created_at, updated_at
"""

JSONB_FIELDS = {"features", "settings"}

PLAN_PATTERN = "^(free|starter|professional|enterprise)$"


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, pattern="^[a-z0-9-]+$", max_length=100)
    plan: str = Field(default="free", pattern=PLAN_PATTERN)
    billing_email: Optional[str] = None
    owner_id: Optional[UUID] = None


class OrganizationUpdate(BaseModel):
    """Fields an organization update may change; anything else is ignored"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    plan: Optional[str] = Field(default=None, pattern=PLAN_PATTERN)
    max_users: Optional[int] = Field(default=None, ge=1)
    max_documents: Optional[int] = Field(default=None, ge=0)
    max_storage_gb: Optional[int] = Field(default=None, ge=0)
    features: Optional[List[str]] = None
    settings: Optional[Dict[str, Any]] = None
    billing_email: Optional[str] = None
    subscription_status: Optional[str] = Field(default=None, pattern="^(active|trialing|past_due|canceled)$")


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "organization"


@router.get("")
async def list_organizations(
    plan: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db)
):
    query = f"SELECT {ORGANIZATION_COLUMNS} FROM organizations WHERE 1=1"
    params = {}
    if plan:
        query += " AND plan = :plan"
        params["plan"] = plan
    query += " ORDER BY created_at DESC"

    result = await db.execute(text(query), params)
    return {"organizations": [dict(row) for row in result.mappings().all()]}


@router.post("", status_code=201)
async def create_organization(body: OrganizationCreate, db: AsyncSession = Depends(get_db)):
    """Create an organization; the owner, when given, joins with the ``owner`` role"""
    slug = body.slug or slugify(body.name)

    result = await db.execute(text("SELECT id FROM organizations WHERE slug = :slug"), {"slug": slug})
    if result.fetchone():
        raise Conflict("Organization slug already taken", slug=slug)

    result = await db.execute(
        text(f"""
            INSERT INTO organizations (name, slug, plan, billing_email)
            VALUES (:name, :slug, :plan, :billing_email)
            RETURNING {ORGANIZATION_COLUMNS}
        """),
        {"name": body.name, "slug": slug, "plan": body.plan, "billing_email": body.billing_email}
    )
    organization = dict(result.mappings().one())

    if body.owner_id:
        await db.execute(
            text("""
                INSERT INTO organization_members (organization_id, user_id, role)
                VALUES (:organization_id, :user_id, 'owner')
            """),
            {"organization_id": organization["id"], "user_id": str(body.owner_id)}
        )

    logger.info("Organization created", organization_id=str(organization["id"]), slug=slug)
    return {"success": True, "organization": organization}


@router.get("/{organization_id}")
async def get_organization(organization_id: UUID, db: AsyncSession = Depends(get_db)):
    """Organization with its members and teams"""
    result = await db.execute(
        text(f"SELECT {ORGANIZATION_COLUMNS} FROM organizations WHERE id = :id"),
        {"id": str(organization_id)}
    )
    row = result.mappings().first()
    if not row:
        raise NotFound("Organization not found")
    organization = dict(row)

    members = await db.execute(
        text("""
            SELECT m.id, m.user_id, m.role, m.department, m.joined_at, p.email, p.full_name
            FROM organization_members m
            LEFT JOIN profiles p ON p.id = m.user_id
            WHERE m.organization_id = :id
            ORDER BY m.joined_at
        """),
        {"id": str(organization_id)}
    )
    organization["organization_members"] = [dict(m) for m in members.mappings().all()]

    teams = await db.execute(
        text("""
            SELECT id, name, description, specialty, color, created_at
            FROM teams WHERE organization_id = :id
            ORDER BY name
        """),
        {"id": str(organization_id)}
    )
    organization["teams"] = [dict(t) for t in teams.mappings().all()]

    return {"organization": organization}


@router.patch("/{organization_id}")
async def update_organization(
    organization_id: UUID,
    body: OrganizationUpdate,
    db: AsyncSession = Depends(get_db)
):
    values = update_values(body, nullable={"billing_email"})
    if not values:
        raise ValidationFailed("No valid fields to update")

    assignments, params = build_update(values, jsonb_fields=JSONB_FIELDS)
    result = await db.execute(
        text(f"""
            UPDATE organizations SET {assignments}
            WHERE id = :id
            RETURNING {ORGANIZATION_COLUMNS}
        """),
        {**params, "id": str(organization_id)}
    )
    row = result.mappings().first()
    if not row:
        raise NotFound("Organization not found")

    logger.info("Organization updated", organization_id=str(organization_id), fields=sorted(values))
    return {"success": True, "organization": dict(row)}


@router.delete("/{organization_id}")
async def delete_organization(organization_id: UUID, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        text("DELETE FROM organizations WHERE id = :id RETURNING id"),
        {"id": str(organization_id)}
    )
    if not result.fetchone():
        raise NotFound("Organization not found")

    logger.info("Organization deleted", organization_id=str(organization_id))
    return {"success": True}
