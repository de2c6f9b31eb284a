"""
Teams Router - teams inside an organization and their members
"""
import json
from typing import Optional, Dict, Any
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

TEAM_COLUMNS = "id, organization_id, name, description, specialty, color, settings, created_at, updated_at"


class TeamCreate(BaseModel):
    organization_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    specialty: Optional[str] = None
    color: Optional[str] = Field(default=None, max_length=32)
    settings: Dict[str, Any] = Field(default_factory=dict)


class TeamUpdate(BaseModel):
    """Fields a team update may change; anything else is ignored"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    specialty: Optional[str] = None
    color: Optional[str] = Field(default=None, max_length=32)
    settings: Optional[Dict[str, Any]] = None


class TeamMemberAdd(BaseModel):
    user_id: UUID
    role: str = Field(default="member", pattern="^(lead|member|viewer)$")
    added_by: Optional[UUID] = None


async def _require_team(db: AsyncSession, team_id: str):
    result = await db.execute(text("SELECT id FROM teams WHERE id = :id"), {"id": team_id})
    if not result.fetchone():
        raise NotFound("Team not found")


@router.post("", status_code=201)
async def create_team(body: TeamCreate, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        text("SELECT id FROM organizations WHERE id = :id"),
        {"id": str(body.organization_id)}
    )
    if not result.fetchone():
        raise NotFound("Organization not found")

    result = await db.execute(
        text(f"""
            INSERT INTO teams (organization_id, name, description, specialty, color, settings)
            VALUES (:organization_id, :name, :description, :specialty, :color, CAST(:settings AS jsonb))
            RETURNING {TEAM_COLUMNS}
        """),
        {
            "organization_id": str(body.organization_id), "name": body.name,
            "description": body.description, "specialty": body.specialty,
            "color": body.color, "settings": json.dumps(body.settings),
        }
    )
    team = dict(result.mappings().one())
    logger.info("Team created", team_id=str(team["id"]), organization_id=str(body.organization_id))
    return {"success": True, "team": team}


@router.get("/{team_id}")
async def get_team(team_id: UUID, db: AsyncSession = Depends(get_db)):
    """Team with its organization summary and members"""
    result = await db.execute(
        text("""
            SELECT t.id, t.organization_id, t.name, t.description, t.specialty, t.color,
                   t.settings, t.created_at, t.updated_at,
                   o.name AS organization_name, o.slug AS organization_slug
            FROM teams t
            JOIN organizations o ON o.id = t.organization_id
            WHERE t.id = :id
        """),
        {"id": str(team_id)}
    )
    row = result.mappings().first()
    if not row:
        raise NotFound("Team not found")

    team = dict(row)
    team["organization"] = {
        "id": team["organization_id"],
        "name": team.pop("organization_name"),
        "slug": team.pop("organization_slug"),
    }
    team["team_members"] = await _members(db, str(team_id))
    return {"team": team}


@router.patch("/{team_id}")
async def update_team(team_id: UUID, body: TeamUpdate, db: AsyncSession = Depends(get_db)):
    values = update_values(body, nullable={"description", "specialty", "color"})
    if not values:
        raise ValidationFailed("No valid fields to update")

    assignments, params = build_update(values, jsonb_fields={"settings"})
    result = await db.execute(
        text(f"UPDATE teams SET {assignments} WHERE id = :id RETURNING {TEAM_COLUMNS}"),
        {**params, "id": str(team_id)}
    )
    row = result.mappings().first()
    if not row:
        raise NotFound("Team not found")

    logger.info("Team updated", team_id=str(team_id), fields=sorted(values))
    return {"success": True, "team": dict(row)}


@router.delete("/{team_id}")
async def delete_team(team_id: UUID, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        text("DELETE FROM teams WHERE id = :id RETURNING id"),
        {"id": str(team_id)}
    )
    if not result.fetchone():
        raise NotFound("Team not found")

    logger.info("Team deleted", team_id=str(team_id))
    return {"success": True}


# Members

async def _members(db: AsyncSession, team_id: str):
    result = await db.execute(
        text("""
            SELECT m.id, m.user_id, m.role, m.added_by, m.added_at, p.email, p.full_name
            FROM team_members m
            LEFT JOIN profiles p ON p.id = m.user_id
            WHERE m.team_id = :team_id
            ORDER BY m.added_at
        """),
        {"team_id": team_id}
    )
    return [dict(row) for row in result.mappings().all()]


@router.get("/{team_id}/members")
async def list_members(team_id: UUID, db: AsyncSession = Depends(get_db)):
    await _require_team(db, str(team_id))
    return {"members": await _members(db, str(team_id))}


@router.post("/{team_id}/members", status_code=201)
async def add_member(team_id: UUID, body: TeamMemberAdd, db: AsyncSession = Depends(get_db)):
    """Add a user to a team; 409 when already a member"""
    await _require_team(db, str(team_id))

    result = await db.execute(
        text("""
            INSERT INTO team_members (team_id, user_id, role, added_by)
            VALUES (:team_id, :user_id, :role, :added_by)
            ON CONFLICT (team_id, user_id) DO NOTHING
            RETURNING id, team_id, user_id, role, added_by, added_at
        """),
        {
            "team_id": str(team_id), "user_id": str(body.user_id), "role": body.role,
            "added_by": str(body.added_by) if body.added_by else None,
        }
    )
    row = result.mappings().first()
    if not row:
        raise Conflict("User is already a member of this team")

    logger.info("Team member added", team_id=str(team_id), user_id=str(body.user_id))
    return {"success": True, "member": dict(row)}


@router.delete("/{team_id}/members")
async def remove_member(
    team_id: UUID,
    user_id: UUID = Query(...),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        text("DELETE FROM team_members WHERE team_id = :team_id AND user_id = :user_id RETURNING id"),
        {"team_id": str(team_id), "user_id": str(user_id)}
    )
    if not result.fetchone():
        raise NotFound("Team member not found")

    logger.info("Team member removed", team_id=str(team_id), user_id=str(user_id))
    return {"success": True}
