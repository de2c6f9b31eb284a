"""
API Tests - Organizations and teams
"""
import uuid

import pytest
from httpx import AsyncClient

from tests.fakes import rows


def make_organization(**overrides):
    organization = {
        "id": str(uuid.uuid4()),
        "name": "Acme Legal",
        "slug": "acme-legal",
        "plan": "free",
        "max_users": 5,
        "max_documents": 100,
        "max_storage_gb": 1,
        "features": [],
        "settings": {},
        "billing_email": None,
        "subscription_status": "active",
        "created_at": "2025-01-15T10:00:00+00:00",
        "updated_at": "2025-01-15T10:00:00+00:00",
    }
    organization.update(overrides)
    return organization


def make_team(**overrides):
    team = {
        "id": str(uuid.uuid4()),
        "organization_id": str(uuid.uuid4()),
        "name": "Litigation",
        "description": None,
        "specialty": "litigation",
        "color": "#1e40af",
        "settings": {},
        "created_at": "2025-01-15T10:00:00+00:00",
        "updated_at": "2025-01-15T10:00:00+00:00",
    }
    team.update(overrides)
    return team


class TestOrganizationsAPI:
    """Tests for /organizations"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_with_owner(self, client: AsyncClient, fake_db, user_id):
        organization = make_organization()
        fake_db.on("INSERT INTO organizations", rows(organization))

        response = await client.post("/organizations", json={"name": "Acme Legal", "owner_id": user_id})

        assert response.status_code == 201
        assert response.json()["organization"]["slug"] == "acme-legal"
        (_, params), = fake_db.statements("INSERT INTO organizations")
        assert params["slug"] == "acme-legal"
        (sql, params), = fake_db.statements("INSERT INTO organization_members")
        assert "'owner'" in sql
        assert params == {"organization_id": organization["id"], "user_id": user_id}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_with_taken_slug(self, client: AsyncClient, fake_db):
        fake_db.on("SELECT id FROM organizations WHERE slug", rows({"id": str(uuid.uuid4())}))

        response = await client.post("/organizations", json={"name": "Acme", "slug": "acme"})

        assert response.status_code == 409
        assert response.json()["slug"] == "acme"
        assert fake_db.statements("INSERT") == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_with_members_and_teams(self, client: AsyncClient, fake_db, user_id):
        organization = make_organization()
        fake_db.on("FROM organizations WHERE id = :id", rows(organization))
        fake_db.on("FROM organization_members m", rows({
            "id": str(uuid.uuid4()), "user_id": user_id, "role": "owner", "department": None,
            "joined_at": None, "email": "owner@example.com", "full_name": "Olive Owner",
        }))
        fake_db.on("FROM teams WHERE organization_id", rows(make_team(organization_id=organization["id"])))

        response = await client.get(f"/organizations/{organization['id']}")

        assert response.status_code == 200
        data = response.json()["organization"]
        assert data["organization_members"][0]["role"] == "owner"
        assert data["teams"][0]["name"] == "Litigation"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_ignores_unknown_fields(self, client: AsyncClient, fake_db):
        organization = make_organization(plan="professional")
        fake_db.on("UPDATE organizations", rows(organization))

        response = await client.patch(f"/organizations/{organization['id']}", json={
            "plan": "professional", "id": str(uuid.uuid4()), "created_at": "1970-01-01",
        })

        assert response.status_code == 200
        (sql, params), = fake_db.statements("UPDATE organizations")
        assert "plan = :plan" in sql
        assert "created_at" not in sql.split("WHERE")[0]
        assert params["id"] == organization["id"]
        assert set(params) == {"plan", "id"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_without_valid_fields(self, client: AsyncClient, fake_db):
        response = await client.patch(f"/organizations/{uuid.uuid4()}", json={"owner": "someone"})

        assert response.status_code == 400
        assert response.json() == {"error": "No valid fields to update"}
        assert fake_db.executed == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_rejects_unknown_plan(self, client: AsyncClient):
        response = await client.patch(f"/organizations/{uuid.uuid4()}", json={"plan": "platinum"})

        assert response.status_code == 400

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_unknown_organization(self, client: AsyncClient):
        response = await client.patch(f"/organizations/{uuid.uuid4()}", json={"name": "New name"})

        assert response.status_code == 404

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_unknown_organization(self, client: AsyncClient):
        response = await client.delete(f"/organizations/{uuid.uuid4()}")

        assert response.status_code == 404


class TestTeamsAPI:
    """Tests for /teams"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_team_in_unknown_organization(self, client: AsyncClient, fake_db):
        response = await client.post("/teams", json={"organization_id": str(uuid.uuid4()), "name": "Tax"})

        assert response.status_code == 404
        assert fake_db.statements("INSERT") == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_team(self, client: AsyncClient, fake_db):
        team = make_team()
        fake_db.on("SELECT id FROM organizations", rows({"id": team["organization_id"]}))
        fake_db.on("INSERT INTO teams", rows(team))

        response = await client.post("/teams", json={
            "organization_id": team["organization_id"], "name": "Litigation", "specialty": "litigation",
        })

        assert response.status_code == 201
        assert response.json()["team"]["name"] == "Litigation"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_team_with_organization(self, client: AsyncClient, fake_db):
        team = make_team()
        fake_db.on("FROM teams t", rows({**team, "organization_name": "Acme Legal", "organization_slug": "acme"}))

        response = await client.get(f"/teams/{team['id']}")

        assert response.status_code == 200
        data = response.json()["team"]
        assert data["organization"] == {"id": team["organization_id"], "name": "Acme Legal", "slug": "acme"}
        assert "organization_name" not in data
        assert data["team_members"] == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_member(self, client: AsyncClient, fake_db, user_id):
        team_id = str(uuid.uuid4())
        fake_db.on("SELECT id FROM teams", rows({"id": team_id}))
        fake_db.on("INSERT INTO team_members", rows({
            "id": str(uuid.uuid4()), "team_id": team_id, "user_id": user_id,
            "role": "lead", "added_by": None, "added_at": None,
        }))

        response = await client.post(f"/teams/{team_id}/members", json={"user_id": user_id, "role": "lead"})

        assert response.status_code == 201
        assert response.json()["member"]["role"] == "lead"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_existing_member(self, client: AsyncClient, fake_db, user_id):
        team_id = str(uuid.uuid4())
        fake_db.on("SELECT id FROM teams", rows({"id": team_id}))

        response = await client.post(f"/teams/{team_id}/members", json={"user_id": user_id})

        assert response.status_code == 409
        assert response.json() == {"error": "User is already a member of this team"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_member_to_unknown_team(self, client: AsyncClient, fake_db, user_id):
        response = await client.post(f"/teams/{uuid.uuid4()}/members", json={"user_id": user_id})

        assert response.status_code == 404
        assert fake_db.statements("INSERT") == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_member_invalid_role(self, client: AsyncClient, user_id):
        response = await client.post(f"/teams/{uuid.uuid4()}/members", json={"user_id": user_id, "role": "boss"})

        assert response.status_code == 400

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_remove_missing_member(self, client: AsyncClient, user_id):
        response = await client.delete(f"/teams/{uuid.uuid4()}/members", params={"user_id": user_id})

        assert response.status_code == 404

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_team_color(self, client: AsyncClient, fake_db):
        team = make_team(color="#ff0000")
        fake_db.on("UPDATE teams", rows(team))

        response = await client.patch(f"/teams/{team['id']}", json={"color": "#ff0000", "organization_id": "x"})

        assert response.status_code == 200
        (_, params), = fake_db.statements("UPDATE teams")
        assert set(params) == {"color", "id"}
