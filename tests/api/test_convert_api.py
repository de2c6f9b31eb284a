"""
API Tests - Conversion and credits endpoints
"""
import pytest
from httpx import AsyncClient

from src.legalease.errors import UpstreamError, UpstreamTimeout
from tests.fakes import make_document, rows


class TestConvertAPI:
    """Tests for POST /convert"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_convert_success(self, client: AsyncClient, fake_db, converter, user_id, legal_text):
        """Balance 10, 1,000 chars legal-to-plain: creditsUsed 3, remainingCredits 7"""
        document = make_document(user_id=user_id, status="completed")
        fake_db.on("SELECT credits_balance FROM profiles", rows({"credits_balance": 10}))
        fake_db.on("INSERT INTO documents", rows(document))
        fake_db.on("UPDATE profiles", rows({"credits_balance": 7}))

        response = await client.post("/convert", json={
            "text": legal_text,
            "conversionType": "legal-to-plain",
            "userId": user_id,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["creditsUsed"] == 3
        assert data["remainingCredits"] == 7
        assert data["documentId"] == document["id"]
        assert data["convertedText"] == "You must cover the other party's losses."
        assert data["keyTerms"][0]["term"] == "indemnify"
        assert data["summary"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_convert_insufficient_credits(self, client: AsyncClient, fake_db, converter, user_id, legal_text):
        """Balance 2 with cost 3: 402, the model is never called"""
        fake_db.on("SELECT credits_balance FROM profiles", rows({"credits_balance": 2}))

        response = await client.post("/convert", json={
            "text": legal_text,
            "conversionType": "legal-to-plain",
            "userId": user_id,
        })

        assert response.status_code == 402
        assert response.json() == {"error": "Insufficient credits", "creditsNeeded": 3, "available": 2}
        converter.convert.assert_not_awaited()
        assert fake_db.statements("UPDATE profiles") == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_convert_invalid_type(self, client: AsyncClient, fake_db, user_id):
        response = await client.post("/convert", json={
            "text": "Some text",
            "conversionType": "legal-to-emoji",
            "userId": user_id,
        })

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid conversion type"
        assert fake_db.executed == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_convert_missing_user(self, client: AsyncClient, fake_db):
        response = await client.post("/convert", json={"text": "Some text", "conversionType": "plain-to-legal"})

        assert response.status_code == 400
        assert any(f["field"] == "userId" for f in response.json()["fields"])
        assert fake_db.executed == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_convert_unknown_user(self, client: AsyncClient, user_id):
        response = await client.post("/convert", json={
            "text": "Some text", "conversionType": "plain-to-legal", "userId": user_id,
        })

        assert response.status_code == 404

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_convert_accepts_field_names(self, client: AsyncClient, fake_db, user_id):
        response = await client.post("/convert", json={
            "text": "Some text", "conversion_type": "plain-to-legal", "user_id": user_id,
        })

        assert response.status_code == 404
        (_, params), = fake_db.statements("SELECT credits_balance FROM profiles")
        assert params == {"id": user_id}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_convert_upstream_failure_is_generic(self, client: AsyncClient, fake_db, converter, user_id):
        fake_db.on("SELECT credits_balance FROM profiles", rows({"credits_balance": 10}))
        converter.convert.side_effect = UpstreamError(
            "Conversion service unavailable", service="llm", detail="401 invalid api key"
        )

        response = await client.post("/convert", json={
            "text": "Some text", "conversionType": "plain-to-legal", "userId": user_id,
        })

        assert response.status_code == 502
        assert response.json() == {"error": "Conversion service unavailable"}
        assert fake_db.statements("UPDATE profiles") == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_convert_upstream_timeout(self, client: AsyncClient, fake_db, converter, user_id):
        fake_db.on("SELECT credits_balance FROM profiles", rows({"credits_balance": 10}))
        converter.convert.side_effect = UpstreamTimeout("Language model request timed out", service="llm")

        response = await client.post("/convert", json={
            "text": "Some text", "conversionType": "plain-to-legal", "userId": user_id,
        })

        assert response.status_code == 504


class TestCreditsAPI:
    """Tests for /credits"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_estimate(self, client: AsyncClient, fake_db):
        response = await client.get("/credits/estimate", params={"length": 1000, "conversionType": "legal-to-plain"})

        assert response.status_code == 200
        assert response.json()["creditsNeeded"] == 3
        assert fake_db.executed == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_estimate_invalid_type(self, client: AsyncClient):
        response = await client.get("/credits/estimate", params={"length": 10, "conversionType": "x"})

        assert response.status_code == 400

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_balance(self, client: AsyncClient, fake_db, user_id):
        fake_db.on("FROM profiles WHERE id = :id", rows({
            "id": user_id, "email": "a@example.com", "full_name": "Ann",
            "credits_balance": 12, "total_credits_purchased": 20, "updated_at": None,
        }))

        response = await client.get(f"/credits/{user_id}")

        assert response.status_code == 200
        assert response.json()["balance"] == 12
        assert response.json()["totalPurchased"] == 20

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_balance_unknown_user(self, client: AsyncClient, user_id):
        response = await client.get(f"/credits/{user_id}")

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_grant(self, client: AsyncClient, fake_db, user_id):
        fake_db.on("UPDATE profiles", rows({"credits_balance": 60}))

        response = await client.post(f"/credits/{user_id}/grant", json={"amount": 50, "reference": "pi_1"})

        assert response.status_code == 200
        assert response.json()["balance"] == 60

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_grant_rejects_non_positive(self, client: AsyncClient, fake_db, user_id):
        response = await client.post(f"/credits/{user_id}/grant", json={"amount": 0})

        assert response.status_code == 400
        assert fake_db.executed == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_transactions(self, client: AsyncClient, fake_db, user_id):
        fake_db.on("FROM profiles WHERE id = :id", rows({
            "id": user_id, "email": None, "full_name": None,
            "credits_balance": 7, "total_credits_purchased": 10, "updated_at": None,
        }))
        fake_db.on("FROM credit_transactions", rows(
            {"id": "t2", "amount": -3, "type": "usage", "description": "conversion",
             "reference_id": None, "document_id": None, "metadata": {}, "created_at": None},
            {"id": "t1", "amount": 10, "type": "purchase", "description": "purchase",
             "reference_id": "pi_1", "document_id": None, "metadata": {}, "created_at": None},
        ))

        response = await client.get(f"/credits/{user_id}/transactions", params={"limit": 10})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [t["amount"] for t in data["transactions"]] == [-3, 10]
        (_, params), = fake_db.statements("FROM credit_transactions")
        assert params["limit"] == 10
