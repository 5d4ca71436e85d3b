"""
Tests for Chart of Accounts API endpoints.
"""
import pytest
from decimal import Decimal
from httpx import AsyncClient


class TestAccountsCRUD:
    """Test Account CRUD operations."""

    @pytest.mark.asyncio
    async def test_list_accounts_empty(self, client: AsyncClient, auth_headers: dict):
        """Test listing accounts when none exist."""
        response = await client.get("/api/v1/finance/accounts", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["accounts"] == []
        assert data["pagination"]["totalCount"] == 0
        assert data["filters"]["types"] == ["ASSET", "LIABILITY", "EQUITY", "REVENUE", "EXPENSE"]

    @pytest.mark.asyncio
    async def test_list_accounts_ordered_by_code(self, client: AsyncClient, auth_headers: dict, accounts):
        response = await client.get("/api/v1/finance/accounts", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert [a["code"] for a in data["accounts"]] == ["1000", "1100", "2000", "3000", "4000", "5000"]
        assert data["accounts"][0]["type"] == "ASSET"
        assert Decimal(data["accounts"][0]["balance"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_list_accounts_filtered(self, client: AsyncClient, auth_headers: dict, accounts):
        response = await client.get(
            "/api/v1/finance/accounts",
            params={"type": "ASSET"},
            headers=auth_headers
        )
        assert [a["code"] for a in response.json()["accounts"]] == ["1000", "1100"]

        response = await client.get(
            "/api/v1/finance/accounts",
            params={"search": "paper"},
            headers=auth_headers
        )
        assert [a["code"] for a in response.json()["accounts"]] == ["5000"]

    @pytest.mark.asyncio
    async def test_create_account(self, client: AsyncClient, auth_headers: dict):
        """Test creating a new account."""
        account_data = {
            "code": "1200",
            "name": "Bank BCA",
            "type": "ASSET",
            "subtype": "Bank",
        }
        response = await client.post("/api/v1/finance/accounts", json=account_data, headers=auth_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["code"] == "1200"
        assert data["name"] == "Bank BCA"
        assert data["type"] == "ASSET"
        assert data["isActive"] is True
        assert Decimal(data["balance"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_create_account_ignores_balance(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/v1/finance/accounts",
            json={"code": "1300", "name": "Petty Cash", "type": "ASSET", "balance": "5000"},
            headers=auth_headers
        )
        assert response.status_code == 201
        assert Decimal(response.json()["balance"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_create_account_duplicate_code(self, client: AsyncClient, auth_headers: dict, accounts):
        """Test creating account with duplicate code fails."""
        response = await client.post(
            "/api/v1/finance/accounts",
            json={"code": "1000", "name": "Another Cash", "type": "ASSET"},
            headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_create_account_invalid_type(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/v1/finance/accounts",
            json={"code": "9000", "name": "Mystery", "type": "SUSPENSE"},
            headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_get_account(self, client: AsyncClient, auth_headers: dict, accounts):
        response = await client.get(f"/api/v1/finance/accounts/{accounts['4000'].id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["name"] == "Printing Revenue"

        response = await client.get("/api/v1/finance/accounts/nonexistent", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "ACCOUNT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_update_account(self, client: AsyncClient, auth_headers: dict, accounts):
        response = await client.patch(
            f"/api/v1/finance/accounts/{accounts['5000'].id}",
            json={"name": "Paper, Ink and Plates", "isActive": False},
            headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Paper, Ink and Plates"
        assert data["isActive"] is False

    @pytest.mark.asyncio
    async def test_update_account_duplicate_code(self, client: AsyncClient, auth_headers: dict, accounts):
        response = await client.patch(
            f"/api/v1/finance/accounts/{accounts['5000'].id}",
            json={"code": "4000"},
            headers=auth_headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_unused_account(self, client: AsyncClient, auth_headers: dict, accounts):
        response = await client.delete(f"/api/v1/finance/accounts/{accounts['3000'].id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = await client.get(f"/api/v1/finance/accounts/{accounts['3000'].id}", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_account_with_postings_is_protected(
        self, client: AsyncClient, auth_headers: dict, accounts, open_period
    ):
        await client.post(
            "/api/v1/finance/journal-entries",
            json={
                "date": "2024-01-10",
                "periodId": open_period.id,
                "description": "Owner contribution",
                "status": "POSTED",
                "items": [
                    {"accountId": accounts["1000"].id, "debit": "1000"},
                    {"accountId": accounts["3000"].id, "credit": "1000"},
                ],
            },
            headers=auth_headers
        )

        response = await client.delete(f"/api/v1/finance/accounts/{accounts['3000'].id}", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "ACCOUNT_IN_USE"

        response = await client.patch(
            f"/api/v1/finance/accounts/{accounts['3000'].id}",
            json={"type": "LIABILITY"},
            headers=auth_headers
        )
        assert response.status_code == 400

        response = await client.get(f"/api/v1/finance/accounts/{accounts['3000'].id}", headers=auth_headers)
        assert Decimal(response.json()["balance"]) == Decimal("1000")
