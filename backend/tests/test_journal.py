"""
Tests for Journal Entry API endpoints.
"""
import pytest
from decimal import Decimal
from httpx import AsyncClient


def entry_payload(period, debit_account, credit_account, amount="100.00", status=None, **extra):
    payload = {
        "date": "2024-01-15",
        "periodId": period.id,
        "description": "Flyer print run",
        "items": [
            {"accountId": debit_account.id, "debit": amount, "credit": "0"},
            {"accountId": credit_account.id, "debit": "0", "credit": amount},
        ],
    }
    if status is not None:
        payload["status"] = status
    payload.update(extra)
    return payload


class TestJournalEntriesAPI:

    @pytest.mark.asyncio
    async def test_create_posted_entry(
        self, client: AsyncClient, auth_headers: dict, accounts, open_period, balance_of
    ):
        response = await client.post(
            "/api/v1/finance/journal-entries",
            json=entry_payload(open_period, accounts["1000"], accounts["4000"], status="POSTED"),
            headers=auth_headers
        )
        assert response.status_code == 201
        data = response.json()
        assert data["entryNumber"] == "JE-20240115-001"
        assert data["status"] == "POSTED"
        assert data["date"] == "2024-01-15"
        assert data["periodName"] == "January 2024"
        assert data["postedById"] == "test-user"
        assert data["createdById"] == "test-user"
        assert Decimal(data["totalDebits"]) == Decimal("100")
        assert Decimal(data["totalCredits"]) == Decimal("100")
        assert [item["accountCode"] for item in data["items"]] == ["1000", "4000"]

        assert await balance_of(accounts["1000"].id) == Decimal("100")
        assert await balance_of(accounts["4000"].id) == Decimal("100")

    @pytest.mark.asyncio
    async def test_create_unbalanced_entry(
        self, client: AsyncClient, auth_headers: dict, accounts, open_period, balance_of
    ):
        payload = entry_payload(open_period, accounts["1000"], accounts["4000"], status="POSTED")
        payload["items"][1]["credit"] = "90.00"

        response = await client.post("/api/v1/finance/journal-entries", json=payload, headers=auth_headers)

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "UNBALANCED_ENTRY"
        assert data["error"] == "Debits must equal credits"
        assert Decimal(data["details"]["difference"]) == Decimal("10")
        assert await balance_of(accounts["1000"].id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_create_in_closed_period(
        self, client: AsyncClient, auth_headers: dict, accounts, closed_period
    ):
        payload = entry_payload(closed_period, accounts["1000"], accounts["4000"], date="2023-12-15")

        response = await client.post("/api/v1/finance/journal-entries", json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "PERIOD_CLOSED"

    @pytest.mark.asyncio
    async def test_create_with_unknown_period(
        self, client: AsyncClient, auth_headers: dict, accounts, open_period
    ):
        payload = entry_payload(open_period, accounts["1000"], accounts["4000"], periodId="nosuchperiod")

        response = await client.post("/api/v1/finance/journal-entries", json=payload, headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "PERIOD_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_create_with_missing_fields(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/v1/finance/journal-entries",
            json={"description": "No period"},
            headers=auth_headers
        )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert any(error["loc"][-1] == "periodId" for error in data["details"]["errors"])

    @pytest.mark.asyncio
    async def test_get_entry(self, client: AsyncClient, auth_headers: dict, accounts, open_period):
        created = await client.post(
            "/api/v1/finance/journal-entries",
            json=entry_payload(open_period, accounts["5000"], accounts["2000"]),
            headers=auth_headers
        )
        entry_id = created.json()["id"]

        response = await client.get(f"/api/v1/finance/journal-entries/{entry_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "DRAFT"

        response = await client.get("/api/v1/finance/journal-entries/unknown", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "ENTRY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_list_entries(self, client: AsyncClient, auth_headers: dict, accounts, open_period):
        for amount in ("10.00", "20.00", "30.00"):
            await client.post(
                "/api/v1/finance/journal-entries",
                json=entry_payload(open_period, accounts["1000"], accounts["4000"], amount=amount),
                headers=auth_headers
            )

        response = await client.get(
            "/api/v1/finance/journal-entries",
            params={"period": open_period.id, "pageSize": 2, "sortBy": "entryNumber", "sortDirection": "asc"},
            headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["pagination"] == {"totalCount": 3, "totalPages": 2, "currentPage": 1, "pageSize": 2}
        assert [e["entryNumber"] for e in data["entries"]] == ["JE-20240115-001", "JE-20240115-002"]
        assert data["filters"]["periods"] == [{"id": open_period.id, "name": "January 2024"}]
        assert data["filters"]["statuses"] == ["DRAFT", "POSTED", "CANCELLED"]

    @pytest.mark.asyncio
    async def test_list_with_invalid_sort(self, client: AsyncClient, auth_headers: dict):
        response = await client.get(
            "/api/v1/finance/journal-entries",
            params={"sortBy": "amount"},
            headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_post_and_cancel(
        self, client: AsyncClient, auth_headers: dict, accounts, open_period, balance_of
    ):
        created = await client.post(
            "/api/v1/finance/journal-entries",
            json=entry_payload(open_period, accounts["1000"], accounts["4000"]),
            headers=auth_headers
        )
        entry_id = created.json()["id"]

        response = await client.post(f"/api/v1/finance/journal-entries/{entry_id}/post", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "POSTED"
        assert await balance_of(accounts["1000"].id) == Decimal("100")

        response = await client.post(f"/api/v1/finance/journal-entries/{entry_id}/post", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "POSTED_ENTRY_IMMUTABLE"

        response = await client.post(f"/api/v1/finance/journal-entries/{entry_id}/cancel", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["entry"]["status"] == "CANCELLED"
        assert data["reversal"]["status"] == "POSTED"
        assert data["reversal"]["reversalOfId"] == entry_id
        assert data["reversal"]["sourceType"] == "reversal"
        assert await balance_of(accounts["1000"].id) == Decimal("0")
        assert await balance_of(accounts["4000"].id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_update_by_query_id(self, client: AsyncClient, auth_headers: dict, accounts, open_period):
        created = await client.post(
            "/api/v1/finance/journal-entries",
            json=entry_payload(open_period, accounts["1000"], accounts["4000"]),
            headers=auth_headers
        )
        entry_id = created.json()["id"]

        response = await client.put(
            "/api/v1/finance/journal-entries",
            params={"id": entry_id},
            json={"description": "Updated description", "reference": "PO-77"},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["description"] == "Updated description"
        assert response.json()["reference"] == "PO-77"

        response = await client.put(
            "/api/v1/finance/journal-entries",
            json={"id": entry_id, "status": "POSTED"},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "POSTED"

        response = await client.put(
            f"/api/v1/finance/journal-entries/{entry_id}",
            json={"description": "Too late"},
            headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "POSTED_ENTRY_IMMUTABLE"

    @pytest.mark.asyncio
    async def test_update_without_id(self, client: AsyncClient, auth_headers: dict):
        response = await client.put(
            "/api/v1/finance/journal-entries",
            json={"description": "Which one?"},
            headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_delete_entry(self, client: AsyncClient, auth_headers: dict, accounts, open_period):
        draft = await client.post(
            "/api/v1/finance/journal-entries",
            json=entry_payload(open_period, accounts["1000"], accounts["4000"]),
            headers=auth_headers
        )
        posted = await client.post(
            "/api/v1/finance/journal-entries",
            json=entry_payload(open_period, accounts["1000"], accounts["4000"], status="POSTED"),
            headers=auth_headers
        )

        response = await client.delete(
            "/api/v1/finance/journal-entries",
            params={"id": draft.json()["id"]},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = await client.delete(
            f"/api/v1/finance/journal-entries/{posted.json()['id']}",
            headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "POSTED_ENTRY_IMMUTABLE"
