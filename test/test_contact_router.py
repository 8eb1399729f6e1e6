"""
API tests for the contact endpoints.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from contactbook.config import Settings
from contactbook.main import create_app
from contactbook.shared.database import DatabaseManager

CONTACT = {
    "firstName": "Alice",
    "lastName": "Smith",
    "email": "alice@example.com",
    "phone": "+1 415 555 0100",
    "address": "1 Main St",
    "profilePicUrl": "http://img.example.com/alice.png",
}


async def _post(client: AsyncClient, **overrides) -> dict:
    response = await client.post("/api/contacts", json={**CONTACT, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


class TestContactCrud:
    """Tests for create, get, update and delete."""

    @pytest.mark.asyncio
    async def test_create_returns_camel_case_contact(self, async_client: AsyncClient):
        response = await async_client.post("/api/contacts", json=CONTACT)

        assert response.status_code == 201
        data = response.json()
        assert isinstance(data["id"], int)
        assert data["firstName"] == "Alice"
        assert data["profilePicUrl"] == CONTACT["profilePicUrl"]
        assert data["group"] is None
        assert "createdAt" in data and "updatedAt" in data

    @pytest.mark.asyncio
    async def test_get(self, async_client: AsyncClient):
        created = await _post(async_client)

        response = await async_client.get(f"/api/contacts/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    @pytest.mark.asyncio
    async def test_get_missing(self, async_client: AsyncClient):
        response = await async_client.get("/api/contacts/999")

        assert response.status_code == 404
        detail = response.json()["detail"]
        assert detail["code"] == "NOT_FOUND"
        assert detail["message"] == "Contact not found with id: 999"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, async_client: AsyncClient):
        await _post(async_client)

        response = await async_client.post(
            "/api/contacts", json={**CONTACT, "firstName": "Other", "phone": None}
        )

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "CONFLICT"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"firstName": None},
            {"lastName": "   "},
            {"email": "not-an-email"},
            {"phone": "call me"},
            {"phone": "+" + "1" * 25},
        ],
    )
    async def test_invalid_payload(self, async_client: AsyncClient, overrides: dict):
        response = await async_client.post("/api/contacts", json={**CONTACT, **overrides})

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_group(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/contacts", json={**CONTACT, "group": {"id": 4242}}
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_update_replaces_all_fields(self, async_client: AsyncClient):
        created = await _post(async_client)

        response = await async_client.put(
            f"/api/contacts/{created['id']}",
            json={"firstName": "Alicia", "lastName": "Smith"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == created["id"]
        assert data["firstName"] == "Alicia"
        assert data["email"] is None
        assert data["phone"] is None
        assert data["profilePicUrl"] is None
        assert data["createdAt"] == created["createdAt"]

    @pytest.mark.asyncio
    async def test_update_missing(self, async_client: AsyncClient):
        response = await async_client.put("/api/contacts/999", json=CONTACT)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_email_conflict(self, async_client: AsyncClient):
        await _post(async_client)
        other = await _post(async_client, email="bob@example.com", phone=None, firstName="Bob")

        response = await async_client.put(
            f"/api/contacts/{other['id']}",
            json={**CONTACT, "firstName": "Bob", "phone": None},
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_delete(self, async_client: AsyncClient):
        created = await _post(async_client)

        response = await async_client.delete(f"/api/contacts/{created['id']}")
        assert response.status_code == 204
        assert response.content == b""

        response = await async_client.get(f"/api/contacts/{created['id']}")
        assert response.status_code == 404

        response = await async_client.delete(f"/api/contacts/{created['id']}")
        assert response.status_code == 404


class TestContactListing:
    """Tests for listing and search."""

    @pytest.mark.asyncio
    async def test_page_shape(self, async_client: AsyncClient):
        for i in range(3):
            await _post(async_client, firstName=f"P{i}", email=f"p{i}@example.com", phone=None)

        response = await async_client.get("/api/contacts", params={"page": 0, "size": 2})

        assert response.status_code == 200
        data = response.json()
        assert [c["firstName"] for c in data["content"]] == ["P0", "P1"]
        assert data["page"] == 0
        assert data["size"] == 2
        assert data["totalElements"] == 3
        assert data["totalPages"] == 2

    @pytest.mark.asyncio
    async def test_defaults_from_settings(self, async_client: AsyncClient):
        response = await async_client.get("/api/contacts")

        assert response.status_code == 200
        data = response.json()
        assert data["size"] == 10
        assert data["content"] == []
        assert data["totalPages"] == 0

    @pytest.mark.asyncio
    async def test_sort_by(self, async_client: AsyncClient):
        await _post(async_client, firstName="A", lastName="Zulu", email="a@example.com", phone=None)
        await _post(async_client, firstName="B", lastName="Alpha", email="b@example.com", phone=None)

        response = await async_client.get("/api/contacts", params={"sortBy": "lastName"})

        assert [c["lastName"] for c in response.json()["content"]] == ["Alpha", "Zulu"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [{"page": -1}, {"size": 0}, {"size": 51}, {"sortBy": "unknown"}],
    )
    async def test_invalid_listing_arguments(self, async_client: AsyncClient, params: dict):
        response = await async_client.get("/api/contacts", params=params)

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_ARGUMENT"

    @pytest.mark.asyncio
    async def test_search(self, async_client: AsyncClient):
        await _post(async_client)
        await _post(async_client, firstName="Bob", lastName="Jones", email="bob@example.com", phone=None)

        response = await async_client.get("/api/contacts/search", params={"query": "ALI"})

        assert response.status_code == 200
        data = response.json()
        assert data["totalElements"] == 1
        assert data["content"][0]["firstName"] == "Alice"

    @pytest.mark.asyncio
    async def test_search_requires_query(self, async_client: AsyncClient):
        response = await async_client.get("/api/contacts/search")
        assert response.status_code == 422


class TestContactCsv:
    """Tests for CSV export and import over HTTP."""

    @pytest.mark.asyncio
    async def test_export(self, async_client: AsyncClient):
        created = await _post(async_client)

        response = await async_client.get("/api/contacts/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == 'attachment; filename="contacts.csv"'
        lines = response.text.splitlines()
        assert lines[0] == "ID,First Name,Last Name,Email,Phone,Address,Group"
        assert lines[1] == f"{created['id']},Alice,Smith,alice@example.com,+1 415 555 0100,1 Main St,"

    @pytest.mark.asyncio
    async def test_import(self, async_client: AsyncClient):
        content = (
            "ID,First Name,Last Name,Email,Phone,Address,Group\n"
            ",Ann,Lee,ann@example.com,,,\n"
            ",Bad\n"
        ).encode("utf-8")

        response = await async_client.post(
            "/api/contacts/import",
            files={"file": ("contacts.csv", content, "text/csv")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["importedCount"] == 1
        assert data["failedCount"] == 1
        assert data["totalRows"] == 2
        assert data["errors"][0]["lineNumber"] == 3

        listing = await async_client.get("/api/contacts")
        assert listing.json()["totalElements"] == 1

    @pytest.mark.asyncio
    async def test_import_empty_file(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/contacts/import",
            files={"file": ("contacts.csv", b"", "text/csv")},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "IMPORT_FAILED"

    @pytest.mark.asyncio
    async def test_import_over_size_limit(
        self,
        test_settings: Settings,
        db_manager: DatabaseManager,
    ):
        app = create_app(
            settings=test_settings.model_copy(update={"max_import_bytes": 32}),
            db=db_manager,
        )
        content = (
            "ID,First Name,Last Name,Email,Phone,Address,Group\n"
            ",Ann,Lee,ann@example.com,,,\n"
        ).encode("utf-8")

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post(
                "/api/contacts/import",
                files={"file": ("contacts.csv", content, "text/csv")},
            )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "IMPORT_FAILED"


class TestApplication:
    """Tests for application-level behaviour."""

    @pytest.mark.asyncio
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_correlation_id_echoed(self, async_client: AsyncClient):
        response = await async_client.get("/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_correlation_id_generated(self, async_client: AsyncClient):
        response = await async_client.get("/health")
        assert response.headers.get("X-Correlation-ID")

    @pytest.mark.asyncio
    async def test_request_id_used_as_fallback(self, async_client: AsyncClient):
        response = await async_client.get("/health", headers={"X-Request-ID": "req-7"})
        assert response.headers["X-Correlation-ID"] == "req-7"
