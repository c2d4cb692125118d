"""Tests for the contact API endpoints."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from fastapi import status

from meishi_exchange.core.errors import PersistenceError

pytestmark = pytest.mark.unit

PROBLEM_JSON = "application/problem+json"


def _contact_payload(name="Aiko Tanaka", **fields):
    payload = {
        "business_card": {"name": name, "company": "Acme", "skills": ["Python"]},
    }
    payload.update(fields)
    return payload


@pytest.fixture
def create_contact(client):
    def _create(name="Aiko Tanaka", **fields):
        response = client.post("/v1/contacts", json=_contact_payload(name, **fields))
        assert response.status_code == status.HTTP_201_CREATED
        return response.json()

    return _create


class TestCreateContact:
    def test_create_contact(self, client):
        response = client.post(
            "/v1/contacts",
            json=_contact_payload(tags=["conference"], notes="Met at PyCon"),
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["business_card"]["name"] == "Aiko Tanaka"
        assert data["source"] == "manual"
        assert data["verification_status"] == "unverified"
        assert data["tags"] == ["conference"]
        assert "id" in data

    def test_duplicate_card_conflicts(self, client, create_contact):
        created = create_contact()
        payload = {"business_card": created["business_card"]}

        response = client.post("/v1/contacts", json=payload)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.headers["content-type"] == PROBLEM_JSON
        problem = response.json()
        assert problem["status"] == 409
        assert problem["title"] == "Duplicate Contact"
        assert problem["detail"] == "Contact with this business card already exists"
        assert problem["error_kind"] == "DuplicateError"

    def test_storage_failure(self, client, memory_store):
        memory_store.fail_next_save()

        response = client.post("/v1/contacts", json=_contact_payload())

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["detail"] == "Simulated storage failure"
        assert client.get("/v1/contacts").json()["count"] == 0

    def test_missing_name_is_rejected(self, client):
        response = client.post("/v1/contacts", json={"business_card": {"company": "Acme"}})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        problem = response.json()
        assert problem["title"] == "Validation Error"
        assert problem["errors"]

    def test_oversized_request(self, client):
        response = client.post(
            "/v1/contacts",
            content=b"x" * (70 * 1024),
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


class TestReadContacts:
    def test_get_contact(self, client, create_contact):
        created = create_contact()

        response = client.get(f"/v1/contacts/{created['id']}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == created

    def test_get_missing_contact(self, client):
        response = client.get(f"/v1/contacts/{uuid4()}")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Contact not found"

    def test_invalid_id(self, client):
        response = client.get("/v1/contacts/not-a-uuid")
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_list_newest_first(self, client, create_contact):
        older = datetime.now(timezone.utc) - timedelta(days=2)
        create_contact("Older", received_at=older.isoformat())
        create_contact("Newer")

        data = client.get("/v1/contacts").json()

        assert data["count"] == 2
        assert [c["business_card"]["name"] for c in data["contacts"]] == ["Newer", "Older"]

    def test_list_filters(self, client, create_contact):
        create_contact("Scanned", source="qr_code", tags=["investor"])
        create_contact("Typed", verification_status="verified")

        by_source = client.get("/v1/contacts", params={"source": "qr_code"}).json()
        by_tag = client.get("/v1/contacts", params={"tag": "investor"}).json()
        by_status = client.get("/v1/contacts", params={"status": "verified"}).json()

        assert [c["business_card"]["name"] for c in by_source["contacts"]] == ["Scanned"]
        assert [c["business_card"]["name"] for c in by_tag["contacts"]] == ["Scanned"]
        assert [c["business_card"]["name"] for c in by_status["contacts"]] == ["Typed"]

    def test_invalid_filter(self, client):
        response = client.get("/v1/contacts", params={"source": "carrier_pigeon"})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_search(self, client, create_contact):
        create_contact("Aiko Tanaka", notes="Kyoto office")
        create_contact("Ken Mori")

        data = client.get("/v1/contacts/search", params={"q": "kyoto"}).json()

        assert [c["business_card"]["name"] for c in data["contacts"]] == ["Aiko Tanaka"]
        assert client.get("/v1/contacts/search").json()["count"] == 2

    def test_recent(self, client, create_contact):
        old = datetime.now(timezone.utc) - timedelta(days=30)
        create_contact("Old", received_at=old.isoformat())
        create_contact("Fresh")

        data = client.get("/v1/contacts/recent", params={"days": 7}).json()

        assert [c["business_card"]["name"] for c in data["contacts"]] == ["Fresh"]

    def test_tags(self, client, create_contact):
        create_contact("A", tags=["b", "a"])
        create_contact("B", tags=["a"])

        assert client.get("/v1/contacts/tags").json() == {"tags": ["a", "b"]}

    def test_statistics(self, client, create_contact):
        create_contact("A", source="qr_code", tags=["x"])
        create_contact("B")

        stats = client.get("/v1/contacts/statistics").json()

        assert stats["total_contacts"] == 2
        assert stats["source_distribution"] == {"qr_code": 1, "manual": 1}
        assert stats["verification_distribution"] == {"unverified": 2}
        assert stats["total_tags"] == 1


class TestModifyContacts:
    def test_update_contact(self, client, create_contact):
        created = create_contact()

        response = client.put(
            f"/v1/contacts/{created['id']}",
            json={"tags": ["vip"], "verification_status": "verified"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["tags"] == ["vip"]
        assert data["verification_status"] == "verified"
        assert data["business_card"] == created["business_card"]

    def test_update_missing_contact(self, client):
        response = client.put(f"/v1/contacts/{uuid4()}", json={"notes": "x"})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_failed_update_is_rolled_back(self, client, create_contact, memory_store):
        created = create_contact()
        memory_store.fail_next_save()

        response = client.put(f"/v1/contacts/{created['id']}", json={"notes": "lost"})

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert client.get(f"/v1/contacts/{created['id']}").json()["notes"] is None

    def test_delete_contact(self, client, create_contact):
        created = create_contact()

        response = client.delete(f"/v1/contacts/{created['id']}")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get(f"/v1/contacts/{created['id']}").status_code == 404

    def test_delete_missing_contact(self, client):
        assert client.delete(f"/v1/contacts/{uuid4()}").status_code == 404

    def test_refresh(self, client, create_contact):
        create_contact()

        response = client.post("/v1/contacts/refresh")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["count"] == 1

    def test_refresh_storage_failure(self, client, memory_store):
        memory_store.load_error = PersistenceError("Vault locked")

        response = client.post("/v1/contacts/refresh")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["detail"] == "Vault locked"
