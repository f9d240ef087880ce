"""API tests for user, category and building administration."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from coprodesk.core.config import Settings
from coprodesk.web.app import create_app
from tests.conftest import ADMIN_LOGIN, ASL_LOGIN, OWNER_LOGIN, PENDING_LOGIN, SYNDIC_LOGIN, login


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(settings=Settings()))


class TestUserAdminAPI:
    def test_list_users_as_admin(self, client: TestClient) -> None:
        headers = login(client, ADMIN_LOGIN)
        resp = client.get("/api/admin/users", headers=headers)
        assert resp.status_code == 200
        assert len(resp.json()) == 8

    def test_list_users_by_role(self, client: TestClient) -> None:
        headers = login(client, ASL_LOGIN)
        resp = client.get("/api/admin/users?role=Proprietaire", headers=headers)
        assert {u["id"] for u in resp.json()} == {"u-owner", "u-owner-other", "u-inactive"}

    def test_owner_denied(self, client: TestClient) -> None:
        headers = login(client, OWNER_LOGIN)
        assert client.get("/api/admin/users", headers=headers).status_code == 403

    def test_promote_pending_user(self, client: TestClient) -> None:
        admin = login(client, ADMIN_LOGIN)
        resp = client.patch(
            "/api/admin/users/u-pending",
            json={"role": "Proprietaire", "building": "Les Tilleuls"},
            headers=admin,
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "Proprietaire"

        pending = login(client, PENDING_LOGIN)
        assert client.get("/api/auth/me", headers=pending).json()["role"] == "Proprietaire"

    def test_null_role_is_ignored(self, client: TestClient) -> None:
        admin = login(client, ADMIN_LOGIN)
        resp = client.patch(
            "/api/admin/users/u-owner",
            json={"role": None, "first_name": "Emma"},
            headers=admin,
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "Proprietaire"

    def test_create_user(self, client: TestClient) -> None:
        admin = login(client, ADMIN_LOGIN)
        resp = client.post(
            "/api/admin/users",
            json={
                "email": "syndic2@example.com",
                "password": "secret1",
                "role": "Syndicat_Copropriete",
                "building": "Le Belvédère",
            },
            headers=admin,
        )
        assert resp.status_code == 201
        login(client, ("syndic2@example.com", "secret1"))


class TestCategoryAPI:
    def test_crud(self, client: TestClient) -> None:
        admin = login(client, ADMIN_LOGIN)
        created = client.post("/api/categories", json={"name": "Plomberie"}, headers=admin)
        assert created.status_code == 201
        category_id = created.json()["id"]

        renamed = client.patch(
            f"/api/categories/{category_id}", json={"name": "Eau"}, headers=admin
        )
        assert renamed.json()["name"] == "Eau"

        owner = login(client, OWNER_LOGIN)
        listed = client.get("/api/categories", headers=owner).json()
        assert [c["name"] for c in listed] == ["Eau"]

        deleted = client.delete(f"/api/categories/{category_id}", headers=admin)
        assert deleted.status_code == 204
        missing = client.delete(f"/api/categories/{category_id}", headers=admin)
        assert missing.status_code == 404

    def test_empty_name(self, client: TestClient) -> None:
        admin = login(client, ADMIN_LOGIN)
        resp = client.post("/api/categories", json={"name": "  "}, headers=admin)
        assert resp.status_code == 422

    def test_syndic_cannot_add(self, client: TestClient) -> None:
        syndic = login(client, SYNDIC_LOGIN)
        resp = client.post("/api/categories", json={"name": "Toiture"}, headers=syndic)
        assert resp.status_code == 403


class TestBuildingAPI:
    def test_crud(self, client: TestClient) -> None:
        admin = login(client, ADMIN_LOGIN)
        created = client.post(
            "/api/buildings",
            json={"name": "Les Tilleuls", "city": "Lyon", "syndic_email": "s@example.com"},
            headers=admin,
        )
        assert created.status_code == 201
        building_id = created.json()["id"]

        client.patch(f"/api/buildings/{building_id}", json={"active": False}, headers=admin)
        assert client.get("/api/buildings?active_only=true", headers=admin).json() == []
        everything = client.get("/api/buildings", headers=admin).json()
        assert everything[0]["city"] == "Lyon"
        assert everything[0]["active"] is False

        assert client.delete(f"/api/buildings/{building_id}", headers=admin).status_code == 204

    def test_owner_cannot_add(self, client: TestClient) -> None:
        owner = login(client, OWNER_LOGIN)
        resp = client.post("/api/buildings", json={"name": "X"}, headers=owner)
        assert resp.status_code == 403

    def test_null_for_required_fields(self, client: TestClient) -> None:
        admin = login(client, ADMIN_LOGIN)
        created = client.post(
            "/api/buildings", json={"name": "Le Belvédère", "active": False}, headers=admin
        )
        building_id = created.json()["id"]

        resp = client.patch(
            f"/api/buildings/{building_id}",
            json={"active": None, "city": "Annecy"},
            headers=admin,
        )
        assert resp.status_code == 200
        assert resp.json()["active"] is False
        assert resp.json()["city"] == "Annecy"

        resp = client.patch(f"/api/buildings/{building_id}", json={"name": None}, headers=admin)
        assert resp.status_code == 422
