from __future__ import annotations

from typing import Dict

import pytest
from fastapi.testclient import TestClient

from fundauth.core.database import session_scope
from fundauth.schemas.role import RoleCreate, RoleUpdate
from fundauth.services.errors import BadRequestError, RoleConflictError, RoleNotFoundError
from fundauth.services.roles import RoleService


def create_role(client: TestClient, headers: Dict[str, str], name: str, **extra) -> dict:  # noqa: ANN003
    response = client.post("/api/v1/roles", json={"name": name, **extra}, headers=headers)
    response.raise_for_status()
    return response.json()


def role_by_name(client: TestClient, headers: Dict[str, str], name: str) -> dict:
    response = client.get(f"/api/v1/roles/by-name/{name}", headers=headers)
    response.raise_for_status()
    return response.json()


def test_create_role_and_duplicate_conflict(client: TestClient, admin_headers: Dict[str, str]) -> None:
    created = create_role(client, admin_headers, "AUDITOR", description="Read-only auditor")
    assert created["name"] == "AUDITOR"
    assert created["is_active"] is True
    assert created["is_default"] is False
    assert created["user_count"] == 0
    assert created["permissions"] == []

    duplicate = client.post("/api/v1/roles", json={"name": "AUDITOR"}, headers=admin_headers)
    assert duplicate.status_code == 409
    assert "already exists" in duplicate.json()["detail"]


def test_role_names_are_case_sensitive(client: TestClient, admin_headers: Dict[str, str]) -> None:
    create_role(client, admin_headers, "auditor")
    create_role(client, admin_headers, "Auditor")

    names = [role["name"] for role in client.get("/api/v1/roles", headers=admin_headers).json()]
    assert "auditor" in names and "Auditor" in names


def test_new_default_clears_previous_default(client: TestClient, admin_headers: Dict[str, str]) -> None:
    assert client.get("/api/v1/roles/default", headers=admin_headers).json()["name"] == "INVESTOR"

    create_role(client, admin_headers, "PROSPECT", is_default=True)

    roles = client.get("/api/v1/roles", params={"include_inactive": True}, headers=admin_headers).json()
    defaults = [role["name"] for role in roles if role["is_default"]]
    assert defaults == ["PROSPECT"]

    investor = role_by_name(client, admin_headers, "INVESTOR")
    update = client.patch(f"/api/v1/roles/{investor['id']}", json={"is_default": True}, headers=admin_headers)
    update.raise_for_status()

    roles = client.get("/api/v1/roles", params={"include_inactive": True}, headers=admin_headers).json()
    assert [role["name"] for role in roles if role["is_default"]] == ["INVESTOR"]


def test_list_roles_ordered_by_name(client: TestClient, admin_headers: Dict[str, str]) -> None:
    names = [role["name"] for role in client.get("/api/v1/roles", headers=admin_headers).json()]
    assert names == sorted(names)
    assert "SUPER_ADMIN" in names


def test_update_role_rename_collision_and_missing(client: TestClient, admin_headers: Dict[str, str]) -> None:
    role = create_role(client, admin_headers, "TREASURY")

    collision = client.patch(f"/api/v1/roles/{role['id']}", json={"name": "VIEWER"}, headers=admin_headers)
    assert collision.status_code == 409

    renamed = client.patch(
        f"/api/v1/roles/{role['id']}",
        json={"name": "TREASURY_OPS", "description": "Treasury operations"},
        headers=admin_headers,
    )
    renamed.raise_for_status()
    assert renamed.json()["name"] == "TREASURY_OPS"
    assert renamed.json()["description"] == "Treasury operations"

    missing = client.patch(
        "/api/v1/roles/00000000-0000-0000-0000-000000000000",
        json={"description": "nope"},
        headers=admin_headers,
    )
    assert missing.status_code == 404


def test_delete_default_role_rejected(client: TestClient, admin_headers: Dict[str, str]) -> None:
    investor = role_by_name(client, admin_headers, "INVESTOR")

    response = client.delete(f"/api/v1/roles/{investor['id']}", headers=admin_headers)
    assert response.status_code == 400
    assert role_by_name(client, admin_headers, "INVESTOR")["is_active"] is True


def test_delete_role_with_active_user_rejected(client: TestClient, admin_headers: Dict[str, str]) -> None:
    analyst = role_by_name(client, admin_headers, "ANALYST")
    client.post(
        "/api/v1/assignments/roles",
        json={"user_id": "user-7", "role_id": analyst["id"]},
        headers=admin_headers,
    ).raise_for_status()

    response = client.delete(f"/api/v1/roles/{analyst['id']}", headers=admin_headers)
    assert response.status_code == 400
    assert "assigned to 1 user" in response.json()["detail"]


def test_soft_delete_hides_role_from_default_listing(client: TestClient, admin_headers: Dict[str, str]) -> None:
    role = create_role(client, admin_headers, "TEMPORARY")

    deleted = client.delete(f"/api/v1/roles/{role['id']}", headers=admin_headers)
    deleted.raise_for_status()
    assert deleted.json()["is_active"] is False

    active_names = [item["name"] for item in client.get("/api/v1/roles", headers=admin_headers).json()]
    assert "TEMPORARY" not in active_names
    all_names = [
        item["name"]
        for item in client.get("/api/v1/roles", params={"include_inactive": True}, headers=admin_headers).json()
    ]
    assert "TEMPORARY" in all_names


def test_role_permissions_and_users_listing(client: TestClient, admin_headers: Dict[str, str]) -> None:
    viewer = role_by_name(client, admin_headers, "VIEWER")
    assert viewer["permissions"] == ["COMMUNICATION:READ", "DOCUMENT:READ", "FUND:READ"]

    permissions = client.get(f"/api/v1/roles/{viewer['id']}/permissions", headers=admin_headers).json()
    assert [permission["name"] for permission in permissions] == ["COMMUNICATION:READ", "DOCUMENT:READ", "FUND:READ"]

    super_admin = role_by_name(client, admin_headers, "SUPER_ADMIN")
    users = client.get(f"/api/v1/roles/{super_admin['id']}/users", headers=admin_headers).json()
    assert users == ["admin-user"]


def test_role_routes_require_authorization(client: TestClient, admin_headers: Dict[str, str]) -> None:
    anonymous = client.post("/api/v1/roles", json={"name": "HACKER"})
    assert anonymous.status_code == 401

    outsider = client.post("/api/v1/roles", json={"name": "HACKER"}, headers={"X-Actor-Id": "nobody"})
    assert outsider.status_code == 403
    assert "SUPER_ADMIN" in outsider.json()["detail"]

    reader = client.get("/api/v1/roles", headers={"X-Actor-Id": "nobody"})
    assert reader.status_code == 403


def test_role_service_direct_usage() -> None:
    with session_scope() as session:
        service = RoleService(session)
        first = service.create_role(RoleCreate(name="FIRST", is_default=True), actor_id="tester")
        second = service.create_role(RoleCreate(name="SECOND"), actor_id="tester")

        with pytest.raises(RoleConflictError):
            service.create_role(RoleCreate(name="FIRST"), actor_id="tester")
        with pytest.raises(RoleConflictError):
            service.update_role(second.id, RoleUpdate(name="FIRST"), actor_id="tester")

        service.update_role(second.id, RoleUpdate(is_default=True), actor_id="tester")
        assert service.get_default_role().name == "SECOND"
        assert service.get_role(first.id).is_default is False

        with pytest.raises(BadRequestError):
            service.delete_role(second.id, actor_id="tester")
        with pytest.raises(RoleNotFoundError):
            service.get_role_by_name("MISSING")


def test_inactive_role_cannot_become_default(client: TestClient, admin_headers: Dict[str, str]) -> None:
    other = create_role(client, admin_headers, "OTHER")

    both = client.patch(
        f"/api/v1/roles/{other['id']}",
        json={"is_active": False, "is_default": True},
        headers=admin_headers,
    )
    assert both.status_code == 400

    client.delete(f"/api/v1/roles/{other['id']}", headers=admin_headers).raise_for_status()
    promote = client.patch(f"/api/v1/roles/{other['id']}", json={"is_default": True}, headers=admin_headers)
    assert promote.status_code == 400

    created = client.post(
        "/api/v1/roles",
        json={"name": "DORMANT", "is_active": False, "is_default": True},
        headers=admin_headers,
    )
    assert created.status_code == 400

    assert client.get("/api/v1/roles/default", headers=admin_headers).json()["name"] == "INVESTOR"
    assert role_by_name(client, admin_headers, "OTHER")["is_default"] is False


def test_inactive_default_refused_in_service() -> None:
    with session_scope() as session:
        service = RoleService(session)
        with pytest.raises(BadRequestError) as excinfo:
            service.create_role(RoleCreate(name="DORMANT", is_active=False, is_default=True), actor_id="tester")
        assert excinfo.value.reason == "role is inactive"

        role = service.create_role(RoleCreate(name="OTHER"), actor_id="tester")
        with pytest.raises(BadRequestError):
            service.update_role(role.id, RoleUpdate(is_active=False, is_default=True), actor_id="tester")
        assert service.get_role(role.id).is_active is True
