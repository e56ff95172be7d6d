from __future__ import annotations

from typing import Dict

from fastapi.testclient import TestClient


def create_permission(client: TestClient, headers: Dict[str, str], name: str, **extra) -> dict:  # noqa: ANN003
    response = client.post("/api/v1/permissions", json={"name": name, **extra}, headers=headers)
    response.raise_for_status()
    return response.json()


def test_create_permission_and_duplicate(client: TestClient, admin_headers: Dict[str, str]) -> None:
    created = create_permission(
        client,
        admin_headers,
        "NAV:PUBLISH",
        resource="NAV",
        action="PUBLISH",
        description="Publish net asset values",
    )
    assert created["resource"] == "NAV"
    assert created["action"] == "PUBLISH"
    assert created["role_count"] == 0

    duplicate = client.post("/api/v1/permissions", json={"name": "NAV:PUBLISH"}, headers=admin_headers)
    assert duplicate.status_code == 409


def test_listing_ordered_by_resource_then_name(client: TestClient, admin_headers: Dict[str, str]) -> None:
    permissions = client.get("/api/v1/permissions", headers=admin_headers).json()
    assert len(permissions) == 56
    keys = [(item["resource"] or "", item["name"]) for item in permissions]
    assert keys == sorted(keys)


def test_by_resource_groups_null_resource_under_general(client: TestClient, admin_headers: Dict[str, str]) -> None:
    create_permission(client, admin_headers, "MAINTENANCE_MODE")

    grouped = client.get("/api/v1/permissions/by-resource", headers=admin_headers).json()
    assert [item["name"] for item in grouped["GENERAL"]] == ["MAINTENANCE_MODE"]
    assert {item["name"] for item in grouped["AUDIT"]} == {"AUDIT:READ", "AUDIT:EXPORT"}


def test_list_for_resource(client: TestClient, admin_headers: Dict[str, str]) -> None:
    response = client.get("/api/v1/permissions/resource/PORTFOLIO", headers=admin_headers)
    response.raise_for_status()
    assert [item["name"] for item in response.json()] == ["PORTFOLIO:ANALYZE", "PORTFOLIO:READ", "PORTFOLIO:READ_OWN"]


def test_delete_linked_permission_rejected(client: TestClient, admin_headers: Dict[str, str]) -> None:
    fund_read = client.get("/api/v1/permissions/by-name/FUND:READ", headers=admin_headers).json()
    assert fund_read["role_count"] > 0

    response = client.delete(f"/api/v1/permissions/{fund_read['id']}", headers=admin_headers)
    assert response.status_code == 400
    assert "assigned to" in response.json()["detail"]


def test_soft_delete_unlinked_permission(client: TestClient, admin_headers: Dict[str, str]) -> None:
    created = create_permission(client, admin_headers, "NAV:APPROVE", resource="NAV", action="APPROVE")

    deleted = client.delete(f"/api/v1/permissions/{created['id']}", headers=admin_headers)
    deleted.raise_for_status()
    assert deleted.json()["is_active"] is False

    fetched = client.get(f"/api/v1/permissions/{created['id']}", headers=admin_headers)
    assert fetched.json()["is_active"] is False
    names = [item["name"] for item in client.get("/api/v1/permissions", headers=admin_headers).json()]
    assert "NAV:APPROVE" not in names


def test_update_permission(client: TestClient, admin_headers: Dict[str, str]) -> None:
    created = create_permission(client, admin_headers, "NAV:DRAFT")

    collision = client.patch(
        f"/api/v1/permissions/{created['id']}",
        json={"name": "FUND:READ"},
        headers=admin_headers,
    )
    assert collision.status_code == 409

    updated = client.patch(
        f"/api/v1/permissions/{created['id']}",
        json={"resource": "NAV", "action": "DRAFT"},
        headers=admin_headers,
    )
    updated.raise_for_status()
    assert updated.json()["resource"] == "NAV"

    missing = client.get("/api/v1/permissions/by-name/NOPE", headers=admin_headers)
    assert missing.status_code == 404
