from __future__ import annotations

from typing import Dict

from fastapi.testclient import TestClient


def test_mutations_are_listed_in_audit_log(client: TestClient, admin_headers: Dict[str, str]) -> None:
    role = client.post("/api/v1/roles", json={"name": "DESK"}, headers=admin_headers).json()
    client.post(
        "/api/v1/assignments/roles",
        json={"user_id": "trader-1", "role_id": role["id"], "reason": "New hire"},
        headers=admin_headers,
    ).raise_for_status()

    response = client.get("/api/v1/audit", params={"target_user_id": "trader-1"}, headers=admin_headers)
    response.raise_for_status()
    entries = response.json()
    assert len(entries) == 1
    assert entries[0]["action"] == "role.assign"
    assert entries[0]["actor_id"] == "admin-user"
    assert entries[0]["resource_id"] == role["id"]
    assert entries[0]["details"]["reason"] == "New hire"

    creates = client.get("/api/v1/audit", params={"action": "role.create"}, headers=admin_headers).json()
    assert [entry["details"]["name"] for entry in creates if entry["resource_id"] == role["id"]] == ["DESK"]


def test_audit_log_requires_audit_read(client: TestClient, admin_headers: Dict[str, str]) -> None:
    response = client.get("/api/v1/audit", headers={"X-Actor-Id": "nobody"})
    assert response.status_code == 403


def test_permission_audit_trail_endpoint(client: TestClient, admin_headers: Dict[str, str]) -> None:
    role = client.post("/api/v1/roles", json={"name": "DESK"}, headers=admin_headers).json()
    permission = client.get("/api/v1/permissions/by-name/FUND:READ", headers=admin_headers).json()
    payload = {"role_id": role["id"], "permission_id": permission["id"]}

    client.post("/api/v1/assignments/permissions", json=payload, headers=admin_headers).raise_for_status()
    client.post("/api/v1/assignments/permissions/revoke", json=payload, headers=admin_headers).raise_for_status()

    trail = client.get(
        "/api/v1/assignments/permissions/audit",
        params={"role_id": role["id"]},
        headers=admin_headers,
    ).json()
    assert sorted(entry["action"] for entry in trail) == ["grant", "revoke"]
    assert {entry["actor_id"] for entry in trail} == {"admin-user"}
