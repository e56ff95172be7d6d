from __future__ import annotations

from typing import Dict, List
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fundauth.core.config import AppSettings
from fundauth.core.database import session_scope
from fundauth.models import (
    AuditLog,
    PermissionAssignmentAudit,
    PermissionAuditAction,
    RoleAssignment,
    RolePermission,
    UserRole,
)
from fundauth.schemas.permission import PermissionCreate
from fundauth.schemas.role import RoleCreate
from fundauth.services.assignments import AssignmentService
from fundauth.services.audit import AuditService
from fundauth.services.effective import EffectiveAccessService
from fundauth.services.errors import (
    AssignmentConflictError,
    AssignmentNotFoundError,
    BadRequestError,
    RoleNotFoundError,
)
from fundauth.services.permissions import PermissionService
from fundauth.services.roles import RoleService


def make_role(session: Session, name: str, *, is_default: bool = False) -> UUID:
    return RoleService(session).create_role(RoleCreate(name=name, is_default=is_default), actor_id="tester").id


def make_permission(session: Session, name: str, resource: str | None = None, action: str | None = None) -> UUID:
    payload = PermissionCreate(name=name, resource=resource, action=action)
    return PermissionService(session).create_permission(payload, actor_id="tester").id


def role_id(client: TestClient, headers: Dict[str, str], name: str) -> str:
    response = client.get(f"/api/v1/roles/by-name/{name}", headers=headers)
    response.raise_for_status()
    return response.json()["id"]


def assign(client: TestClient, headers: Dict[str, str], user_id: str, role: str):  # noqa: ANN201
    return client.post("/api/v1/assignments/roles", json={"user_id": user_id, "role_id": role}, headers=headers)


def user_role_names(client: TestClient, headers: Dict[str, str], user_id: str) -> List[str]:
    response = client.get(f"/api/v1/access/users/{user_id}/roles", headers=headers)
    response.raise_for_status()
    return [role["name"] for role in response.json()["roles"]]


def test_grant_permission_then_role_reports_granting_role() -> None:
    with session_scope() as session:
        analyst = make_role(session, "ANALYST")
        fund_read = make_permission(session, "FUND:READ", "FUND", "READ")
        assignments = AssignmentService(session)
        assignments.assign_permission_to_role(analyst, fund_read, actor_id="tester")
        assignments.assign_role("user-1", analyst, assigned_by="tester")

        check = EffectiveAccessService(session).check_permission("user-1", "FUND:READ")
        assert check.has_permission is True
        assert check.granted_by_roles == ["ANALYST"]


def test_revoking_last_role_is_refused() -> None:
    with session_scope() as session:
        investor = make_role(session, "INVESTOR", is_default=True)
        assignments = AssignmentService(session)
        assignments.assign_role("user-1", investor, assigned_by="tester")

        with pytest.raises(BadRequestError) as excinfo:
            assignments.revoke_role("user-1", investor, revoked_by="tester")
        assert excinfo.value.reason == "last active role"

        assert assignments.user_has_role("user-1", "INVESTOR") is True
        record = session.scalar(select(RoleAssignment).where(RoleAssignment.user_id == "user-1"))
        assert record.revoked_at is None


def test_bulk_assign_reports_existing_link_as_failure(client: TestClient, admin_headers: Dict[str, str]) -> None:
    analyst = role_id(client, admin_headers, "ANALYST")
    assign(client, admin_headers, "u2", analyst).raise_for_status()

    response = client.post(
        "/api/v1/assignments/roles/bulk",
        json={"user_ids": ["u1", "u2", "u3"], "role_id": analyst},
        headers=admin_headers,
    )
    response.raise_for_status()
    body = response.json()
    assert body["success_count"] == 2
    assert body["failures"] == [{"user_id": "u2", "error": "already assigned"}]
    assert body["outcome"] == "partial"

    assert user_role_names(client, admin_headers, "u1") == ["ANALYST"]
    assert user_role_names(client, admin_headers, "u3") == ["ANALYST"]


def test_reassign_after_revoke_reactivates_single_link() -> None:
    with session_scope() as session:
        investor = make_role(session, "INVESTOR")
        viewer = make_role(session, "VIEWER")
        assignments = AssignmentService(session)
        assignments.assign_role("user-1", viewer, assigned_by="admin")

        assignments.assign_role("user-1", investor, assigned_by="admin", reason="onboarding")
        assignments.revoke_role("user-1", investor, revoked_by="admin", reason="offboarding")
        assignments.assign_role("user-1", investor, assigned_by="admin", reason="re-onboarding")

        links = session.scalars(
            select(UserRole).where(UserRole.user_id == "user-1", UserRole.role_id == investor)
        ).all()
        assert len(links) == 1
        assert links[0].is_active is True

        actions = session.scalars(
            select(AuditLog.action).where(
                AuditLog.target_user_id == "user-1",
                AuditLog.resource_id == str(investor),
            )
        ).all()
        assert sorted(actions) == ["role.assign", "role.assign", "role.revoke"]

        records = session.scalars(
            select(RoleAssignment).where(RoleAssignment.user_id == "user-1", RoleAssignment.role_id == investor)
        ).all()
        assert len(records) == 2
        revoked = [record for record in records if record.revoked_at is not None]
        assert len(revoked) == 1
        assert revoked[0].revoked_by == "admin"
        assert revoked[0].revoke_reason == "offboarding"
        assert revoked[0].is_active is False


def test_assign_twice_conflicts_and_inactive_role_not_found() -> None:
    with session_scope() as session:
        viewer = make_role(session, "VIEWER")
        retired = make_role(session, "RETIRED")
        RoleService(session).delete_role(retired, actor_id="tester")
        assignments = AssignmentService(session)

        assignments.assign_role("user-1", viewer, assigned_by="tester")
        with pytest.raises(AssignmentConflictError) as excinfo:
            assignments.assign_role("user-1", viewer, assigned_by="tester")
        assert excinfo.value.reason == "already assigned"

        with pytest.raises(RoleNotFoundError):
            assignments.assign_role("user-1", retired, assigned_by="tester")
        with pytest.raises(RoleNotFoundError):
            assignments.assign_role("user-1", uuid4(), assigned_by="tester")


def test_revoke_without_active_link_not_found() -> None:
    with session_scope() as session:
        viewer = make_role(session, "VIEWER")
        with pytest.raises(AssignmentNotFoundError):
            AssignmentService(session).revoke_role("user-1", viewer, revoked_by="tester")


def test_duplicate_insert_race_surfaces_as_conflict(monkeypatch: pytest.MonkeyPatch) -> None:
    with session_scope() as session:
        viewer = make_role(session, "VIEWER")
        assignments = AssignmentService(session)
        assignments.assign_role("user-1", viewer, assigned_by="tester")

        # Simulate a concurrent writer that passed the lookup before our insert landed.
        monkeypatch.setattr(AssignmentService, "_find_user_link", lambda self, user_id, role_id: None)
        with pytest.raises(AssignmentConflictError):
            assignments.assign_role("user-1", viewer, assigned_by="other-writer")

        links = session.scalars(select(UserRole).where(UserRole.user_id == "user-1")).all()
        assert len(links) == 1
        records = session.scalars(select(RoleAssignment).where(RoleAssignment.user_id == "user-1")).all()
        assert [record.assigned_by for record in records] == ["tester"]


def test_bulk_ceiling_rejects_whole_batch() -> None:
    with session_scope() as session:
        viewer = make_role(session, "VIEWER")
        assignments = AssignmentService(session, settings=AppSettings(bulk_max_items=2))

        with pytest.raises(BadRequestError) as excinfo:
            assignments.bulk_assign_roles(["a", "b", "c"], viewer, assigned_by="tester")
        assert excinfo.value.reason == "bulk limit exceeded"
        assert assignments.get_users_with_role(viewer) == []


def test_bulk_results_distinguish_outcomes() -> None:
    with session_scope() as session:
        viewer = make_role(session, "VIEWER")
        assignments = AssignmentService(session)

        succeeded = assignments.bulk_assign_roles(["a", "b"], viewer, assigned_by="tester")
        assert succeeded.outcome == "succeeded"
        failed = assignments.bulk_assign_roles(["a", "b"], viewer, assigned_by="tester")
        assert failed.outcome == "failed"
        assert failed.success_count == 0
        assert assignments.bulk_assign_roles([], viewer, assigned_by="tester").outcome == "empty"

        with pytest.raises(RoleNotFoundError):
            assignments.bulk_assign_roles(["c"], uuid4(), assigned_by="tester")


def test_bulk_permission_assignment_partial(client: TestClient, admin_headers: Dict[str, str]) -> None:
    role = client.post("/api/v1/roles", json={"name": "NAV_TEAM"}, headers=admin_headers).json()
    fund_read = client.get("/api/v1/permissions/by-name/FUND:READ", headers=admin_headers).json()
    missing = str(uuid4())

    response = client.post(
        "/api/v1/assignments/permissions/bulk",
        json={"role_id": role["id"], "permission_ids": [fund_read["id"], missing]},
        headers=admin_headers,
    )
    response.raise_for_status()
    body = response.json()
    assert body["success_count"] == 1
    assert body["failures"] == [{"permission_id": missing, "error": "permission not found"}]
    assert body["outcome"] == "partial"

    permissions = client.get(f"/api/v1/roles/{role['id']}/permissions", headers=admin_headers).json()
    assert [item["name"] for item in permissions] == ["FUND:READ"]


def test_permission_grant_and_revoke_are_audited() -> None:
    with session_scope() as session:
        role = make_role(session, "DESK")
        permission = make_permission(session, "FUND:READ", "FUND", "READ")
        assignments = AssignmentService(session)

        assignments.assign_permission_to_role(role, permission, actor_id="tester")
        with pytest.raises(AssignmentConflictError):
            assignments.assign_permission_to_role(role, permission, actor_id="tester")
        assignments.revoke_permission_from_role(role, permission, actor_id="tester")
        with pytest.raises(AssignmentNotFoundError):
            assignments.revoke_permission_from_role(role, permission, actor_id="tester")
        assignments.assign_permission_to_role(role, permission, actor_id="tester")

        trail = assignments.get_permission_audit_trail(role_id=role)
        assert sorted(entry.action for entry in trail) == [
            PermissionAuditAction.GRANT,
            PermissionAuditAction.GRANT,
            PermissionAuditAction.REVOKE,
        ]
        assert [item.name for item in assignments.get_role_permissions(role)] == ["FUND:READ"]

        logged = session.scalars(select(AuditLog.action).where(AuditLog.action.like("permission.%"))).all()
        assert sorted(logged) == ["permission.assign", "permission.assign", "permission.create", "permission.revoke"]


def test_revoke_all_roles_bypasses_minimum(client: TestClient, admin_headers: Dict[str, str]) -> None:
    assign(client, admin_headers, "user-9", role_id(client, admin_headers, "VIEWER")).raise_for_status()
    assign(client, admin_headers, "user-9", role_id(client, admin_headers, "ANALYST")).raise_for_status()

    response = client.post(
        "/api/v1/assignments/users/user-9/roles/revoke-all",
        json={"reason": "Account closed"},
        headers=admin_headers,
    )
    response.raise_for_status()
    assert sorted(response.json()["revoked_roles"]) == ["ANALYST", "VIEWER"]
    assert user_role_names(client, admin_headers, "user-9") == []

    history = client.get("/api/v1/assignments/users/user-9/history", headers=admin_headers).json()
    assert len(history) == 2
    assert all(record["revoke_reason"] == "Account closed" for record in history)
    assert all(record["revoked_by"] == "admin-user" for record in history)


def test_guarded_revoke_over_http(client: TestClient, admin_headers: Dict[str, str]) -> None:
    investor = role_id(client, admin_headers, "INVESTOR")
    viewer = role_id(client, admin_headers, "VIEWER")
    assign(client, admin_headers, "user-3", investor).raise_for_status()

    refused = client.post(
        "/api/v1/assignments/roles/revoke",
        json={"user_id": "user-3", "role_id": investor},
        headers=admin_headers,
    )
    assert refused.status_code == 400
    assert user_role_names(client, admin_headers, "user-3") == ["INVESTOR"]

    assign(client, admin_headers, "user-3", viewer).raise_for_status()
    revoked = client.post(
        "/api/v1/assignments/roles/revoke",
        json={"user_id": "user-3", "role_id": investor, "reason": "Upgrade"},
        headers=admin_headers,
    )
    revoked.raise_for_status()
    assert revoked.json()["is_active"] is False
    assert user_role_names(client, admin_headers, "user-3") == ["VIEWER"]


def test_initialize_user_assigns_default_once(client: TestClient, admin_headers: Dict[str, str]) -> None:
    first = client.post("/api/v1/assignments/users/new-user/initialize", headers=admin_headers)
    first.raise_for_status()
    assert first.json() == {"user_id": "new-user", "assigned": True, "roles": ["INVESTOR"]}

    second = client.post("/api/v1/assignments/users/new-user/initialize", headers=admin_headers)
    second.raise_for_status()
    assert second.json()["assigned"] is False


def test_assign_default_role_falls_back_to_investor() -> None:
    with session_scope() as session:
        make_role(session, "INVESTOR")
        assignments = AssignmentService(session)
        assignments.assign_default_role("user-1", assigned_by="tester")
        assert assignments.user_has_any_role("user-1", ["INVESTOR", "VIEWER"]) is True


def test_assign_default_role_without_candidates() -> None:
    with session_scope() as session:
        with pytest.raises(RoleNotFoundError):
            AssignmentService(session).assign_default_role("user-1", assigned_by="tester")


def test_assignment_requires_manage_roles(client: TestClient, admin_headers: Dict[str, str]) -> None:
    viewer = role_id(client, admin_headers, "VIEWER")
    assign(client, admin_headers, "manager", role_id(client, admin_headers, "FUND_MANAGER")).raise_for_status()

    response = assign(client, {"X-Actor-Id": "manager"}, "user-5", viewer)
    assert response.status_code == 403


def test_failed_audit_write_leaves_no_link_change(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_record(self, **kwargs):  # noqa: ANN001, ANN003, ANN202
        raise RuntimeError("audit store unavailable")

    with session_scope() as session:
        investor = make_role(session, "INVESTOR")
        viewer = make_role(session, "VIEWER")
        desk = make_role(session, "DESK")
        fund_read = make_permission(session, "FUND:READ", "FUND", "READ")
        assignments = AssignmentService(session)
        assignments.assign_role("user-1", investor, assigned_by="tester")
        assignments.assign_role("user-1", viewer, assigned_by="tester")
        audit_rows_before = session.scalar(select(func.count(AuditLog.id)))

        monkeypatch.setattr(AuditService, "record", broken_record)

        with pytest.raises(RuntimeError):
            assignments.assign_role("user-1", desk, assigned_by="tester")
        with pytest.raises(RuntimeError):
            assignments.revoke_role("user-1", viewer, revoked_by="tester")
        with pytest.raises(RuntimeError):
            assignments.assign_permission_to_role(desk, fund_read, actor_id="tester")

        monkeypatch.undo()

        assert session.scalars(select(UserRole).where(UserRole.role_id == desk)).all() == []
        assert session.scalars(select(RoleAssignment).where(RoleAssignment.role_id == desk)).all() == []

        viewer_link = session.scalar(select(UserRole).where(UserRole.role_id == viewer))
        assert viewer_link.is_active is True
        viewer_record = session.scalar(select(RoleAssignment).where(RoleAssignment.role_id == viewer))
        assert viewer_record.is_active is True
        assert viewer_record.revoked_at is None

        assert session.scalars(select(RolePermission)).all() == []
        assert session.scalars(select(PermissionAssignmentAudit)).all() == []
        assert session.scalar(select(func.count(AuditLog.id))) == audit_rows_before


def test_named_role_shortcuts(client: TestClient, admin_headers: Dict[str, str]) -> None:
    promoted = client.post("/api/v1/assignments/users/user-7/fund-manager", headers=admin_headers)
    assert promoted.status_code == 201
    officer = client.post("/api/v1/assignments/users/user-7/compliance-officer", headers=admin_headers)
    assert officer.status_code == 201
    assert user_role_names(client, admin_headers, "user-7") == ["COMPLIANCE_OFFICER", "FUND_MANAGER"]

    again = client.post("/api/v1/assignments/users/user-7/fund-manager", headers=admin_headers)
    assert again.status_code == 409

    history = client.get("/api/v1/assignments/users/user-7/history", headers=admin_headers)
    history.raise_for_status()
    assert sorted(entry["reason"] for entry in history.json()) == [
        "Assigned as Compliance Officer",
        "Promoted to Fund Manager",
    ]


def test_named_role_shortcut_without_role() -> None:
    with session_scope() as session:
        with pytest.raises(RoleNotFoundError):
            AssignmentService(session).promote_to_fund_manager("user-1", assigned_by="tester")


def test_initialize_me_uses_calling_actor(client: TestClient, admin_headers: Dict[str, str]) -> None:
    anonymous = client.post("/api/v1/assignments/users/me/initialize")
    assert anonymous.status_code == 401

    first = client.post("/api/v1/assignments/users/me/initialize", headers={"X-Actor-Id": "self-service"})
    first.raise_for_status()
    assert first.json() == {"user_id": "self-service", "assigned": True, "roles": ["INVESTOR"]}

    second = client.post("/api/v1/assignments/users/me/initialize", headers={"X-Actor-Id": "self-service"})
    second.raise_for_status()
    assert second.json()["assigned"] is False
