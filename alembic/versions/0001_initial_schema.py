"""Initial schema for roles, permissions, links and audit tables."""

from __future__ import annotations
from typing import Union, Sequence

from alembic import op
import sqlalchemy as sa
from fundauth.models.types import JSONType, PrincipalId, UUIDType

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Initial schema for roles, permissions, links and audit tables."""
    op.create_table(
        "roles",
        sa.Column("id", UUIDType, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=512), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_roles")),
        sa.UniqueConstraint("name", name="uq_roles_name"),
    )
    op.create_index(
        "uq_roles_single_default",
        "roles",
        ["is_default"],
        unique=True,
        sqlite_where=sa.text("is_default = 1"),
        postgresql_where=sa.text("is_default"),
    )

    op.create_table(
        "permissions",
        sa.Column("id", UUIDType, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=1024), nullable=True),
        sa.Column("resource", sa.String(length=120), nullable=True),
        sa.Column("action", sa.String(length=120), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_permissions")),
        sa.UniqueConstraint("name", name="uq_permissions_name"),
    )
    op.create_index("ix_permissions_resource_action", "permissions", ["resource", "action"], unique=False)

    op.create_table(
        "user_roles",
        sa.Column("id", UUIDType, nullable=False),
        sa.Column("user_id", PrincipalId, nullable=False),
        sa.Column("role_id", UUIDType, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], name=op.f("fk_user_roles_role_id_roles"), ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_user_roles")),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),
    )
    op.create_index("ix_user_roles_user", "user_roles", ["user_id"], unique=False)
    op.create_index("ix_user_roles_role", "user_roles", ["role_id"], unique=False)

    op.create_table(
        "role_permissions",
        sa.Column("id", UUIDType, nullable=False),
        sa.Column("role_id", UUIDType, nullable=False),
        sa.Column("permission_id", UUIDType, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["role_id"], ["roles.id"], name=op.f("fk_role_permissions_role_id_roles"), ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["permission_id"],
            ["permissions.id"],
            name=op.f("fk_role_permissions_permission_id_permissions"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_role_permissions")),
        sa.UniqueConstraint("role_id", "permission_id", name="uq_role_permissions_role_permission"),
    )

    op.create_table(
        "role_assignments",
        sa.Column("id", UUIDType, nullable=False),
        sa.Column("user_id", PrincipalId, nullable=False),
        sa.Column("role_id", UUIDType, nullable=False),
        sa.Column("assigned_by", PrincipalId, nullable=False),
        sa.Column("reason", sa.String(length=512), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_by", PrincipalId, nullable=True),
        sa.Column("revoke_reason", sa.String(length=512), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["role_id"], ["roles.id"], name=op.f("fk_role_assignments_role_id_roles"), ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_role_assignments")),
    )
    op.create_index("ix_role_assignments_user_role", "role_assignments", ["user_id", "role_id"], unique=False)
    op.create_index("ix_role_assignments_assigned_at", "role_assignments", ["assigned_at"], unique=False)

    op.create_table(
        "permission_assignment_audits",
        sa.Column("id", UUIDType, nullable=False),
        sa.Column(
            "action",
            sa.Enum("grant", "revoke", name="permission_audit_action", native_enum=False),
            nullable=False,
        ),
        sa.Column("actor_id", PrincipalId, nullable=False),
        sa.Column("role_id", UUIDType, nullable=False),
        sa.Column("permission_id", UUIDType, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["role_id"], ["roles.id"], name=op.f("fk_permission_assignment_audits_role_id_roles"), ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["permission_id"],
            ["permissions.id"],
            name=op.f("fk_permission_assignment_audits_permission_id_permissions"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_permission_assignment_audits")),
    )
    op.create_index("ix_permission_audits_role", "permission_assignment_audits", ["role_id"], unique=False)
    op.create_index("ix_permission_audits_permission", "permission_assignment_audits", ["permission_id"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", UUIDType, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actor_id", PrincipalId, nullable=True),
        sa.Column("action", sa.String(length=120), nullable=False),
        sa.Column("resource_type", sa.String(length=64), nullable=False),
        sa.Column("resource_id", sa.String(length=128), nullable=True),
        sa.Column("target_user_id", PrincipalId, nullable=True),
        sa.Column("details", JSONType, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_audit_logs")),
    )
    op.create_index("ix_audit_logs_actor", "audit_logs", ["actor_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_target_user", "audit_logs", ["target_user_id"], unique=False)
    op.create_index("ix_audit_logs_occurred_at", "audit_logs", ["occurred_at"], unique=False)


def downgrade() -> None:
    """Drop every table created above."""
    op.drop_index("ix_audit_logs_occurred_at", table_name="audit_logs")
    op.drop_index("ix_audit_logs_target_user", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_actor", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_permission_audits_permission", table_name="permission_assignment_audits")
    op.drop_index("ix_permission_audits_role", table_name="permission_assignment_audits")
    op.drop_table("permission_assignment_audits")
    op.drop_index("ix_role_assignments_assigned_at", table_name="role_assignments")
    op.drop_index("ix_role_assignments_user_role", table_name="role_assignments")
    op.drop_table("role_assignments")
    op.drop_table("role_permissions")
    op.drop_index("ix_user_roles_role", table_name="user_roles")
    op.drop_index("ix_user_roles_user", table_name="user_roles")
    op.drop_table("user_roles")
    op.drop_index("ix_permissions_resource_action", table_name="permissions")
    op.drop_table("permissions")
    op.drop_index("uq_roles_single_default", table_name="roles")
    op.drop_table("roles")
