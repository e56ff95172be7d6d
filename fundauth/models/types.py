"""Column types shared by the ORM models."""

from __future__ import annotations

from sqlalchemy import JSON, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB

# Native UUID on PostgreSQL, CHAR(32) elsewhere.
UUIDType = Uuid(as_uuid=True)

# JSONB where the dialect offers it.
JSONType = JSON().with_variant(JSONB(), "postgresql")

# Identifiers issued by the external identity provider are opaque strings.
PrincipalId = String(length=128)
