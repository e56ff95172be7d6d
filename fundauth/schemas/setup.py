"""Bootstrap routine schemas."""

from __future__ import annotations

from pydantic import BaseModel


class BootstrapResponse(BaseModel):
    permissions_created: int
    roles_created: int
    role_permissions_assigned: int
    skipped_assignments: int
    failed_assignments: int
    message: str
