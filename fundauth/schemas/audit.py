"""Audit log schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuditLogResponse(BaseModel):
    id: UUID
    occurred_at: datetime
    actor_id: Optional[str]
    action: str
    resource_type: str
    resource_id: Optional[str]
    target_user_id: Optional[str]
    details: Dict[str, Any]

    model_config = ConfigDict(from_attributes=True)
