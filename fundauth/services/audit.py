"""Audit logging service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from fundauth.models.audit_log import AuditLog


class AuditService:
    """Persists audit entries and mirrors them to structured logs."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._logger = logging.getLogger("fundauth.audit")

    def record(
        self,
        *,
        action: str,
        actor_id: Optional[str],
        resource_type: str,
        resource_id: Optional[Any] = None,
        target_user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        occurred_at: Optional[datetime] = None,
    ) -> AuditLog:
        """Append an audit row inside the caller's transaction."""

        entry = AuditLog(
            occurred_at=occurred_at or datetime.now(timezone.utc),
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            target_user_id=target_user_id,
            details=details or {},
        )
        self._session.add(entry)
        self._session.flush()

        self._logger.info(
            "audit_event_recorded",
            extra={
                "audit_id": str(entry.id),
                "action": action,
                "actor_id": actor_id,
                "resource_type": resource_type,
                "resource_id": entry.resource_id,
                "target_user_id": target_user_id,
            },
        )
        return entry

    def list_entries(
        self,
        *,
        target_user_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditLog]:
        stmt = select(AuditLog)
        if target_user_id:
            stmt = stmt.filter(AuditLog.target_user_id == target_user_id)
        if action:
            stmt = stmt.filter(AuditLog.action == action)
        stmt = stmt.order_by(AuditLog.occurred_at.desc()).limit(limit)
        return list(self._session.scalars(stmt))
