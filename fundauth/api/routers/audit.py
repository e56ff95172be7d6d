"""Audit log endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from fundauth.api.dependencies import Authorize, get_audit_service
from fundauth.api.requirements import AUDIT_READ
from fundauth.schemas.audit import AuditLogResponse
from fundauth.services.audit import AuditService

router = APIRouter()


@router.get(
    "",
    response_model=List[AuditLogResponse],
    dependencies=[Depends(Authorize(AUDIT_READ))],
)
def list_audit_entries(
    target_user_id: Optional[str] = Query(default=None),
    action: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    service: AuditService = Depends(get_audit_service),
) -> List[AuditLogResponse]:
    entries = service.list_entries(target_user_id=target_user_id, action=action, limit=limit)
    return [AuditLogResponse.model_validate(entry) for entry in entries]
