from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from lookprice.core.database import get_db
from lookprice.deps import require_action
from lookprice.services.auth import Principal
from lookprice.services.authorization_service import LEADS_MANAGE
from lookprice.services.leads import list_leads, serialize_lead, update_lead_status

router = APIRouter(prefix="/api/admin/leads", tags=["admin-leads"])


class LeadStatusPayload(BaseModel):
    status: str = Field(..., min_length=1)


@router.get("")
def list_all_leads(
    status: Optional[str] = None,
    _principal: Principal = Depends(require_action(LEADS_MANAGE)),
    db: Session = Depends(get_db),
):
    return [serialize_lead(lead) for lead in list_leads(db, status)]


@router.put("/{lead_id}")
def update_lead(
    lead_id: int,
    payload: LeadStatusPayload,
    _principal: Principal = Depends(require_action(LEADS_MANAGE)),
    db: Session = Depends(get_db),
):
    return serialize_lead(update_lead_status(db, lead_id, payload.status.strip().lower()))
