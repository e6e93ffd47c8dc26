from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from lookprice.core.errors import NotFound, ValidationError
from lookprice.models.lead import LEAD_STATUSES, Lead

logger = logging.getLogger(__name__)


def serialize_lead(lead: Lead) -> dict[str, Any]:
    return {
        "id": lead.id,
        "name": lead.name,
        "email": lead.email,
        "phone": lead.phone,
        "store_name": lead.store_name,
        "message": lead.message,
        "status": lead.status,
        "created_at": lead.created_at.isoformat() if lead.created_at else None,
    }


def create_lead(
    db: Session,
    *,
    name: str,
    email: str,
    phone: Optional[str] = None,
    store_name: Optional[str] = None,
    message: Optional[str] = None,
) -> Lead:
    lead = Lead(
        name=name.strip(),
        email=email.strip().lower(),
        phone=(phone or "").strip() or None,
        store_name=(store_name or "").strip() or None,
        message=(message or "").strip() or None,
        status="new",
    )
    db.add(lead)
    db.commit()
    db.refresh(lead)
    logger.info("Lead received lead_id=%s", lead.id)
    return lead


def list_leads(db: Session, status: Optional[str] = None) -> list[Lead]:
    query = db.query(Lead)
    if status:
        query = query.filter(Lead.status == status)
    return query.order_by(Lead.created_at.desc(), Lead.id.desc()).all()


def update_lead_status(db: Session, lead_id: int, status: str) -> Lead:
    if status not in LEAD_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(sorted(LEAD_STATUSES))}")
    lead = db.get(Lead, lead_id)
    if lead is None:
        raise NotFound("Lead not found")
    lead.status = status
    db.commit()
    db.refresh(lead)
    return lead
