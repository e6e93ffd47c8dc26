from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from lookprice.core.database import get_db
from lookprice.services.branding import build_branding_payload
from lookprice.services.leads import create_lead, serialize_lead
from lookprice.services.scan_ledger import get_public_store, scan

router = APIRouter(prefix="/api/public", tags=["public"])


class LeadPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=40)
    store_name: Optional[str] = Field(default=None, max_length=120)
    message: Optional[str] = Field(default=None, max_length=2000)


@router.get("/store/{slug}")
def public_store(slug: str, db: Session = Depends(get_db)):
    return build_branding_payload(get_public_store(db, slug))


@router.get("/scan/{slug}/{barcode}")
def public_scan(slug: str, barcode: str, db: Session = Depends(get_db)):
    return scan(db, slug, barcode)


@router.post("/leads", status_code=status.HTTP_201_CREATED)
def submit_lead(payload: LeadPayload, db: Session = Depends(get_db)):
    lead = create_lead(
        db,
        name=payload.name,
        email=str(payload.email),
        phone=payload.phone,
        store_name=payload.store_name,
        message=payload.message,
    )
    return serialize_lead(lead)
