from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from lookprice.core.database import get_db
from lookprice.core.metrics import request_metrics
from lookprice.deps import require_action
from lookprice.services.analytics import system_stats
from lookprice.services.auth import Principal
from lookprice.services.authorization_service import STORES_BILLING, STORES_MANAGE, SYSTEM_STATS
from lookprice.services.stores import (
    create_store_with_owner,
    extend_subscriptions,
    list_stores,
    serialize_store,
    update_store,
)
from lookprice.services.team import serialize_user

router = APIRouter(prefix="/api/admin", tags=["admin-stores"])


class StoreCreatePayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    slug: Optional[str] = Field(default=None, max_length=80)
    address: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    subscription_end: Optional[date] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    default_currency: Optional[str] = None
    admin_email: EmailStr
    admin_password: str = Field(..., min_length=6, max_length=200)


class StoreUpdatePayload(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    slug: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    subscription_end: Optional[date] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    background_image_url: Optional[str] = None
    default_currency: Optional[str] = None


class BulkSubscriptionPayload(BaseModel):
    store_ids: List[int] = Field(..., min_length=1)
    days: int = Field(..., gt=0)


@router.get("/stores")
def list_all_stores(
    _principal: Principal = Depends(require_action(STORES_MANAGE)),
    db: Session = Depends(get_db),
):
    return list_stores(db)


@router.post("/stores", status_code=status.HTTP_201_CREATED)
def create_store(
    payload: StoreCreatePayload,
    _principal: Principal = Depends(require_action(STORES_MANAGE)),
    db: Session = Depends(get_db),
):
    store, owner = create_store_with_owner(
        db,
        name=payload.name,
        slug=payload.slug,
        address=payload.address,
        contact_person=payload.contact_person,
        phone=payload.phone,
        email=str(payload.email) if payload.email else None,
        subscription_end=payload.subscription_end,
        logo_url=payload.logo_url,
        primary_color=payload.primary_color,
        default_currency=payload.default_currency,
        owner_email=str(payload.admin_email),
        owner_password=payload.admin_password,
    )
    return {**serialize_store(store, product_count=0), "owner": serialize_user(owner)}


@router.put("/stores/{store_id}")
def update_store_route(
    store_id: int,
    payload: StoreUpdatePayload,
    _principal: Principal = Depends(require_action(STORES_MANAGE)),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    if "email" in changes and changes["email"] is not None:
        changes["email"] = str(changes["email"])
    return serialize_store(update_store(db, store_id, changes))


@router.post("/stores/bulk-subscription")
def bulk_subscription(
    payload: BulkSubscriptionPayload,
    _principal: Principal = Depends(require_action(STORES_BILLING)),
    db: Session = Depends(get_db),
):
    stores = extend_subscriptions(db, payload.store_ids, payload.days)
    return {
        "success": True,
        "updated": len(stores),
        "stores": [
            {"id": store.id, "subscription_end": store.subscription_end.isoformat()}
            for store in stores
        ],
    }


@router.get("/stats")
def stats(
    _principal: Principal = Depends(require_action(SYSTEM_STATS)),
    db: Session = Depends(get_db),
):
    return system_stats(db)


@router.get("/metrics")
def metrics(_principal: Principal = Depends(require_action(SYSTEM_STATS))):
    return {
        "endpoints": request_metrics.snapshot(),
        "stores": request_metrics.snapshot_per_store(),
    }
