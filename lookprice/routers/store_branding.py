from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from lookprice.core.database import get_db
from lookprice.deps import StoreScope, require_store_access
from lookprice.services.authorization_service import BRANDING_WRITE
from lookprice.services.branding import build_branding_payload
from lookprice.services.stores import update_branding

router = APIRouter(prefix="/api/store/branding", tags=["store-branding"])


class BrandingPayload(BaseModel):
    store_id: Optional[int] = None
    logo_url: Optional[str] = Field(default=None, max_length=2048)
    primary_color: Optional[str] = Field(default=None, max_length=7)
    background_image_url: Optional[str] = Field(default=None, max_length=2048)
    default_currency: Optional[str] = Field(default=None, max_length=3)


@router.post("")
def save_branding(
    payload: BrandingPayload,
    scope: StoreScope = Depends(require_store_access(BRANDING_WRITE)),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True, exclude={"store_id"})
    store = update_branding(db, scope.store_id, changes)
    return {"success": True, "branding": build_branding_payload(store)}
