from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lookprice.core.database import get_db
from lookprice.deps import StoreScope, require_store_access
from lookprice.services.analytics import store_analytics
from lookprice.services.authorization_service import ANALYTICS_READ

router = APIRouter(prefix="/api/store/analytics", tags=["store-analytics"])


@router.get("")
def analytics(
    scope: StoreScope = Depends(require_store_access(ANALYTICS_READ)),
    db: Session = Depends(get_db),
):
    return store_analytics(db, scope.store_id)
