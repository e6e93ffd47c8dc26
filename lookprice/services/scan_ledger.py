from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lookprice.core.errors import Forbidden, NotFound
from lookprice.models.product import Product
from lookprice.models.scan_log import ScanLog
from lookprice.models.store import Store
from lookprice.services.branding import build_branding_payload
from lookprice.services.catalog import serialize_product

logger = logging.getLogger(__name__)
SCAN_PREFIX = "[SCAN]"


def is_subscription_active(store: Store, today: Optional[date] = None) -> bool:
    if store.subscription_end is None:
        return True
    return store.subscription_end >= (today or date.today())


def get_public_store(db: Session, slug: str, today: Optional[date] = None) -> Store:
    """Store by slug for the unauthenticated pages; expired tenants are refused with their branding."""
    normalized = (slug or "").strip().lower()
    store = db.query(Store).filter(Store.slug == normalized).first()
    if store is None:
        raise NotFound("Store not found")
    if not is_subscription_active(store, today):
        logger.info("%s subscription expired slug=%s store_id=%s", SCAN_PREFIX, store.slug, store.id)
        raise Forbidden("Store subscription has expired", store=build_branding_payload(store))
    return store


def scan(db: Session, slug: str, barcode: str, today: Optional[date] = None) -> dict[str, Any]:
    store = get_public_store(db, slug, today)
    branding = build_branding_payload(store)

    product = (
        db.query(Product)
        .filter(Product.store_id == store.id, Product.barcode == (barcode or "").strip())
        .first()
    )
    if product is None:
        logger.info("%s miss store_id=%s barcode=%s", SCAN_PREFIX, store.id, barcode)
        raise NotFound("Product not found", store=branding)

    payload = serialize_product(product)
    record_scan(db, store.id, product.id)
    return {**payload, "store": branding}


def record_scan(db: Session, store_id: int, product_id: int) -> bool:
    # Analytics is best-effort: a failed insert never fails the lookup.
    try:
        db.add(ScanLog(store_id=store_id, product_id=product_id))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("%s could not record scan store_id=%s product_id=%s", SCAN_PREFIX, store_id, product_id)
        return False
    return True
