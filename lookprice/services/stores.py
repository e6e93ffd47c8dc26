from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lookprice.core.config import DEFAULT_CURRENCY, DEFAULT_PRIMARY_COLOR
from lookprice.core.errors import ConflictError, InternalError, NotFound, ValidationError
from lookprice.models.product import Product
from lookprice.models.store import Store
from lookprice.models.user import ROLE_STOREADMIN, User
from lookprice.services.branding import validate_branding
from lookprice.services.passwords import hash_password
from lookprice.services.scan_ledger import is_subscription_active
from lookprice.utils.slug import SLUG_MAX_LENGTH, SLUG_MIN_LENGTH, is_valid_slug, normalize_slug

logger = logging.getLogger(__name__)
STORES_PREFIX = "[STORES]"

FALLBACK_SLUG = "store"
MAX_SLUG_SUFFIX = 9999
CONTACT_FIELDS = ("name", "address", "contact_person", "phone", "email")
MAX_EXTENSION_DAYS = 3660


def serialize_store(store: Store, product_count: Optional[int] = None) -> dict[str, Any]:
    payload = {
        "id": store.id,
        "name": store.name,
        "slug": store.slug,
        "address": store.address,
        "contact_person": store.contact_person,
        "phone": store.phone,
        "email": store.email,
        "subscription_end": store.subscription_end.isoformat() if store.subscription_end else None,
        "active": is_subscription_active(store),
        "logo_url": store.logo_url,
        "primary_color": store.primary_color or DEFAULT_PRIMARY_COLOR,
        "background_image_url": store.background_image_url,
        "default_currency": store.default_currency,
        "created_at": store.created_at.isoformat() if store.created_at else None,
    }
    if product_count is not None:
        payload["product_count"] = product_count
    return payload


def _slug_exists(db: Session, slug: str) -> bool:
    return db.query(Store.id).filter(Store.slug == slug).first() is not None


def generate_unique_slug(db: Session, name: str) -> str:
    candidate = normalize_slug(name) or FALLBACK_SLUG
    if len(candidate) < SLUG_MIN_LENGTH:
        candidate = f"{candidate}-{FALLBACK_SLUG}"
    candidate = candidate[: SLUG_MAX_LENGTH - 6].strip("-")

    if not _slug_exists(db, candidate):
        return candidate

    for suffix in range(2, MAX_SLUG_SUFFIX + 1):
        with_suffix = f"{candidate}-{suffix}"
        if not _slug_exists(db, with_suffix):
            return with_suffix

    raise ConflictError("Could not generate a unique slug")


def _resolve_slug(db: Session, name: str, requested: Optional[str]) -> str:
    if requested is None or not requested.strip():
        return generate_unique_slug(db, name)

    slug = normalize_slug(requested)
    if not is_valid_slug(slug):
        raise ValidationError("Invalid slug")
    if _slug_exists(db, slug):
        raise ConflictError("Slug already in use")
    return slug


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def create_store_with_owner(
    db: Session,
    *,
    name: str,
    owner_email: str,
    owner_password: str,
    slug: Optional[str] = None,
    address: Optional[str] = None,
    contact_person: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    subscription_end: Optional[date] = None,
    logo_url: Optional[str] = None,
    primary_color: Optional[str] = None,
    default_currency: Optional[str] = None,
) -> tuple[Store, User]:
    """Provision a tenant and its owning storeadmin in a single transaction."""
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("name is required")

    normalized_owner_email = (owner_email or "").strip().lower()
    if not normalized_owner_email:
        raise ValidationError("owner_email is required")
    if not owner_password:
        raise ValidationError("owner_password is required")
    if db.query(User.id).filter(User.email == normalized_owner_email).first() is not None:
        raise ConflictError("Email already in use")

    branding = validate_branding(
        {
            "logo_url": logo_url,
            "primary_color": primary_color,
            "default_currency": default_currency or DEFAULT_CURRENCY,
        }
    )
    store = Store(
        name=clean_name,
        slug=_resolve_slug(db, clean_name, slug),
        address=_clean_optional(address),
        contact_person=_clean_optional(contact_person),
        phone=_clean_optional(phone),
        email=_clean_optional(email),
        subscription_end=subscription_end,
        **branding,
    )

    try:
        db.add(store)
        db.flush()
        owner = User(
            store_id=store.id,
            email=normalized_owner_email,
            password_hash=hash_password(owner_password),
            role=ROLE_STOREADMIN,
        )
        db.add(owner)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Store slug or owner email already in use") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s store creation failed name=%s", STORES_PREFIX, clean_name)
        raise InternalError("Database error") from exc

    db.refresh(store)
    db.refresh(owner)
    logger.info(
        "%s store created store_id=%s slug=%s owner_user_id=%s",
        STORES_PREFIX,
        store.id,
        store.slug,
        owner.id,
    )
    return store, owner


def get_store(db: Session, store_id: int) -> Store:
    store = db.get(Store, store_id)
    if store is None:
        raise NotFound("Store not found")
    return store


def list_stores(db: Session) -> list[dict[str, Any]]:
    counts = dict(
        db.query(Product.store_id, func.count(Product.id)).group_by(Product.store_id).all()
    )
    stores = db.query(Store).order_by(Store.created_at.desc(), Store.id.desc()).all()
    return [serialize_store(store, product_count=int(counts.get(store.id, 0))) for store in stores]


def update_store(db: Session, store_id: int, changes: Mapping[str, Any]) -> Store:
    """Partial update of contact, billing and branding fields. The slug never changes."""
    store = get_store(db, store_id)

    if "slug" in changes and changes["slug"] is not None and changes["slug"] != store.slug:
        raise ValidationError("slug cannot be changed")

    for field in CONTACT_FIELDS:
        if field not in changes:
            continue
        value = _clean_optional(changes[field])
        if field == "name" and not value:
            raise ValidationError("name cannot be empty")
        setattr(store, field, value)

    if "subscription_end" in changes:
        store.subscription_end = changes["subscription_end"]

    for field, value in validate_branding(changes).items():
        setattr(store, field, value)

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s store update failed store_id=%s", STORES_PREFIX, store_id)
        raise InternalError("Database error") from exc
    db.refresh(store)
    logger.info("%s store updated store_id=%s fields=%s", STORES_PREFIX, store_id, sorted(changes))
    return store


def update_branding(db: Session, store_id: int, changes: Mapping[str, Any]) -> Store:
    store = get_store(db, store_id)
    for field, value in validate_branding(changes).items():
        setattr(store, field, value)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s branding update failed store_id=%s", STORES_PREFIX, store_id)
        raise InternalError("Database error") from exc
    db.refresh(store)
    return store


def extend_subscriptions(
    db: Session,
    store_ids: Iterable[int],
    days: int,
    today: Optional[date] = None,
) -> list[Store]:
    """Push subscription_end forward by ``days`` for every store, all or nothing.

    A store whose subscription is unset or already over restarts from today;
    a store still running extends from its current end date.
    """
    unique_ids = list(dict.fromkeys(int(store_id) for store_id in store_ids))
    if not unique_ids:
        raise ValidationError("store_ids must not be empty")
    if days <= 0 or days > MAX_EXTENSION_DAYS:
        raise ValidationError(f"days must be between 1 and {MAX_EXTENSION_DAYS}")

    today = today or date.today()
    stores = db.query(Store).filter(Store.id.in_(unique_ids)).all()
    found = {store.id for store in stores}
    missing = [store_id for store_id in unique_ids if store_id not in found]
    if missing:
        raise NotFound("Store not found", store_ids=missing)

    for store in stores:
        base = store.subscription_end if store.subscription_end and store.subscription_end > today else today
        store.subscription_end = base + timedelta(days=days)

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s subscription extension failed store_ids=%s", STORES_PREFIX, unique_ids)
        raise InternalError("Database error") from exc

    for store in stores:
        db.refresh(store)
    logger.info("%s subscriptions extended store_ids=%s days=%s", STORES_PREFIX, unique_ids, days)
    return sorted(stores, key=lambda store: unique_ids.index(store.id))
