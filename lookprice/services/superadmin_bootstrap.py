from __future__ import annotations

import logging
from typing import Callable, Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from lookprice.core import config
from lookprice.models.store import Store
from lookprice.models.user import ALL_ROLES, ROLE_SUPERADMIN, User
from lookprice.services.passwords import hash_password, password_looks_hashed

logger = logging.getLogger(__name__)
BOOTSTRAP_PREFIX = "[SUPERADMIN_BOOTSTRAP]"


def ensure_users_table(engine: Engine) -> None:
    inspector = inspect(engine)
    if not inspector.has_table("users"):
        logger.error("%s table users missing / migrations not applied", BOOTSTRAP_PREFIX)
        raise RuntimeError("Table users not found. Run `alembic upgrade head` first.")


def _resolve_password_hash(password: str) -> str:
    if password_looks_hashed(password):
        logger.info("%s password already hashed; storing as-is", BOOTSTRAP_PREFIX)
        return password
    return hash_password(password)


def upsert_user(
    db: Session,
    *,
    email: str,
    role: str,
    store_id: Optional[int],
    password: Optional[str],
) -> tuple[User, bool]:
    """Create the user or update role/store (and password when given). Returns (user, created)."""
    normalized_email = email.strip().lower()
    if role not in ALL_ROLES:
        raise ValueError(f"Unknown role: {role}")
    if role == ROLE_SUPERADMIN:
        store_id = None
    elif store_id is None:
        raise ValueError("A store id is required for store roles.")
    elif db.get(Store, store_id) is None:
        raise ValueError(f"Store {store_id} not found.")

    existing = db.query(User).filter(User.email == normalized_email).first()
    if existing:
        existing.role = role
        existing.store_id = store_id
        if password:
            existing.password_hash = _resolve_password_hash(password)
        db.commit()
        db.refresh(existing)
        return existing, False

    if not password:
        raise ValueError("A password is required to create a new user.")

    user = User(
        email=normalized_email,
        role=role,
        store_id=store_id,
        password_hash=_resolve_password_hash(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user, True


def bootstrap_superadmin(session_factory: Callable[[], Session]) -> Optional[int]:
    """Seed the configured superadmin; reset its password when RESET_SUPERADMIN_PASSWORD is on."""
    password = config.SUPERADMIN_PASSWORD
    email = config.SUPERADMIN_EMAIL
    if not password:
        logger.warning("%s skipped: configure SUPERADMIN_PASSWORD.", BOOTSTRAP_PREFIX)
        return None

    logger.info("%s start email=%s", BOOTSTRAP_PREFIX, email)
    db = session_factory()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            if config.RESET_SUPERADMIN_PASSWORD:
                existing.password_hash = _resolve_password_hash(password)
                db.commit()
                logger.info("%s password reset id=%s", BOOTSTRAP_PREFIX, existing.id)
            else:
                logger.info("%s exists id=%s role=%s", BOOTSTRAP_PREFIX, existing.id, existing.role)
            return existing.id

        user, _ = upsert_user(db, email=email, role=ROLE_SUPERADMIN, store_id=None, password=password)
        logger.info("%s created id=%s email=%s", BOOTSTRAP_PREFIX, user.id, user.email)
        return user.id
    except Exception:
        logger.exception("%s ERROR bootstrap failed", BOOTSTRAP_PREFIX)
        raise
    finally:
        db.close()
