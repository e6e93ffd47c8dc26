from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lookprice.core.errors import ConflictError, Forbidden, NotFound, ValidationError
from lookprice.models.user import ROLE_STOREADMIN, TEAMMATE_ROLES, User
from lookprice.services.passwords import hash_password

logger = logging.getLogger(__name__)
TEAM_PREFIX = "[TEAM]"

MIN_PASSWORD_LENGTH = 6


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "store_id": user.store_id,
        "email": user.email,
        "role": user.role,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _check_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"password must have at least {MIN_PASSWORD_LENGTH} characters")


def _get_member(db: Session, store_id: int, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id, User.store_id == store_id).first()
    if user is None:
        raise NotFound("User not found")
    return user


def list_members(db: Session, store_id: int) -> list[User]:
    return db.query(User).filter(User.store_id == store_id).order_by(User.id.asc()).all()


def add_member(db: Session, store_id: int, *, email: str, password: str, role: str) -> User:
    normalized_email = (email or "").strip().lower()
    if not normalized_email:
        raise ValidationError("email is required")
    if role not in TEAMMATE_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(TEAMMATE_ROLES))}")
    _check_password(password)
    if db.query(User.id).filter(User.email == normalized_email).first() is not None:
        raise ConflictError("Email already in use")

    user = User(
        store_id=store_id,
        email=normalized_email,
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Email already in use") from exc
    db.refresh(user)
    logger.info("%s member added store_id=%s user_id=%s role=%s", TEAM_PREFIX, store_id, user.id, role)
    return user


def remove_member(db: Session, store_id: int, user_id: int) -> None:
    user = _get_member(db, store_id, user_id)
    if user.role == ROLE_STOREADMIN:
        raise Forbidden("The store owner cannot be deleted")
    db.delete(user)
    db.commit()
    logger.info("%s member removed store_id=%s user_id=%s", TEAM_PREFIX, store_id, user_id)


def reset_member_password(db: Session, store_id: int, user_id: int, new_password: str) -> User:
    user = _get_member(db, store_id, user_id)
    _check_password(new_password)
    user.password_hash = hash_password(new_password)
    db.commit()
    db.refresh(user)
    logger.info("%s password reset store_id=%s user_id=%s", TEAM_PREFIX, store_id, user_id)
    return user
