from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from lookprice.core import config
from lookprice.core.errors import InvalidCredentials, InvalidToken
from lookprice.models.user import ALL_ROLES, ROLE_SUPERADMIN, User
from lookprice.services.passwords import verify_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Identity carried by a verified bearer token."""

    user_id: int
    role: str
    store_id: Optional[int]

    @property
    def is_superadmin(self) -> bool:
        return self.role == ROLE_SUPERADMIN


def serialize_profile(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "store_id": user.store_id,
    }


def create_access_token(
    user_id: int,
    role: str,
    store_id: Optional[int],
    expires_minutes: Optional[int] = None,
) -> str:
    """
    "sub" must be a string for python-jose; "user_id" stays as the int form
    the front end reads back.
    """
    now = datetime.now(timezone.utc)
    ttl = config.JWT_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "user_id": int(user_id),
        "role": role,
        "store_id": int(store_id) if store_id is not None else None,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl)).timestamp()),
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def verify_token(token: str) -> Principal:
    """Stateless check: signature, expiry and claim shape. Never touches the database."""
    if not token:
        raise InvalidToken()
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except JWTError as exc:
        raise InvalidToken() from exc

    user_id = _coerce_int(payload.get("user_id", payload.get("sub")))
    role = payload.get("role")
    if user_id is None or role not in ALL_ROLES:
        raise InvalidToken()

    raw_store_id = payload.get("store_id")
    store_id = _coerce_int(raw_store_id)
    if raw_store_id is not None and store_id is None:
        raise InvalidToken()
    if role != ROLE_SUPERADMIN and store_id is None:
        raise InvalidToken()

    return Principal(user_id=user_id, role=role, store_id=store_id)


def login(db: Session, email: str, password: str) -> tuple[str, User]:
    normalized_email = (email or "").strip().lower()
    user = db.query(User).filter(User.email == normalized_email).first()
    # Same error for unknown email and wrong password.
    if not user or not verify_password(password or "", user.password_hash):
        logger.warning("Login failed email=%s", normalized_email)
        raise InvalidCredentials()

    token = create_access_token(user.id, user.role, user.store_id)
    logger.info("Login succeeded user_id=%s role=%s store_id=%s", user.id, user.role, user.store_id)
    return token, user
