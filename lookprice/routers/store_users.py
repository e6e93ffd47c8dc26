from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from lookprice.core.database import get_db
from lookprice.deps import StoreScope, require_store_access
from lookprice.models.user import ROLE_VIEWER
from lookprice.services.authorization_service import USERS_MANAGE
from lookprice.services.team import (
    add_member,
    list_members,
    remove_member,
    reset_member_password,
    serialize_user,
)

router = APIRouter(prefix="/api/store/users", tags=["store-users"])


class TeammateCreatePayload(BaseModel):
    store_id: Optional[int] = None
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=200)
    role: str = Field(default=ROLE_VIEWER)


class TeammateResetPasswordPayload(BaseModel):
    store_id: Optional[int] = None
    new_password: str = Field(..., min_length=6, max_length=200)


@router.get("")
def list_teammates(
    scope: StoreScope = Depends(require_store_access(USERS_MANAGE)),
    db: Session = Depends(get_db),
):
    return [serialize_user(user) for user in list_members(db, scope.store_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_teammate(
    payload: TeammateCreatePayload,
    scope: StoreScope = Depends(require_store_access(USERS_MANAGE)),
    db: Session = Depends(get_db),
):
    user = add_member(
        db,
        scope.store_id,
        email=str(payload.email),
        password=payload.password,
        role=payload.role.strip().lower(),
    )
    return serialize_user(user)


@router.delete("/{user_id}")
def delete_teammate(
    user_id: int,
    scope: StoreScope = Depends(require_store_access(USERS_MANAGE)),
    db: Session = Depends(get_db),
):
    remove_member(db, scope.store_id, user_id)
    return {"success": True}


@router.post("/{user_id}/reset_password")
def reset_teammate_password(
    user_id: int,
    payload: TeammateResetPasswordPayload,
    scope: StoreScope = Depends(require_store_access(USERS_MANAGE)),
    db: Session = Depends(get_db),
):
    user = reset_member_password(db, scope.store_id, user_id, payload.new_password)
    return {"success": True, "user": serialize_user(user)}
