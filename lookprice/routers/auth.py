from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from lookprice.core.database import get_db
from lookprice.core.errors import InvalidToken
from lookprice.deps import get_current_principal
from lookprice.models.user import User
from lookprice.services.auth import Principal, login, serialize_profile

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginPayload(BaseModel):
    # plain str: the error for a malformed email must stay "Invalid credentials"
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


@router.post("/login")
def login_route(payload: LoginPayload, db: Session = Depends(get_db)):
    token, user = login(db, payload.email, payload.password)
    return {
        "token": token,
        "user": {"email": user.email, "role": user.role, "store_id": user.store_id},
    }


@router.get("/me")
def me(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)):
    user = db.get(User, principal.user_id)
    if user is None:
        # token outlived its user
        raise InvalidToken()
    return serialize_profile(user)
