from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from lookprice.core.database import get_db
from lookprice.core.errors import AuthError, NotFound
from lookprice.core.request_context import bind_principal, bind_store
from lookprice.models.store import Store
from lookprice.services.auth import Principal, verify_token
from lookprice.services.authorization_service import AuthorizationService
from lookprice.services.tenant_resolver import TenantResolver

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class StoreScope:
    """A verified principal plus the store the request is allowed to act on."""

    principal: Principal
    store_id: int


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise AuthError("Unauthorized")

    principal = verify_token(credentials.credentials)
    bind_principal(principal)
    return principal


def require_action(action: str):
    """Gate for routes that are not scoped to a single store (superadmin console)."""

    def _dependency(
        request: Request,
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        AuthorizationService.ensure_permission(principal=principal, action=action, request=request)
        return principal

    return _dependency


def require_store_access(action: str):
    """Authenticate, resolve the effective store id, then authorize the action on it."""

    async def _dependency(
        request: Request,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db),
    ) -> StoreScope:
        explicit_store_id = await TenantResolver.explicit_store_id(request)
        store_id = TenantResolver.resolve(principal, explicit_store_id, request=request)
        AuthorizationService.ensure_permission(
            principal=principal,
            action=action,
            store_id=store_id,
            request=request,
        )
        if db.get(Store, store_id) is None:
            raise NotFound("Store not found")

        bind_store(store_id)
        return StoreScope(principal=principal, store_id=store_id)

    return _dependency
