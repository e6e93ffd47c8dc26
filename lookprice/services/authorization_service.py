from __future__ import annotations

import logging

from fastapi import Request

from lookprice.core.errors import Forbidden
from lookprice.models.user import ROLE_EDITOR, ROLE_STOREADMIN, ROLE_VIEWER
from lookprice.services.auth import Principal

logger = logging.getLogger(__name__)

CATALOG_READ = "catalog:read"
CATALOG_WRITE = "catalog:write"
CATALOG_PURGE = "catalog:purge"
ANALYTICS_READ = "analytics:read"
STORE_READ = "store:read"
BRANDING_WRITE = "branding:write"
USERS_MANAGE = "users:manage"

STORES_MANAGE = "stores:manage"
STORES_BILLING = "stores:billing"
SYSTEM_STATS = "system:stats"
LEADS_MANAGE = "leads:manage"

# Tenant-scoped actions and the store roles allowed to perform them.
TENANT_PERMISSIONS: dict[str, frozenset[str]] = {
    CATALOG_READ: frozenset({ROLE_STOREADMIN, ROLE_EDITOR, ROLE_VIEWER}),
    ANALYTICS_READ: frozenset({ROLE_STOREADMIN, ROLE_EDITOR, ROLE_VIEWER}),
    STORE_READ: frozenset({ROLE_STOREADMIN, ROLE_EDITOR, ROLE_VIEWER}),
    CATALOG_WRITE: frozenset({ROLE_STOREADMIN, ROLE_EDITOR}),
    CATALOG_PURGE: frozenset({ROLE_STOREADMIN}),
    BRANDING_WRITE: frozenset({ROLE_STOREADMIN}),
    USERS_MANAGE: frozenset({ROLE_STOREADMIN}),
}

SUPERADMIN_ONLY = frozenset({STORES_MANAGE, STORES_BILLING, SYSTEM_STATS, LEADS_MANAGE})


class AuthorizationService:
    """Allow/deny decisions for a verified principal against an action and store."""

    @staticmethod
    def log_access_denied(
        *,
        reason: str,
        principal: Principal,
        action: str,
        store_id: int | None,
        request: Request | None = None,
    ) -> None:
        endpoint = f"{request.method} {request.url.path}" if request is not None else None
        logger.warning(
            "Access denied (%s): user_id=%s user_role=%s user_store=%s store_id=%s action=%s endpoint=%s",
            reason,
            principal.user_id,
            principal.role,
            principal.store_id,
            store_id,
            action,
            endpoint,
        )

    @classmethod
    def ensure_permission(
        cls,
        *,
        principal: Principal,
        action: str,
        store_id: int | None = None,
        request: Request | None = None,
    ) -> None:
        if principal.is_superadmin:
            return

        if action in SUPERADMIN_ONLY:
            cls.log_access_denied(
                reason="superadmin_only", principal=principal, action=action, store_id=store_id, request=request
            )
            raise Forbidden("Superadmin access required")

        if store_id is not None and principal.store_id != store_id:
            cls.log_access_denied(
                reason="tenant_mismatch", principal=principal, action=action, store_id=store_id, request=request
            )
            raise Forbidden("Store not authorized")

        allowed_roles = TENANT_PERMISSIONS.get(action)
        if allowed_roles is None or principal.role not in allowed_roles:
            cls.log_access_denied(
                reason="role_denied", principal=principal, action=action, store_id=store_id, request=request
            )
            raise Forbidden("Insufficient permissions")

    @classmethod
    def can(cls, *, principal: Principal, action: str, store_id: int | None = None) -> bool:
        if principal.is_superadmin:
            return True
        if action in SUPERADMIN_ONLY:
            return False
        if store_id is not None and principal.store_id != store_id:
            return False
        return principal.role in TENANT_PERMISSIONS.get(action, frozenset())
