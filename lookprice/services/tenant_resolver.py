from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Request

from lookprice.core.errors import Forbidden, ValidationError
from lookprice.services.auth import Principal

logger = logging.getLogger(__name__)

STORE_ID_FIELD = "store_id"
WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class TenantResolver:
    """Resolve the effective store id for tenant-scoped requests.

    Superadmin tokens carry no store, so the client names the target store
    explicitly: the JSON/form body on writes, the query string on reads (the
    query is also accepted on writes that have no body, e.g. DELETE). Every
    other role is bound to the store in its token; an explicit store id that
    disagrees with the token is a tenant mismatch, never an override.
    """

    @staticmethod
    def parse_store_id(raw: Any) -> int | None:
        if raw is None or isinstance(raw, bool):
            return None
        if isinstance(raw, int) and raw > 0:
            return raw
        if isinstance(raw, str):
            raw = raw.strip()
            if raw == "":
                return None
            if raw.isdigit() and int(raw) > 0:
                return int(raw)
        raise ValidationError("store_id must be a positive integer")

    @classmethod
    async def explicit_store_id(cls, request: Request) -> int | None:
        body_value: Any = None
        if request.method in WRITE_METHODS:
            body_value = await cls._store_id_from_body(request)
        if body_value is not None:
            return cls.parse_store_id(body_value)
        return cls.parse_store_id(request.query_params.get(STORE_ID_FIELD))

    @staticmethod
    async def _store_id_from_body(request: Request) -> Any:
        content_type = (request.headers.get("content-type") or "").lower()
        if content_type.startswith("application/json"):
            raw_body = await request.body()
            if not raw_body:
                return None
            try:
                body = json.loads(raw_body)
            except ValueError:
                # FastAPI reports the malformed body itself
                return None
            if isinstance(body, dict):
                return body.get(STORE_ID_FIELD)
            return None
        if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
            form = await request.form()
            return form.get(STORE_ID_FIELD)
        return None

    @staticmethod
    def resolve(
        principal: Principal,
        explicit_store_id: int | None,
        request: Request | None = None,
    ) -> int:
        if principal.is_superadmin:
            if explicit_store_id is None:
                raise ValidationError("store_id is required")
            return explicit_store_id

        if principal.store_id is None:
            raise Forbidden("Store not authorized")

        if explicit_store_id is not None and explicit_store_id != principal.store_id:
            endpoint = f"{request.method} {request.url.path}" if request is not None else None
            logger.warning(
                "Access denied (tenant_mismatch): user_id=%s user_role=%s user_store=%s store_id=%s endpoint=%s",
                principal.user_id,
                principal.role,
                principal.store_id,
                explicit_store_id,
                endpoint,
            )
            raise Forbidden("Store not authorized")

        return principal.store_id
