from __future__ import annotations

import re
from typing import Any, Mapping

from lookprice.core.config import DEFAULT_PRIMARY_COLOR
from lookprice.core.errors import ValidationError
from lookprice.models.store import Store

HEX_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")
URL_PREFIXES = ("http://", "https://", "/")

BRANDING_FIELDS = ("logo_url", "primary_color", "background_image_url", "default_currency")


def normalize_currency(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().upper()
    if not normalized:
        return None
    if not CURRENCY_PATTERN.match(normalized):
        raise ValidationError("currency must be a 3-letter ISO code")
    return normalized


def normalize_color(value: str | None) -> str:
    normalized = (value or "").strip()
    if not HEX_COLOR_PATTERN.match(normalized):
        raise ValidationError("primary_color must be a valid HEX color")
    return normalized.lower()


def normalize_image_url(field: str, value: str | None) -> str | None:
    normalized = (value or "").strip()
    if not normalized:
        return None
    if not normalized.startswith(URL_PREFIXES):
        raise ValidationError(f"{field} must be an http(s) URL or an absolute path")
    return normalized


def validate_branding(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a partial branding update; only keys present in ``changes`` are returned."""
    normalized: dict[str, Any] = {}
    if "primary_color" in changes:
        value = changes["primary_color"]
        normalized["primary_color"] = normalize_color(value) if value else DEFAULT_PRIMARY_COLOR
    for field in ("logo_url", "background_image_url"):
        if field in changes:
            normalized[field] = normalize_image_url(field, changes[field])
    if "default_currency" in changes:
        currency = normalize_currency(changes["default_currency"])
        if currency is None:
            raise ValidationError("default_currency cannot be empty")
        normalized["default_currency"] = currency
    return normalized


def build_branding_payload(store: Store) -> dict[str, Any]:
    return {
        "name": store.name,
        "slug": store.slug,
        "logo_url": store.logo_url,
        "primary_color": store.primary_color or DEFAULT_PRIMARY_COLOR,
        "background_image_url": store.background_image_url,
        "default_currency": store.default_currency,
    }
