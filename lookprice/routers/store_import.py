from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from lookprice.core.config import IMPORT_MAX_BYTES
from lookprice.core.database import get_db
from lookprice.core.errors import ValidationError
from lookprice.deps import StoreScope, require_store_access
from lookprice.services.authorization_service import CATALOG_WRITE
from lookprice.services.catalog import ColumnMapping, bulk_import, guess_column_mapping, read_csv_rows

logger = logging.getLogger(__name__)
IMPORT_PREFIX = "[CATALOG_IMPORT]"

router = APIRouter(prefix="/api/store/import", tags=["store-import"])

SPREADSHEET_SUFFIXES = (".xlsx", ".xls", ".ods")


class MappingPayload(BaseModel):
    barcode: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    price: str = Field(..., min_length=1)
    currency: Optional[str] = None
    description: Optional[str] = None

    def to_mapping(self) -> ColumnMapping:
        return ColumnMapping(
            barcode=self.barcode,
            name=self.name,
            price=self.price,
            currency=self.currency or None,
            description=self.description or None,
        )


class ImportRowsPayload(BaseModel):
    store_id: Optional[int] = None
    rows: List[Dict[str, Any]]
    mapping: Optional[MappingPayload] = None


def _parse_mapping(raw: Optional[str]) -> Optional[ColumnMapping]:
    if raw is None or not raw.strip():
        return None
    try:
        return MappingPayload.model_validate_json(raw).to_mapping()
    except PydanticValidationError as exc:
        raise ValidationError("mapping must be a JSON object naming the barcode, name and price columns") from exc


def _headers_of(rows: List[Dict[str, Any]]) -> list[str]:
    headers: dict[str, None] = {}
    for row in rows:
        for key in row:
            headers.setdefault(str(key), None)
    return list(headers)


@router.post("")
async def import_file(
    file: UploadFile = File(...),
    mapping: Optional[str] = Form(default=None),
    store_id: Optional[str] = Form(default=None),  # consumed by the tenant resolver
    scope: StoreScope = Depends(require_store_access(CATALOG_WRITE)),
    db: Session = Depends(get_db),
):
    filename = (file.filename or "").lower()
    if filename.endswith(SPREADSHEET_SUFFIXES):
        raise ValidationError("Only CSV uploads are accepted; send spreadsheet rows to /api/store/import/rows")

    content = await file.read(IMPORT_MAX_BYTES + 1)
    if len(content) > IMPORT_MAX_BYTES:
        raise ValidationError(f"File exceeds the {IMPORT_MAX_BYTES} byte limit")

    headers, rows = read_csv_rows(content)
    column_mapping = _parse_mapping(mapping) or guess_column_mapping(headers)
    result = bulk_import(db, scope.store_id, rows, column_mapping)
    logger.info(
        "%s file=%s store_id=%s accepted=%s total=%s",
        IMPORT_PREFIX,
        file.filename,
        scope.store_id,
        result.accepted,
        result.total,
    )
    return {"success": True, "count": result.accepted, "total": result.total}


@router.post("/rows")
def import_rows(
    payload: ImportRowsPayload,
    scope: StoreScope = Depends(require_store_access(CATALOG_WRITE)),
    db: Session = Depends(get_db),
):
    if payload.mapping is not None:
        column_mapping = payload.mapping.to_mapping()
    else:
        column_mapping = guess_column_mapping(_headers_of(payload.rows))
    result = bulk_import(db, scope.store_id, payload.rows, column_mapping)
    return {"success": True, "count": result.accepted, "total": result.total}
