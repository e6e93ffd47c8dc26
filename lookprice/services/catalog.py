from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lookprice.core.config import DEFAULT_CURRENCY, IMPORT_MAX_ROWS
from lookprice.core.errors import ConflictError, InternalError, NotFound, ValidationError
from lookprice.models.product import Product
from lookprice.models.scan_log import ScanLog
from lookprice.models.store import Store
from lookprice.services.branding import CURRENCY_PATTERN, normalize_currency

logger = logging.getLogger(__name__)

PRICE_QUANTUM = Decimal("0.01")
MAX_PRICE = Decimal("9999999999.99")
CSV_DELIMITERS = ",;\t"

# Header aliases, lower-cased, used when no explicit column mapping is sent.
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "barcode": ("barcode", "barkod", "ean", "gtin", "sku", "code", "kod"),
    "name": ("name", "product", "product name", "ad", "adi", "adı", "urun", "ürün", "urun adi", "ürün adı"),
    "price": ("price", "fiyat", "satis fiyati", "satış fiyatı", "amount"),
    "currency": ("currency", "para birimi", "doviz", "döviz"),
    "description": ("description", "aciklama", "açıklama", "details", "detay"),
}


@dataclass(frozen=True)
class ColumnMapping:
    barcode: str
    name: str
    price: str
    currency: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class ImportResult:
    accepted: int
    total: int


def parse_price(value: Any) -> Optional[Decimal]:
    """Parse a non-negative price; returns None for anything unusable.

    Accepts numbers and strings such as ``19.90``, ``19,90``, ``1.234,56``
    and ``1,234.56``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        candidate = value
    elif isinstance(value, (int, float)):
        candidate = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(" ", "")
        if not text:
            return None
        if "," in text and "." in text:
            # the right-most separator is the decimal one
            if text.rfind(",") > text.rfind("."):
                text = text.replace(".", "").replace(",", ".")
            else:
                text = text.replace(",", "")
        elif "," in text:
            text = text.replace(",", ".")
        try:
            candidate = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not candidate.is_finite() or candidate < 0 or candidate > MAX_PRICE:
        return None
    return candidate.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # spreadsheets hand barcodes over as floats
        return str(int(value))
    return str(value).strip()


def serialize_product(product: Product) -> dict[str, Any]:
    return {
        "id": product.id,
        "store_id": product.store_id,
        "barcode": product.barcode,
        "name": product.name,
        "price": float(product.price),
        "currency": product.currency,
        "description": product.description,
    }


def _get_store(db: Session, store_id: int) -> Store:
    store = db.get(Store, store_id)
    if store is None:
        raise NotFound("Store not found")
    return store


def _commit(db: Session, conflict_message: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(conflict_message) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Catalog write failed")
        raise InternalError("Database error") from exc


def _validated_fields(
    *,
    barcode: Any,
    name: Any,
    price: Any,
    currency: Any,
    description: Any,
    default_currency: str,
) -> dict[str, Any]:
    clean_barcode = _clean_text(barcode)
    clean_name = _clean_text(name)
    if not clean_barcode:
        raise ValidationError("barcode is required")
    if not clean_name:
        raise ValidationError("name is required")
    if price is None or (isinstance(price, str) and not price.strip()):
        raise ValidationError("price is required")
    parsed_price = parse_price(price)
    if parsed_price is None:
        raise ValidationError("price must be a non-negative number")

    clean_currency = normalize_currency(_clean_text(currency) or None) or default_currency
    clean_description = _clean_text(description) or None
    return {
        "barcode": clean_barcode,
        "name": clean_name,
        "price": parsed_price,
        "currency": clean_currency,
        "description": clean_description,
    }


def list_products(db: Session, store_id: int, search: Optional[str] = None) -> list[Product]:
    query = db.query(Product).filter(Product.store_id == store_id)
    term = (search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(func.lower(Product.name).like(pattern), Product.barcode.like(pattern)))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(db: Session, store_id: int, product_id: int) -> Product:
    product = (
        db.query(Product)
        .filter(Product.id == product_id, Product.store_id == store_id)
        .first()
    )
    if product is None:
        raise NotFound("Product not found")
    return product


def upsert_product(
    db: Session,
    store_id: int,
    *,
    barcode: Any,
    name: Any,
    price: Any,
    currency: Any = None,
    description: Any = None,
) -> tuple[Product, bool]:
    """Insert or replace the product keyed by (store, barcode). Returns (product, created)."""
    store = _get_store(db, store_id)
    fields = _validated_fields(
        barcode=barcode,
        name=name,
        price=price,
        currency=currency,
        description=description,
        default_currency=store.default_currency or DEFAULT_CURRENCY,
    )

    product = (
        db.query(Product)
        .filter(Product.store_id == store_id, Product.barcode == fields["barcode"])
        .first()
    )
    created = product is None
    if created:
        product = Product(store_id=store_id, **fields)
        db.add(product)
    else:
        for key, value in fields.items():
            setattr(product, key, value)

    _commit(db, "Product barcode already exists")
    db.refresh(product)
    logger.info(
        "Product %s store_id=%s product_id=%s barcode=%s",
        "created" if created else "replaced",
        store_id,
        product.id,
        product.barcode,
    )
    return product, created


def update_product(
    db: Session,
    store_id: int,
    product_id: int,
    *,
    barcode: Any,
    name: Any,
    price: Any,
    currency: Any = None,
    description: Any = None,
) -> Product:
    product = get_product(db, store_id, product_id)
    store = _get_store(db, store_id)
    fields = _validated_fields(
        barcode=barcode,
        name=name,
        price=price,
        currency=currency,
        description=description,
        default_currency=store.default_currency or DEFAULT_CURRENCY,
    )

    clash = (
        db.query(Product.id)
        .filter(
            Product.store_id == store_id,
            Product.barcode == fields["barcode"],
            Product.id != product.id,
        )
        .first()
    )
    if clash is not None:
        raise ConflictError("Another product already uses this barcode")

    for key, value in fields.items():
        setattr(product, key, value)
    _commit(db, "Another product already uses this barcode")
    db.refresh(product)
    return product


def delete_product(db: Session, store_id: int, product_id: int) -> None:
    product = get_product(db, store_id, product_id)
    db.query(ScanLog).filter(ScanLog.product_id == product.id).delete(synchronize_session=False)
    db.delete(product)
    _commit(db, "Product could not be deleted")
    logger.info("Product deleted store_id=%s product_id=%s", store_id, product_id)


def delete_all_products(db: Session, store_id: int) -> int:
    product_ids = select(Product.id).where(Product.store_id == store_id)
    db.query(ScanLog).filter(ScanLog.product_id.in_(product_ids)).delete(
        synchronize_session=False
    )
    deleted = db.query(Product).filter(Product.store_id == store_id).delete(synchronize_session=False)
    _commit(db, "Products could not be deleted")
    logger.info("All products deleted store_id=%s count=%s", store_id, deleted)
    return int(deleted or 0)


def _normalize_header(value: str) -> str:
    return " ".join((value or "").strip().lower().split())


def guess_column_mapping(headers: Sequence[str]) -> ColumnMapping:
    by_normalized = {_normalize_header(header): header for header in headers if header}
    resolved: dict[str, Optional[str]] = {}
    for field, aliases in COLUMN_ALIASES.items():
        resolved[field] = next((by_normalized[alias] for alias in aliases if alias in by_normalized), None)

    missing = [field for field in ("barcode", "name", "price") if not resolved[field]]
    if missing:
        raise ValidationError(f"Could not detect columns: {', '.join(missing)}")
    return ColumnMapping(**resolved)


def map_row(row: Mapping[str, Any], mapping: ColumnMapping) -> Optional[dict[str, Any]]:
    """Project a spreadsheet row onto product fields; None when the row must be skipped."""
    barcode = _clean_text(row.get(mapping.barcode))
    name = _clean_text(row.get(mapping.name))
    price = parse_price(row.get(mapping.price))
    if not barcode or not name or price is None:
        return None

    currency = _clean_text(row.get(mapping.currency)).upper() if mapping.currency else ""
    description = _clean_text(row.get(mapping.description)) if mapping.description else ""
    return {
        "barcode": barcode,
        "name": name,
        "price": price,
        "currency": currency if CURRENCY_PATTERN.match(currency) else None,
        "description": description or None,
    }


def read_csv_rows(content: bytes) -> tuple[list[str], list[dict[str, Any]]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("latin-1")
    if not text.strip():
        raise ValidationError("The uploaded file is empty")

    sample = text[:4096]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=CSV_DELIMITERS)
    except csv.Error:
        dialect = csv.excel

    reader = csv.DictReader(io.StringIO(text), dialect=dialect)
    headers = [header for header in (reader.fieldnames or []) if header]
    if not headers:
        raise ValidationError("The uploaded file has no header row")
    rows = [row for row in reader if any(_clean_text(value) for value in row.values() if not isinstance(value, list))]
    return headers, rows


def bulk_import(
    db: Session,
    store_id: int,
    rows: Iterable[Mapping[str, Any]],
    mapping: ColumnMapping,
) -> ImportResult:
    """Upsert every usable row in one transaction.

    Rows without barcode or name, or with an unparseable price, are skipped.
    A barcode repeated inside the batch resolves to its last row.
    """
    rows = list(rows)
    if len(rows) > IMPORT_MAX_ROWS:
        raise ValidationError(f"Import is limited to {IMPORT_MAX_ROWS} rows")

    store = _get_store(db, store_id)
    default_currency = store.default_currency or DEFAULT_CURRENCY
    existing = {
        product.barcode: product
        for product in db.query(Product).filter(Product.store_id == store_id).all()
    }

    accepted = 0
    for row in rows:
        fields = map_row(row, mapping)
        if fields is None:
            continue
        fields["currency"] = fields["currency"] or default_currency
        product = existing.get(fields["barcode"])
        if product is None:
            product = Product(store_id=store_id, **fields)
            db.add(product)
            existing[product.barcode] = product
        else:
            for key, value in fields.items():
                setattr(product, key, value)
        accepted += 1

    _commit(db, "Import conflicts with existing products")
    logger.info("Catalog import store_id=%s accepted=%s total=%s", store_id, accepted, len(rows))
    return ImportResult(accepted=accepted, total=len(rows))
