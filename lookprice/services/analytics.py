from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from lookprice.models.lead import Lead
from lookprice.models.product import Product
from lookprice.models.scan_log import ScanLog
from lookprice.models.store import Store
from lookprice.models.user import User

DAILY_WINDOW_DAYS = 7
TOP_PRODUCTS_LIMIT = 5
RECENT_SCANS_LIMIT = 10


def _day_key(value: Any) -> str:
    # SQLite returns "YYYY-MM-DD" strings, PostgreSQL returns date objects.
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)[:10]


def daily_scan_series(db: Session, store_id: int, today: Optional[date] = None) -> list[dict[str, Any]]:
    """Scan counts per day for the trailing window, oldest first, zero-filled."""
    today = today or datetime.utcnow().date()
    first_day = today - timedelta(days=DAILY_WINDOW_DAYS - 1)
    window_start = datetime.combine(first_day, time.min)
    window_end = datetime.combine(today + timedelta(days=1), time.min)

    day = func.date(ScanLog.created_at)
    rows = (
        db.query(day, func.count(ScanLog.id))
        .filter(
            ScanLog.store_id == store_id,
            ScanLog.created_at >= window_start,
            ScanLog.created_at < window_end,
        )
        .group_by(day)
        .all()
    )
    counts = {_day_key(bucket): int(count) for bucket, count in rows}

    series = []
    for offset in range(DAILY_WINDOW_DAYS):
        key = (first_day + timedelta(days=offset)).strftime("%Y-%m-%d")
        series.append({"date": key, "count": counts.get(key, 0)})
    return series


def top_products(db: Session, store_id: int, limit: int = TOP_PRODUCTS_LIMIT) -> list[dict[str, Any]]:
    scan_count = func.count(ScanLog.id).label("scan_count")
    rows = (
        db.query(Product.id, Product.name, Product.barcode, scan_count)
        .join(ScanLog, ScanLog.product_id == Product.id)
        .filter(Product.store_id == store_id)
        .group_by(Product.id, Product.name, Product.barcode)
        .order_by(scan_count.desc(), Product.id.asc())
        .limit(limit)
        .all()
    )
    return [
        {"id": product_id, "name": name, "barcode": barcode, "count": int(count)}
        for product_id, name, barcode, count in rows
    ]


def recent_scans(db: Session, store_id: int, limit: int = RECENT_SCANS_LIMIT) -> list[dict[str, Any]]:
    rows = (
        db.query(ScanLog, Product)
        .join(Product, ScanLog.product_id == Product.id)
        .filter(ScanLog.store_id == store_id)
        .order_by(ScanLog.created_at.desc(), ScanLog.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": scan.id,
            "productId": product.id,
            "name": product.name,
            "barcode": product.barcode,
            "price": float(product.price),
            "currency": product.currency,
            "createdAt": scan.created_at.isoformat() if scan.created_at else None,
        }
        for scan, product in rows
    ]


def store_analytics(db: Session, store_id: int, today: Optional[date] = None) -> dict[str, Any]:
    total = db.query(func.count(ScanLog.id)).filter(ScanLog.store_id == store_id).scalar() or 0
    return {
        "totalScans": int(total),
        "dailyScans": daily_scan_series(db, store_id, today),
        "topProducts": top_products(db, store_id),
        "recentScans": recent_scans(db, store_id),
    }


def system_stats(db: Session, today: Optional[date] = None) -> dict[str, Any]:
    today = today or datetime.utcnow().date()
    day_start = datetime.combine(today, time.min)

    def _count(query) -> int:
        return int(query.scalar() or 0)

    return {
        "totalStores": _count(db.query(func.count(Store.id))),
        "activeStores": _count(
            db.query(func.count(Store.id)).filter(
                or_(Store.subscription_end.is_(None), Store.subscription_end >= today)
            )
        ),
        "expiredStores": _count(db.query(func.count(Store.id)).filter(Store.subscription_end < today)),
        "totalProducts": _count(db.query(func.count(Product.id))),
        "totalUsers": _count(db.query(func.count(User.id))),
        "totalScans": _count(db.query(func.count(ScanLog.id))),
        "scansToday": _count(db.query(func.count(ScanLog.id)).filter(ScanLog.created_at >= day_start)),
        "newLeads": _count(db.query(func.count(Lead.id)).filter(Lead.status == "new")),
    }
