"""Reusable data and seed helpers for backend test scenarios."""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from lookprice.models.product import Product
from lookprice.models.store import Store
from lookprice.models.user import User
from lookprice.services.auth import create_access_token
from lookprice.services.passwords import hash_password

DEFAULT_PASSWORD = "secret123"

ACME_PRODUCT = {
    "barcode": "1234567890128",
    "name": "Espresso Beans 1kg",
    "price": 19.90,
    "currency": "TRY",
}

IMPORT_CSV_WITH_BAD_ROW = (
    "barcode,name,price\n"
    "1111111111111,Green Tea,12.50\n"
    "2222222222222,Black Tea,not-a-price\n"
    "3333333333333,Herbal Tea,\"9,75\"\n"
)

TENANT_ACCESS_DENIED = {
    "expected_status_code": 403,
    "expected_error": "Store not authorized",
}


def seed_store(
    db: Session,
    *,
    name: str,
    slug: str,
    subscription_end: Optional[date] = None,
    default_currency: str = "TRY",
) -> Store:
    store = Store(
        name=name,
        slug=slug,
        subscription_end=subscription_end,
        default_currency=default_currency,
    )
    db.add(store)
    db.commit()
    db.refresh(store)
    return store


def seed_user(
    db: Session,
    *,
    email: str,
    role: str,
    store_id: Optional[int] = None,
    password: str = DEFAULT_PASSWORD,
) -> User:
    user = User(email=email, role=role, store_id=store_id, password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def seed_product(
    db: Session,
    store_id: int,
    *,
    barcode: str,
    name: str,
    price: str = "10.00",
    currency: str = "TRY",
) -> Product:
    product = Product(
        store_id=store_id,
        barcode=barcode,
        name=name,
        price=Decimal(price),
        currency=currency,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.role, user.store_id)
    return {"Authorization": f"Bearer {token}"}
