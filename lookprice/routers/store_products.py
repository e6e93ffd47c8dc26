from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from lookprice.core.database import get_db
from lookprice.deps import StoreScope, require_store_access
from lookprice.services.authorization_service import CATALOG_PURGE, CATALOG_READ, CATALOG_WRITE, STORE_READ
from lookprice.services.catalog import (
    delete_all_products,
    delete_product,
    get_product,
    list_products,
    serialize_product,
    update_product,
    upsert_product,
)
from lookprice.services.stores import get_store, serialize_store

router = APIRouter(prefix="/api/store", tags=["store-products"])


class ProductPayload(BaseModel):
    # Only read by the tenant resolver; declared for the OpenAPI schema.
    store_id: Optional[int] = None
    barcode: Optional[Union[str, int]] = None
    name: Optional[str] = None
    price: Optional[Union[float, str]] = None
    currency: Optional[str] = None
    description: Optional[str] = None


@router.get("/info")
def store_info(
    scope: StoreScope = Depends(require_store_access(STORE_READ)),
    db: Session = Depends(get_db),
):
    return serialize_store(get_store(db, scope.store_id))


@router.get("/products")
def list_store_products(
    q: Optional[str] = None,
    scope: StoreScope = Depends(require_store_access(CATALOG_READ)),
    db: Session = Depends(get_db),
):
    return [serialize_product(product) for product in list_products(db, scope.store_id, q)]


@router.get("/products/{product_id}")
def read_product(
    product_id: int,
    scope: StoreScope = Depends(require_store_access(CATALOG_READ)),
    db: Session = Depends(get_db),
):
    return serialize_product(get_product(db, scope.store_id, product_id))


@router.post("/products", status_code=status.HTTP_201_CREATED)
def create_or_replace_product(
    payload: ProductPayload,
    response: Response,
    scope: StoreScope = Depends(require_store_access(CATALOG_WRITE)),
    db: Session = Depends(get_db),
):
    product, created = upsert_product(
        db,
        scope.store_id,
        barcode=payload.barcode,
        name=payload.name,
        price=payload.price,
        currency=payload.currency,
        description=payload.description,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return {**serialize_product(product), "created": created}


@router.put("/products/{product_id}")
def update_product_route(
    product_id: int,
    payload: ProductPayload,
    scope: StoreScope = Depends(require_store_access(CATALOG_WRITE)),
    db: Session = Depends(get_db),
):
    product = update_product(
        db,
        scope.store_id,
        product_id,
        barcode=payload.barcode,
        name=payload.name,
        price=payload.price,
        currency=payload.currency,
        description=payload.description,
    )
    return serialize_product(product)


@router.delete("/products/{product_id}")
def delete_product_route(
    product_id: int,
    scope: StoreScope = Depends(require_store_access(CATALOG_WRITE)),
    db: Session = Depends(get_db),
):
    delete_product(db, scope.store_id, product_id)
    return {"success": True}


@router.delete("/products")
def delete_all_products_route(
    scope: StoreScope = Depends(require_store_access(CATALOG_PURGE)),
    db: Session = Depends(get_db),
):
    deleted = delete_all_products(db, scope.store_id)
    return {"success": True, "deleted": deleted}
