from decimal import Decimal

import pytest

from lookprice.core.errors import ValidationError
from lookprice.models.product import Product
from lookprice.models.scan_log import ScanLog
from lookprice.services.catalog import parse_price, upsert_product
from tests.fixtures_data import auth_headers, seed_product


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("19.90", Decimal("19.90")),
        ("19,90", Decimal("19.90")),
        (" 7 ", Decimal("7.00")),
        ("1.234,56", Decimal("1234.56")),
        ("1,234.56", Decimal("1234.56")),
        (12, Decimal("12.00")),
        (0, Decimal("0.00")),
    ],
)
def test_parse_price_accepts_common_formats(raw, expected):
    assert parse_price(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "abc", "-1", float("nan"), float("inf"), True])
def test_parse_price_rejects_unusable_values(raw):
    assert parse_price(raw) is None


def test_upsert_twice_keeps_one_row_with_latest_fields(db_session, tenants):
    first, created = upsert_product(
        db_session, tenants.acme.id, barcode="555", name="Old Name", price="5.00"
    )
    second, created_again = upsert_product(
        db_session, tenants.acme.id, barcode="555", name="New Name", price="6,50", currency="usd"
    )

    rows = db_session.query(Product).filter(Product.store_id == tenants.acme.id).all()
    assert created is True
    assert created_again is False
    assert first.id == second.id
    assert len(rows) == 1
    assert rows[0].name == "New Name"
    assert rows[0].price == Decimal("6.50")
    assert rows[0].currency == "USD"


def test_upsert_uses_store_default_currency(db_session, tenants):
    product, _ = upsert_product(db_session, tenants.acme.id, barcode="1", name="Tea", price=3)

    assert product.currency == "TRY"


@pytest.mark.parametrize(
    "fields,message",
    [
        ({"barcode": "", "name": "Tea", "price": 1}, "barcode is required"),
        ({"barcode": "1", "name": " ", "price": 1}, "name is required"),
        ({"barcode": "1", "name": "Tea", "price": None}, "price is required"),
        ({"barcode": "1", "name": "Tea", "price": "-3"}, "price must be a non-negative number"),
    ],
)
def test_upsert_rejects_missing_or_invalid_fields(db_session, tenants, fields, message):
    with pytest.raises(ValidationError) as exc:
        upsert_product(db_session, tenants.acme.id, **fields)

    assert exc.value.message == message


def test_same_barcode_may_exist_in_two_stores(db_session, tenants):
    upsert_product(db_session, tenants.acme.id, barcode="777", name="A", price=1)
    upsert_product(db_session, tenants.globex.id, barcode="777", name="B", price=2)

    assert db_session.query(Product).filter(Product.barcode == "777").count() == 2


def test_product_crud_over_http(client, tenants):
    headers = auth_headers(tenants.editor)

    created = client.post(
        "/api/store/products",
        json={"barcode": "8690000000001", "name": "Olive Oil", "price": "129,90", "description": "1L"},
        headers=headers,
    )
    assert created.status_code == 201
    product_id = created.json()["id"]
    assert created.json()["price"] == 129.9
    assert created.json()["created"] is True

    updated = client.put(
        f"/api/store/products/{product_id}",
        json={"barcode": "8690000000001", "name": "Olive Oil Extra", "price": 139.5},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Olive Oil Extra"

    fetched = client.get(f"/api/store/products/{product_id}", headers=headers)
    assert fetched.json()["price"] == 139.5

    searched = client.get("/api/store/products?q=olive", headers=headers)
    assert [item["id"] for item in searched.json()] == [product_id]

    deleted = client.delete(f"/api/store/products/{product_id}", headers=headers)
    assert deleted.json() == {"success": True}
    assert client.get(f"/api/store/products/{product_id}", headers=headers).status_code == 404


def test_missing_price_is_a_validation_error(client, tenants):
    response = client.post(
        "/api/store/products",
        json={"barcode": "1", "name": "Tea"},
        headers=auth_headers(tenants.owner),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "price is required"}


def test_update_to_existing_barcode_is_a_conflict(client, tenants, db_session):
    seed_product(db_session, tenants.acme.id, barcode="A1", name="First")
    second = seed_product(db_session, tenants.acme.id, barcode="B2", name="Second")

    response = client.put(
        f"/api/store/products/{second.id}",
        json={"barcode": "A1", "name": "Second", "price": 1},
        headers=auth_headers(tenants.owner),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Another product already uses this barcode"}


def test_product_of_another_store_is_not_found(client, tenants, db_session):
    foreign = seed_product(db_session, tenants.globex.id, barcode="G1", name="Foreign")

    response = client.delete(f"/api/store/products/{foreign.id}", headers=auth_headers(tenants.owner))

    assert response.status_code == 404
    assert db_session.get(Product, foreign.id) is not None


def test_viewer_cannot_create_products(client, tenants):
    response = client.post(
        "/api/store/products",
        json={"barcode": "1", "name": "Tea", "price": 1},
        headers=auth_headers(tenants.viewer),
    )

    assert response.status_code == 403
    assert response.json() == {"error": "Insufficient permissions"}


def test_deleting_product_removes_its_scans(client, tenants, db_session):
    product = seed_product(db_session, tenants.acme.id, barcode="S1", name="Scanned")
    db_session.add_all([ScanLog(store_id=tenants.acme.id, product_id=product.id) for _ in range(3)])
    db_session.commit()

    response = client.delete(f"/api/store/products/{product.id}", headers=auth_headers(tenants.editor))

    assert response.status_code == 200
    assert db_session.query(ScanLog).filter(ScanLog.product_id == product.id).count() == 0


def test_delete_all_is_owner_only_and_scoped_to_store(client, tenants, db_session):
    seed_product(db_session, tenants.acme.id, barcode="1", name="One")
    seed_product(db_session, tenants.acme.id, barcode="2", name="Two")
    seed_product(db_session, tenants.globex.id, barcode="3", name="Three")

    denied = client.delete("/api/store/products", headers=auth_headers(tenants.editor))
    allowed = client.delete("/api/store/products", headers=auth_headers(tenants.owner))

    assert denied.status_code == 403
    assert allowed.json() == {"success": True, "deleted": 2}
    assert db_session.query(Product).filter(Product.store_id == tenants.acme.id).count() == 0
    assert db_session.query(Product).filter(Product.store_id == tenants.globex.id).count() == 1


def test_reposting_same_barcode_replaces_with_200(client, tenants, db_session):
    headers = auth_headers(tenants.editor)
    payload = {"barcode": "8690000000002", "name": "Green Tea", "price": "12,50"}

    first = client.post("/api/store/products", json=payload, headers=headers)
    second = client.post("/api/store/products", json={**payload, "price": 14}, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["created"] is False
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["price"] == 14.0
    assert db_session.query(Product).filter(Product.barcode == "8690000000002").count() == 1
