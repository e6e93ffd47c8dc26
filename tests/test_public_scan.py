from datetime import date, timedelta
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from lookprice.models.scan_log import ScanLog
from lookprice.services.scan_ledger import record_scan
from tests.fixtures_data import ACME_PRODUCT, auth_headers, seed_product, seed_store


def _acme_scans(db_session, store_id):
    return db_session.query(ScanLog).filter(ScanLog.store_id == store_id).count()


def test_scan_returns_product_and_branding_and_logs_the_scan(client, tenants, db_session):
    client.post("/api/store/products", json=ACME_PRODUCT, headers=auth_headers(tenants.owner))
    before = _acme_scans(db_session, tenants.acme.id)

    response = client.get("/api/public/scan/acme/1234567890128")

    assert response.status_code == 200
    body = response.json()
    assert body["barcode"] == "1234567890128"
    assert body["price"] == 19.9
    assert body["currency"] == "TRY"
    assert body["store"]["slug"] == "acme"
    assert body["store"]["primary_color"] == "#4f46e5"
    assert _acme_scans(db_session, tenants.acme.id) == before + 1

    analytics = client.get("/api/store/analytics", headers=auth_headers(tenants.viewer))
    assert analytics.json()["totalScans"] >= 1


def test_unknown_product_returns_branding_with_error(client, tenants):
    response = client.get("/api/public/scan/acme/0000000000000")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "Product not found"
    assert body["store"]["name"] == "Acme Market"


def test_unknown_store_is_not_found(client, tenants):
    scan_response = client.get("/api/public/scan/nowhere/1")
    store_response = client.get("/api/public/store/nowhere")

    assert scan_response.status_code == 404
    assert scan_response.json() == {"error": "Store not found"}
    assert store_response.status_code == 404


def test_public_store_returns_branding(client, tenants):
    response = client.get("/api/public/store/acme")

    assert response.status_code == 200
    assert response.json() == {
        "name": "Acme Market",
        "slug": "acme",
        "logo_url": None,
        "primary_color": "#4f46e5",
        "background_image_url": None,
        "default_currency": "TRY",
    }


def test_expired_store_is_forbidden_but_branded(client, db_session):
    expired = seed_store(
        db_session, name="Old Shop", slug="old-shop", subscription_end=date.today() - timedelta(days=1)
    )
    seed_product(db_session, expired.id, barcode="1", name="Dusty")

    response = client.get("/api/public/scan/old-shop/1")

    assert response.status_code == 403
    assert response.json()["store"]["slug"] == "old-shop"
    assert _acme_scans(db_session, expired.id) == 0


def test_scan_log_failure_does_not_fail_lookup(client, tenants, db_session):
    seed_product(db_session, tenants.acme.id, barcode="B1", name="Bread")

    with patch.object(db_session, "commit", side_effect=OperationalError("INSERT", {}, Exception("locked"))):
        response = client.get("/api/public/scan/acme/B1")

    assert response.status_code == 200
    assert response.json()["name"] == "Bread"


def test_record_scan_reports_failure(db_session, tenants):
    product = seed_product(db_session, tenants.acme.id, barcode="B2", name="Butter")

    with patch.object(db_session, "commit", side_effect=OperationalError("INSERT", {}, Exception("locked"))):
        assert record_scan(db_session, tenants.acme.id, product.id) is False

    assert record_scan(db_session, tenants.acme.id, product.id) is True
