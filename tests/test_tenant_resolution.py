import asyncio
import json

import pytest
from starlette.requests import Request

from lookprice.core.errors import Forbidden, ValidationError
from lookprice.services.auth import Principal
from lookprice.services.tenant_resolver import TenantResolver
from tests.fixtures_data import TENANT_ACCESS_DENIED, auth_headers, seed_product


def _build_request(method: str, query: bytes = b"", body: bytes = b"", content_type: str = "") -> Request:
    headers = [(b"content-type", content_type.encode())] if content_type else []
    scope = {
        "type": "http",
        "method": method,
        "path": "/api/store/products",
        "query_string": query,
        "headers": headers,
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
        "scheme": "http",
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def test_superadmin_reads_use_query_store_id():
    request = _build_request("GET", query=b"store_id=7")

    explicit = asyncio.run(TenantResolver.explicit_store_id(request))

    assert explicit == 7
    assert TenantResolver.resolve(Principal(1, "superadmin", None), explicit) == 7


def test_superadmin_writes_use_body_store_id_before_query():
    body = json.dumps({"store_id": 5, "barcode": "1"}).encode()
    request = _build_request("POST", query=b"store_id=9", body=body, content_type="application/json")

    assert asyncio.run(TenantResolver.explicit_store_id(request)) == 5


def test_superadmin_without_store_id_is_a_bad_request():
    with pytest.raises(ValidationError) as exc:
        TenantResolver.resolve(Principal(1, "superadmin", None), None)

    assert exc.value.status_code == 400
    assert exc.value.message == "store_id is required"


def test_non_superadmin_is_bound_to_token_store():
    editor = Principal(2, "editor", 3)

    assert TenantResolver.resolve(editor, None) == 3
    assert TenantResolver.resolve(editor, 3) == 3
    with pytest.raises(Forbidden):
        TenantResolver.resolve(editor, 4)


@pytest.mark.parametrize("raw", ["abc", "-1", "0", "1.5"])
def test_malformed_store_id_is_rejected(raw):
    with pytest.raises(ValidationError):
        TenantResolver.parse_store_id(raw)


def test_cross_tenant_write_with_body_store_id_is_forbidden(client, tenants, db_session):
    response = client.post(
        "/api/store/products",
        json={"store_id": tenants.globex.id, "barcode": "999", "name": "Intruder", "price": 1},
        headers=auth_headers(tenants.owner),
    )

    assert response.status_code == TENANT_ACCESS_DENIED["expected_status_code"]
    assert response.json() == {"error": TENANT_ACCESS_DENIED["expected_error"]}
    assert client.get(
        "/api/store/products", headers=auth_headers(tenants.globex_owner)
    ).json() == []


def test_cross_tenant_read_with_query_store_id_is_forbidden(client, tenants, db_session):
    seed_product(db_session, tenants.globex.id, barcode="42", name="Secret")

    response = client.get(
        f"/api/store/products?store_id={tenants.globex.id}",
        headers=auth_headers(tenants.viewer),
    )

    assert response.status_code == 403


def test_superadmin_targets_store_explicitly(client, tenants, db_session):
    seed_product(db_session, tenants.globex.id, barcode="42", name="Globex Item")
    headers = auth_headers(tenants.superadmin)

    missing = client.get("/api/store/products", headers=headers)
    scoped = client.get(f"/api/store/products?store_id={tenants.globex.id}", headers=headers)
    unknown = client.get("/api/store/products?store_id=999", headers=headers)

    assert missing.status_code == 400
    assert missing.json() == {"error": "store_id is required"}
    assert scoped.status_code == 200
    assert [item["barcode"] for item in scoped.json()] == ["42"]
    assert unknown.status_code == 404
    assert unknown.json() == {"error": "Store not found"}
