from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from lookprice.core import config
from lookprice.core.errors import InvalidToken
from lookprice.services.auth import create_access_token, verify_token
from tests.fixtures_data import DEFAULT_PASSWORD, auth_headers


def test_login_returns_token_and_profile(client, tenants):
    response = client.post(
        "/api/auth/login",
        json={"email": "Owner@Acme.com", "password": DEFAULT_PASSWORD},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["user"] == {"email": "owner@acme.com", "role": "storeadmin", "store_id": tenants.acme.id}

    principal = verify_token(body["token"])
    assert principal.user_id == tenants.owner.id
    assert principal.role == "storeadmin"
    assert principal.store_id == tenants.acme.id


@pytest.mark.parametrize(
    "email,password",
    [
        ("owner@acme.com", "wrong-password"),
        ("nobody@acme.com", DEFAULT_PASSWORD),
    ],
)
def test_login_failures_do_not_reveal_which_field_was_wrong(client, tenants, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_superadmin_token_carries_no_store(client, tenants):
    response = client.post(
        "/api/auth/login",
        json={"email": "admin@lookprice.com", "password": DEFAULT_PASSWORD},
    )

    assert response.status_code == 200
    assert response.json()["user"]["store_id"] is None
    assert verify_token(response.json()["token"]).is_superadmin


def test_missing_and_invalid_tokens_are_rejected(client, tenants):
    missing = client.get("/api/store/products")
    garbage = client.get("/api/store/products", headers={"Authorization": "Bearer not-a-jwt"})

    assert missing.status_code == 401
    assert missing.json() == {"error": "Unauthorized"}
    assert garbage.status_code == 401
    assert garbage.json() == {"error": "Invalid token"}


def test_expired_token_is_rejected():
    token = create_access_token(1, "storeadmin", 1, expires_minutes=-1)

    with pytest.raises(InvalidToken):
        verify_token(token)


def test_token_signed_with_another_secret_is_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "1", "user_id": 1, "role": "superadmin", "store_id": None, "exp": now + timedelta(hours=1)},
        "some-other-secret",
        algorithm=config.JWT_ALGORITHM,
    )

    with pytest.raises(InvalidToken):
        verify_token(token)


def test_store_role_token_without_store_is_rejected():
    token = create_access_token(5, "editor", None)

    with pytest.raises(InvalidToken):
        verify_token(token)


def test_me_returns_caller_profile(client, tenants):
    response = client.get("/api/auth/me", headers=auth_headers(tenants.editor))

    assert response.status_code == 200
    assert response.json() == {
        "id": tenants.editor.id,
        "email": "editor@acme.com",
        "role": "editor",
        "store_id": tenants.acme.id,
    }
