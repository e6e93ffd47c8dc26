import pytest
from sqlalchemy.orm import sessionmaker

from lookprice.core import config
from lookprice.models.user import User
from lookprice.services.passwords import hash_password, verify_password
from lookprice.services.superadmin_bootstrap import bootstrap_superadmin, upsert_user


@pytest.fixture
def session_factory(db_session):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_session.get_bind())


def _configure(monkeypatch, password, reset=False):
    monkeypatch.setattr(config, "SUPERADMIN_EMAIL", "root@lookprice.com")
    monkeypatch.setattr(config, "SUPERADMIN_PASSWORD", password)
    monkeypatch.setattr(config, "RESET_SUPERADMIN_PASSWORD", reset)


def test_bootstrap_is_skipped_without_password(monkeypatch, session_factory, db_session):
    _configure(monkeypatch, "")

    assert bootstrap_superadmin(session_factory) is None
    assert db_session.query(User).count() == 0


def test_bootstrap_creates_superadmin_once(monkeypatch, session_factory, db_session):
    _configure(monkeypatch, "first-pass")

    created_id = bootstrap_superadmin(session_factory)
    _configure(monkeypatch, "second-pass")
    again_id = bootstrap_superadmin(session_factory)

    user = db_session.get(User, created_id)
    assert again_id == created_id
    assert user.role == "superadmin"
    assert user.store_id is None
    assert verify_password("first-pass", user.password_hash)


def test_bootstrap_resets_password_when_requested(monkeypatch, session_factory, db_session):
    _configure(monkeypatch, "first-pass")
    user_id = bootstrap_superadmin(session_factory)

    _configure(monkeypatch, "rotated-pass", reset=True)
    bootstrap_superadmin(session_factory)

    db_session.expire_all()
    assert verify_password("rotated-pass", db_session.get(User, user_id).password_hash)


def test_upsert_user_keeps_prehashed_password(db_session, tenants):
    hashed = hash_password("already-hashed")

    user, created = upsert_user(
        db_session, email="Clerk@Acme.com", role="editor", store_id=tenants.acme.id, password=hashed
    )

    assert created is True
    assert user.email == "clerk@acme.com"
    assert user.password_hash == hashed


def test_upsert_user_requires_existing_store_for_store_roles(db_session):
    with pytest.raises(ValueError):
        upsert_user(db_session, email="x@acme.com", role="editor", store_id=None, password="secret123")
    with pytest.raises(ValueError):
        upsert_user(db_session, email="x@acme.com", role="editor", store_id=404, password="secret123")
