import os

# Must run before lookprice.core.config is imported anywhere.
os.environ["ENVIRONMENT"] = "test"
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from lookprice.core.database import Base, get_db  # noqa: E402
from lookprice.core.metrics import request_metrics  # noqa: E402
import lookprice.models  # noqa: E402,F401
from lookprice.models.user import (  # noqa: E402
    ROLE_EDITOR,
    ROLE_STOREADMIN,
    ROLE_SUPERADMIN,
    ROLE_VIEWER,
)
from tests.fixtures_data import seed_store, seed_user  # noqa: E402


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session, monkeypatch):
    from lookprice import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)
    main.app.dependency_overrides[get_db] = lambda: db_session
    request_metrics.reset()

    with TestClient(main.app) as test_client:
        yield test_client

    main.app.dependency_overrides.clear()


@pytest.fixture
def tenants(db_session):
    """Two stores with a full team on the first one, plus the superadmin."""
    acme = seed_store(db_session, name="Acme Market", slug="acme")
    globex = seed_store(db_session, name="Globex Shop", slug="globex")

    return SimpleNamespace(
        acme=acme,
        globex=globex,
        superadmin=seed_user(db_session, email="admin@lookprice.com", role=ROLE_SUPERADMIN),
        owner=seed_user(db_session, email="owner@acme.com", role=ROLE_STOREADMIN, store_id=acme.id),
        editor=seed_user(db_session, email="editor@acme.com", role=ROLE_EDITOR, store_id=acme.id),
        viewer=seed_user(db_session, email="viewer@acme.com", role=ROLE_VIEWER, store_id=acme.id),
        globex_owner=seed_user(
            db_session, email="owner@globex.com", role=ROLE_STOREADMIN, store_id=globex.id
        ),
    )
