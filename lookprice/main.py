import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lookprice.core.config import CORS_ORIGINS, DATABASE_URL
from lookprice.core.database import Base, SessionLocal, engine
from lookprice.core.errors import register_exception_handlers
from lookprice.core.logging_setup import configure_logging
from lookprice.core.startup_checks import (
    ensure_migrations_applied,
    validate_database_environment,
    validate_security_environment,
)
from lookprice.middleware.observability import ObservabilityMiddleware
import lookprice.models  # noqa: F401  registers every table on Base.metadata before create_all

from lookprice.routers.admin_leads import router as admin_leads_router
from lookprice.routers.admin_stores import router as admin_stores_router
from lookprice.routers.auth import router as auth_router
from lookprice.routers.public import router as public_router
from lookprice.routers.store_analytics import router as store_analytics_router
from lookprice.routers.store_branding import router as store_branding_router
from lookprice.routers.store_import import router as store_import_router
from lookprice.routers.store_products import router as store_products_router
from lookprice.routers.store_users import router as store_users_router
from lookprice.services.superadmin_bootstrap import bootstrap_superadmin, ensure_users_table

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="LookPrice API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)
register_exception_handlers(app)


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        validate_security_environment()
        if DATABASE_URL.startswith("sqlite"):
            # SQLite is dev/test only; other databases are managed by alembic.
            Base.metadata.create_all(bind=engine)
        else:
            ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
        ensure_users_table(engine)
        bootstrap_superadmin(SessionLocal)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise


# Routers
app.include_router(public_router)
app.include_router(auth_router)
app.include_router(admin_stores_router)
app.include_router(admin_leads_router)
app.include_router(store_products_router)
app.include_router(store_import_router)
app.include_router(store_users_router)
app.include_router(store_analytics_router)
app.include_router(store_branding_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
