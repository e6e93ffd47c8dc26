import os
from dotenv import load_dotenv

# Load .env from the project root
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./lookprice.db")
ENV = os.getenv("ENVIRONMENT", os.getenv("ENV", "dev"))
ENV_NORMALIZED = ENV.strip().lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_STAGE = ENV_NORMALIZED in {"stage", "staging"}
IS_PROD = ENV_NORMALIZED in {"prod", "production"}

DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))
DB_ECHO = os.getenv("DB_ECHO", "").strip().lower() in {"1", "true", "yes", "on"}

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and (IS_DEV or IS_TEST):
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

# Auth (JWT)
DEV_JWT_SECRET_KEY = "lookprice-dev-secret-key"
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "").strip() or DEV_JWT_SECRET_KEY
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "1440"))

# Tenant defaults
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "TRY").strip().upper() or "TRY"
DEFAULT_PRIMARY_COLOR = os.getenv("DEFAULT_PRIMARY_COLOR", "#4f46e5").strip() or "#4f46e5"

# Catalog import
IMPORT_MAX_BYTES = int(os.getenv("IMPORT_MAX_BYTES", str(5 * 1024 * 1024)))
IMPORT_MAX_ROWS = int(os.getenv("IMPORT_MAX_ROWS", "20000"))

# Superadmin seed
SUPERADMIN_EMAIL = os.getenv("SUPERADMIN_EMAIL", "admin@lookprice.com").strip().lower()
SUPERADMIN_PASSWORD = os.getenv("SUPERADMIN_PASSWORD", "").strip()
RESET_SUPERADMIN_PASSWORD = os.getenv("RESET_SUPERADMIN_PASSWORD", "").strip().lower() in {
    "1",
    "true",
    "yes",
    "on",
}
DEV_BOOTSTRAP_ALLOW = os.getenv("DEV_BOOTSTRAP_ALLOW", "").strip().lower() in {
    "1",
    "true",
    "yes",
    "on",
}
