import os


def _normalize_database_url(url: str) -> str:
    # Render/Heroku sometimes provide postgres:// which SQLAlchemy expects as postgresql://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _split_csv(raw: str) -> list[str]:
    return [p.strip() for p in (raw or "").split(",") if p.strip()]


class Config:
    # Base directory of the backend (one level above this `govplane` package)
    BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    INSTANCE_DIR = os.path.join(BACKEND_DIR, 'instance')
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    _default_sqlite_path = os.path.join(INSTANCE_DIR, 'govplane.db').replace('\\', '/')
    _db_url = os.getenv("DATABASE_URL") or os.getenv("SQLALCHEMY_DATABASE_URI") or f"sqlite:///{_default_sqlite_path}"
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(_db_url)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CORS: comma-separated origins for the governor console builds
    ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Pages left reachable while the platform is locked down.
    GOVERNANCE_ALLOWED_PAGES = _split_csv(os.getenv("GOVERNANCE_ALLOWED_PAGES", "/governor"))

    # Compare-and-swap retries for concurrent writes to accounts / system controls.
    GOVERNANCE_CAS_RETRIES = int(os.getenv("GOVERNANCE_CAS_RETRIES", "3"))

    # Lifetime of operator bearer tokens.
    OPERATOR_TOKEN_TTL_SECONDS = int(os.getenv("OPERATOR_TOKEN_TTL_SECONDS", str(60 * 60 * 12)))

    # Days between an approved closure and the final payout.
    ACCOUNT_CLOSURE_COUNTDOWN_DAYS = int(os.getenv("ACCOUNT_CLOSURE_COUNTDOWN_DAYS", "90"))
