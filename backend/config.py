"""
Application settings.

Values are read once from the environment (and an optional .env file) when the
module is imported. Every other module imports its settings from here instead of
calling os.getenv directly.
"""

import os
from decimal import Decimal
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


# Database connection settings
# SQLite is the default embedded store, any SQLAlchemy URL works
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bizhub.db")

# Token settings
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-bizhub-development-key")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# Bookkeeping defaults, overridable per user through app_config
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "UTC")
DEFAULT_TAX_RATE = Decimal(os.getenv("DEFAULT_TAX_RATE", "0.10"))
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")

# Feature switches
ENABLE_DEBUG_ROUTES = _as_bool(os.getenv("ENABLE_DEBUG_ROUTES", "false"))
ENABLE_SCHEDULER = _as_bool(os.getenv("ENABLE_SCHEDULER", "true"))

CORS_ALLOWED_ORIGINS = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:8081,http://127.0.0.1:8081,http://localhost:19006"
)

# Logging
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
