"""Application configuration with security-first defaults.

Environment variables override all defaults.
CRITICAL: SECRET_KEY must be set in .env - will fail fast if missing in production.
"""

import os
import warnings
from decimal import Decimal
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./pharmacare.db")

    # JWT Security - CRITICAL
    SECRET_KEY: str = os.getenv("SECRET_KEY", None)
    if not SECRET_KEY:
        # Generate with: python -c "import secrets; print(secrets.token_urlsafe(32))"
        if os.getenv("ENVIRONMENT", "development") == "production":
            raise ValueError(
                "SECRET_KEY must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        warnings.warn(
            "SECRET_KEY not set in environment. Using development default. "
            "Set SECRET_KEY in .env to a strong random value before production.",
            RuntimeWarning,
        )
        SECRET_KEY = "development-only-weak-default-change-in-production"

    ALGORITHM: str = "HS256"
    # Pharmacy counters run long sessions; one shift (8h) per token
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))
    AUTH_COOKIE_NAME: str = "pharmacare_token"

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000"
        ).split(",")
        if origin.strip()
    ]

    # Cookies
    SECURE_COOKIES: bool = os.getenv("ENVIRONMENT", "development") == "production"
    SAME_SITE_COOKIE: str = "strict"

    # Trusted Host header values
    ALLOWED_HOSTS: List[str] = [
        host.strip()
        for host in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
        if host.strip()
    ]

    # Remote drug advisory (Groq). Absent key = local screening rules only.
    GROQ_API_KEY: str = os.getenv("GROQ_API_KEY", "")
    ADVISORY_MODEL: str = os.getenv("ADVISORY_MODEL", "llama-3.3-70b-versatile")
    ADVISORY_TIMEOUT_SECONDS: float = float(os.getenv("ADVISORY_TIMEOUT_SECONDS", "5"))
    ADVISORY_MAX_WARNINGS: int = 5

    # Point of sale
    DEFAULT_VAT_PERCENTAGE: Decimal = Decimal(os.getenv("DEFAULT_VAT_PERCENTAGE", "15"))
    QUOTATION_VALID_DAYS: int = int(os.getenv("QUOTATION_VALID_DAYS", "7"))
    EXPIRY_ALERT_DAYS: int = int(os.getenv("EXPIRY_ALERT_DAYS", "30"))

    # Bootstrap administrator (created on first start when no users exist)
    BOOTSTRAP_ADMIN_EMAIL: str = os.getenv("BOOTSTRAP_ADMIN_EMAIL", "admin@pharmacare.co.zw")

    # Password Policy
    MIN_PASSWORD_LENGTH: int = 12
    REQUIRE_SPECIAL_CHARS: bool = True
    REQUIRE_NUMBERS: bool = True

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
