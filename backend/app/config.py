"""
Parcel Server - Application Configuration
==========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; checked again in the app lifespan.

Database target:
    DATABASE_URL wins when set. Otherwise the URL is composed from the
    DB_USER / DB_PASS / DB_HOST / DB_PORT / DB_NAME parts, which is how the
    hosted deployment hands out credentials.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults. Production deployments must
    provide the database credentials, PAYMENT_GATEWAY_KEY and the Firebase
    service-account file.
    """

    # ── Database ──────────────────────────────────────────────────────────
    database_url: str = Field(
        default="",
        description="Full async SQLAlchemy URL; overrides the DB_* parts when set",
    )
    db_user: str = Field(default="parcel")
    db_pass: str = Field(default="parcel_secret")
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=5432, ge=1, le=65535)
    db_name: str = Field(default="parcelDB")

    # Pool sizing only applies to server databases (ignored for SQLite)
    db_pool_size: int = Field(default=20, ge=5, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # ── Payment Gateway (Stripe) ──────────────────────────────────────────
    payment_gateway_key: str = Field(
        default="",
        description="Stripe secret key used to create payment intents",
    )
    payment_currency: str = Field(default="usd", min_length=3, max_length=3)

    # ── Identity Provider (Firebase) ──────────────────────────────────────
    firebase_credentials_path: str = Field(
        default="./firebase_key.json",
        description="Path to the Firebase service-account JSON file",
    )

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated origins; "*" allows any origin
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Gateway Retry ─────────────────────────────────────────────────────
    # Tenacity settings for transport failures talking to Stripe
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: int = Field(default=1, ge=0, le=30)
    retry_max_wait: int = Field(default=8, ge=1, le=120)

    # ── Gateway Circuit Breaker ───────────────────────────────────────────
    cb_failure_threshold: int = Field(default=5, ge=1, le=20)
    cb_recovery_timeout: int = Field(default=60, ge=0, le=300)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def sqlalchemy_database_url(self) -> str:
        """
        Resolve the async SQLAlchemy URL.

        Credentials are passed through URL.create so special characters in
        the password are escaped correctly.
        """
        if self.database_url:
            return self.database_url
        return URL.create(
            drivername="postgresql+asyncpg",
            username=self.db_user,
            password=self.db_pass,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        ).render_as_string(hide_password=False)

    @property
    def is_sqlite(self) -> bool:
        return self.sqlalchemy_database_url.startswith("sqlite")

    def validate_required_for_production(self) -> None:
        """
        What:  Checks that the external collaborators are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every problem and raises one ValueError listing them.
        """
        errors: List[str] = []
        if not self.payment_gateway_key:
            errors.append(
                "PAYMENT_GATEWAY_KEY is not set. "
                "Payment intents cannot be created without a Stripe secret key."
            )
        credentials: Optional[Path] = (
            Path(self.firebase_credentials_path) if self.firebase_credentials_path else None
        )
        if credentials is None or not credentials.is_file():
            errors.append(
                f"Firebase credential file '{self.firebase_credentials_path}' was not found. "
                "Protected endpoints will reject every token."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
