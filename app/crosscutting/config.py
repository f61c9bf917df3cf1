"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide defaults for local development and tests

Collaborators:
  - api/main.py: reads settings for CORS, pool sizing and startup validation
  - container.py: decides in-memory vs real adapters (app_env)
  - identity/*: session token and one-time-code settings
  - infrastructure/*: store timeouts, SMTP, Stripe, Firebase

Constraints:
  - Lives in API/infrastructure layer, NOT in domain/application
  - No business logic — pure configuration

Notes:
  - Singleton via lru_cache
  - Production validation is strict (secrets, cookies, unsigned headers)
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_env: Application environment (development/test/production)
        log_level: Logging level (default: INFO)
        log_json: Emit JSON logs (default: True)
        database_url: PostgreSQL connection string (optional in tests)
        firebase_project_id: Firebase/GCP project id
        firebase_credentials_path: Service account JSON (empty = ADC)
        firebase_enabled: Use Firestore/Firebase Auth adapters
        store_timeout_seconds: Bounded timeout per store call
        jwt_secret: Secret for signing session tokens
        jwt_access_ttl_minutes: Session token TTL in minutes
        accept_unsigned_identity_headers: Allow X-User-Id / X-Firebase-Uid (dev only)
        otp_*_ttl_minutes: Expiry window per one-time-code flow
        otp_max_attempts: Failed verifications before a code is exhausted
        smtp_*: Notification channel (email)
        stripe_*: Payment gateway
        retry_*: Retry policy for external HTTP calls
    """

    # Environment
    app_env: str = "development"
    log_level: str = "INFO"
    log_json: bool = True

    # Relational store
    database_url: str = ""
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 10000

    # Document store / identity provider (Firebase)
    firebase_enabled: bool = True
    firebase_project_id: str = ""
    firebase_credentials_path: str = ""

    # Store resilience
    store_timeout_seconds: float = 5.0

    # CORS / HTTP
    allowed_origins: str = "http://localhost:5173"
    cors_allow_credentials: bool = False
    max_body_bytes: int = 2 * 1024 * 1024

    # Session tokens (JWT)
    jwt_secret: str = "dev-secret"
    jwt_access_ttl_minutes: int = 60 * 24
    jwt_cookie_name: str = "session_token"
    jwt_cookie_secure: bool = False
    accept_unsigned_identity_headers: bool = False

    # One-time codes
    otp_login_ttl_minutes: int = 10
    otp_setup_ttl_minutes: int = 10
    otp_disable_ttl_minutes: int = 10
    otp_password_reset_ttl_minutes: int = 10
    password_reset_token_ttl_minutes: int = 30
    otp_max_attempts: int = 5

    # Notification channel (SMTP)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    mail_from: str = "no-reply@localhost"

    # Payment gateway (Stripe)
    stripe_secret_key: str = ""
    stripe_api_base: str = "https://api.stripe.com"
    payment_currency: str = "usd"

    # Retry/Resilience
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 0.5
    retry_max_delay_seconds: float = 8.0

    # Dev Tools (Backend Safe)
    dev_seed_admin: bool = False
    dev_seed_admin_email: str = "admin@local"
    dev_seed_admin_password: str = "admin"
    dev_seed_admin_force_reset: bool = False

    @field_validator("store_timeout_seconds")
    @classmethod
    def store_timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("store_timeout_seconds must be greater than 0")
        return v

    @field_validator(
        "otp_login_ttl_minutes",
        "otp_setup_ttl_minutes",
        "otp_disable_ttl_minutes",
        "otp_password_reset_ttl_minutes",
        "password_reset_token_ttl_minutes",
        "jwt_access_ttl_minutes",
    )
    @classmethod
    def ttl_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("TTL values must be greater than 0")
        return v

    @field_validator("otp_max_attempts")
    @classmethod
    def attempts_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("otp_max_attempts must be greater than 0")
        return v

    @field_validator("payment_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return (v or "usd").strip().lower()

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        insecure_secrets = {"dev-secret", "changeme", "change-me", "password"}
        jwt_secret = (self.jwt_secret or "").strip()
        if not jwt_secret or jwt_secret in insecure_secrets:
            raise ValueError(
                "JWT_SECRET must be set to a strong, non-default value in production"
            )
        if len(jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production")
        if not self.jwt_cookie_secure:
            raise ValueError("JWT_COOKIE_SECURE must be true in production")
        if self.accept_unsigned_identity_headers:
            raise ValueError(
                "ACCEPT_UNSIGNED_IDENTITY_HEADERS must be false in production"
            )
        if not self.database_url.strip():
            raise ValueError("DATABASE_URL is required in production")

        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_test(self) -> bool:
        return self.app_env.strip().lower() in {"test", "testing", "ci"}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()
