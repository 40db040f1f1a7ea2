"""Application configuration loaded from environment variables.

Settings for database, session cookie, token login behaviour and rate
limiting. Uses pydantic-settings for validation and .env file support.
"""

from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "token_login_dev_password"  # nosec B105

# Minimum length for AUTH_SECRET in production (256 bits = 32 bytes)
_MIN_AUTH_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "token_login"
    database_user: str = "token_login_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # Application
    environment: str = "development"

    # Session credential (JWT in httpOnly cookie)
    auth_secret: SecretStr = SecretStr("")
    auth_issuer: str = "token-login"
    auth_audience: str = "frontend"
    auth_cookie_name: str = "token_login.session"
    auth_cookie_secure: bool = True
    auth_cookie_samesite: Literal["lax", "strict", "none"] = "lax"
    auth_cookie_domain: str = ""
    session_lifetime_minutes: int = 60

    # Token login
    login_token_ttl_minutes: int = 60 * 24
    login_default_target_path: str = "/"
    login_button_label: str = "Login"

    # Public site URL (used to build login links in issued emails/scripts)
    frontend_url: str = "http://localhost:8000"

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "10/minute", "100/hour")
    rate_limit_token_login: str = "10/minute"
    rate_limit_enabled: bool = True  # Disable for testing

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def database_url_sync(self) -> str:
        """Sync database URL for Alembic."""
        return (
            f"postgresql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate security requirements.

        Checks:
        - SameSite=None requires Secure flag (browser requirement)
        - Default redirect target must be a local path
        - Token and session lifetimes must be positive
        - Database password must not be the default in production
        - AUTH_SECRET must be set and >= 32 chars in production
        """
        if self.auth_cookie_samesite == "none" and not self.auth_cookie_secure:
            msg = (
                "AUTH_COOKIE_SECURE must be true when AUTH_COOKIE_SAMESITE=none. "
                "Browsers reject SameSite=None cookies without the Secure flag."
            )
            raise ValueError(msg)

        target = self.login_default_target_path
        if not target.startswith("/") or target.startswith("//"):
            msg = (
                "LOGIN_DEFAULT_TARGET_PATH must be a local absolute path "
                f"such as '/'. Got: {target!r}"
            )
            raise ValueError(msg)

        if self.login_token_ttl_minutes <= 0 or self.session_lifetime_minutes <= 0:
            msg = "LOGIN_TOKEN_TTL_MINUTES and SESSION_LIFETIME_MINUTES must be positive."
            raise ValueError(msg)

        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            secret_value = self.auth_secret.get_secret_value()
            if not secret_value:
                msg = (
                    "AUTH_SECRET must be set in production. "
                    'Generate with: python -c "import secrets; '
                    'print(secrets.token_hex(32))"'
                )
                raise ValueError(msg)
            if len(secret_value) < _MIN_AUTH_SECRET_LENGTH:
                msg = (
                    f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} "
                    "characters for adequate security."
                )
                raise ValueError(msg)

        return self


settings = Settings()
