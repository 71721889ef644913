"""Application settings and configuration.

This module defines all configuration options for the DevLink application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="DevLink", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./devlink.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Session tokens
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    session_cookie_name: str = Field(default="devlink_session", alias="SESSION_COOKIE_NAME")
    session_cookie_secure: bool = Field(default=False, alias="SESSION_COOKIE_SECURE")
    frontend_url: str = Field(default="http://localhost:3000", alias="FRONTEND_URL")

    # OAuth providers
    github_client_id: str | None = Field(default=None, alias="GITHUB_CLIENT_ID")
    github_client_secret: str | None = Field(default=None, alias="GITHUB_CLIENT_SECRET")
    google_client_id: str | None = Field(default=None, alias="GOOGLE_CLIENT_ID")
    google_client_secret: str | None = Field(default=None, alias="GOOGLE_CLIENT_SECRET")
    oauth_redirect_base: str = Field(
        default="http://localhost:8000/api/v1/auth",
        alias="OAUTH_REDIRECT_BASE",
    )
    # GitHub logins that are created approved and with admin rights.
    bootstrap_admin_logins: list[str] = Field(default=[], alias="BOOTSTRAP_ADMIN_LOGINS")

    # Handle assignment
    handle_max_attempts: int = Field(default=50, alias="HANDLE_MAX_ATTEMPTS")
    handle_random_attempts: int = Field(default=5, alias="HANDLE_RANDOM_ATTEMPTS")

    # Rate limiting for toggle endpoints
    rate_limit_redis_url: str | None = Field(default=None, alias="RATE_LIMIT_REDIS_URL")
    toggle_rate_limit: int = Field(default=60, alias="TOGGLE_RATE_LIMIT")
    toggle_rate_window_seconds: int = Field(default=60, alias="TOGGLE_RATE_WINDOW_SECONDS")

    # Notifications
    notification_webhook_url: str | None = Field(default=None, alias="NOTIFICATION_WEBHOOK_URL")
    notification_timeout_seconds: float = Field(
        default=5.0,
        alias="NOTIFICATION_TIMEOUT_SECONDS",
    )

    # GitHub API
    github_api_base_url: str = Field(default="https://api.github.com", alias="GITHUB_API_BASE_URL")
    github_http_timeout_seconds: float = Field(
        default=10.0,
        alias="GITHUB_HTTP_TIMEOUT_SECONDS",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def bootstrap_admins(self) -> set[str]:
        """Return bootstrap admin logins normalised to lower case."""
        return {login.strip().lower() for login in self.bootstrap_admin_logins if login.strip()}


settings = Settings()  # type: ignore[call-arg]
