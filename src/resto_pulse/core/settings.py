"""Application settings and configuration.

This module defines all configuration options for the Resto Pulse service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Resto Pulse", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./resto_pulse.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=False, alias="AUTO_CREATE_TABLES")

    # Admin surface (single shared password, short-lived JWT)
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    admin_password: str | None = Field(default=None, alias="ADMIN_PASSWORD")
    admin_token_expire_minutes: int = Field(default=60 * 8, alias="ADMIN_TOKEN_EXPIRE_MINUTES")
    admin_max_login_attempts: int = Field(default=5, alias="ADMIN_MAX_LOGIN_ATTEMPTS")
    admin_lockout_minutes: int = Field(default=15, alias="ADMIN_LOCKOUT_MINUTES")

    # Rating and review rules
    rating_min: float = Field(default=1.0, alias="RATING_MIN")
    rating_max: float = Field(default=5.0, alias="RATING_MAX")
    review_daily_limit: int = Field(default=5, alias="REVIEW_DAILY_LIMIT")
    review_max_comment_length: int = Field(default=1000, alias="REVIEW_MAX_COMMENT_LENGTH")
    review_max_name_length: int = Field(default=100, alias="REVIEW_MAX_NAME_LENGTH")
    max_images_per_post: int = Field(default=5, alias="MAX_IMAGES_PER_POST")
    suggestions_page_size: int = Field(default=10, alias="SUGGESTIONS_PAGE_SIZE")

    # Blob storage (Cloudinary)
    cloudinary_cloud_name: str | None = Field(default=None, alias="CLOUDINARY_CLOUD_NAME")
    cloudinary_api_key: str | None = Field(default=None, alias="CLOUDINARY_API_KEY")
    cloudinary_api_secret: str | None = Field(default=None, alias="CLOUDINARY_API_SECRET")
    cloudinary_folder: str = Field(default="resto-pulse", alias="CLOUDINARY_FOLDER")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")
    upload_timeout_seconds: float = Field(default=60.0, alias="UPLOAD_TIMEOUT_SECONDS")
    upload_batch_size: int = Field(default=3, alias="UPLOAD_BATCH_SIZE")
    upload_batch_delay_seconds: float = Field(default=1.0, alias="UPLOAD_BATCH_DELAY_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
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
    def cloudinary_configured(self) -> bool:
        """Return True when every Cloudinary credential is present."""
        return bool(
            self.cloudinary_cloud_name
            and self.cloudinary_api_key
            and self.cloudinary_api_secret
        )


settings = Settings()  # type: ignore[call-arg]
