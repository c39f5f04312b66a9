"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings

# Settings that must be non-empty before the service may start.
REQUIRED_SETTINGS = ("database_url", "admin_api_key")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://storefront:storefront_dev_password@db:5432/storefront"
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Authentication
    admin_api_key: str = "dev-admin-key-change-in-production"

    # On-demand cache invalidation (unset disables the revalidate endpoint)
    revalidation_secret: str | None = None

    # Pagination
    default_page_size: int = 8
    max_page_size: int = 50
    max_cursor: int = 100_000

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"

    def missing_required(self) -> list[str]:
        """List required settings that are empty.

        Returns:
            Names of missing settings, in declaration order.
        """
        return [name for name in REQUIRED_SETTINGS if not getattr(self, name)]


settings = Settings()
