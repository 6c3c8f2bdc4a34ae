"""Configuration management for freshcut."""

from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FRESHCUT_",
        case_sensitive=False,
        extra="ignore",
    )

    # Document store
    sqlite_db_path: str = Field(default="./data/freshcut.db", description="SQLite document store path")
    read_only_collections: list[str] = Field(
        default_factory=list,
        description="Collections that reject writes with a permission error",
    )

    # OpenRouter Configuration (image scanning)
    openrouter_api_key: str | None = Field(default=None, description="OpenRouter API key for LLM access")
    model_id: str = Field(
        default="google/gemini-2.0-flash-001",
        description="Vision-capable model ID on OpenRouter used for label scanning",
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Freshness rules
    local_timezone: str | None = Field(
        default=None,
        description="IANA timezone used for calendar-day math (defaults to the host timezone)",
    )
    expiring_soon_days: int = Field(default=2, description="Calendar days before expiry that count as expiring soon")
    stale_expired_days: int = Field(
        default=5, description="Calendar days after expiry before an item is hidden from non-expired views"
    )
    nearing_expiry_limit: int = Field(default=5, description="Number of items shown in the nearing-expiry list")

    # Diagnostics
    diagnostics_history: int = Field(default=50, description="Write failures retained by the diagnostics log")

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set FRESHCUT_{field_name.upper()} environment variable or add to .env file."
            )
        return value

    @property
    def tzinfo(self) -> ZoneInfo | None:
        """Configured local timezone, or None for the host timezone."""
        return ZoneInfo(self.local_timezone) if self.local_timezone else None


# Application Constants
class Constants:
    """Application-wide constants."""

    # Collections
    INVENTORY_COLLECTION: str = "inventory_items"
    NEEDS_COLLECTION: str = "need_items"

    # Owner fields used to scope subscriptions per user
    INVENTORY_OWNER_FIELD: str = "user_id"
    NEEDS_OWNER_FIELD: str = "added_by"

    # Display name stamped on needs when the user has none
    ANONYMOUS_DISPLAY_NAME: str = "Anonymous"

    # Scanned items pre-fill
    SCANNED_DEFAULT_QUANTITY: int = 1
    SCANNED_NOTES: str = "Scanned with AI"

    # Toast history kept in memory
    TOAST_HISTORY_MAXLEN: int = 20


DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Beef",
    "Pork",
    "Poultry",
    "Lamb",
    "Seafood",
    "Turkey",
    "Halal",
    "Kosher",
)


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
