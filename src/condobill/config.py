"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Loads and validates application settings from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    DATABASE_URL: str = "sqlite://db.sqlite3"
    BOT_TOKEN: str = "YOUR_TELEGRAM_BOT_TOKEN"
    ADMIN_IDS: list[int] = []
    LOG_LEVEL: str = "INFO"

    BUILDING_NAME: str = "Chung cư"
    TARIFF_CACHE_TTL_SECONDS: int = 300
    BILLING_DAY: int = 1  # day of month for the scheduled billing run
    TRANSFER_TEMPLATE: str = "{unit_id} T{month}"
    CARRY_OVER_BALANCE: bool = True


settings = Settings()
