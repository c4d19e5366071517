from pydantic_settings import BaseSettings, SettingsConfigDict
import os


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./inventory.db"
    log_level: str = "INFO"
    environment: str = "local"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_schema: str = "public"

    # Query defaults used when a caller does not pass its own
    default_low_stock_threshold: int = 10
    default_recent_days: int = 7

    model_config = SettingsConfigDict(
        env_file=f"config/{os.getenv('ENV', 'local')}.env",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
