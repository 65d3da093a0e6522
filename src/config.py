from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Environment
    environment: str = "development"  # "development" or "production"

    # Database
    database_url: str = "sqlite:///./data/rotation.db"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    debug: bool = False

    # Slack
    slack_bot_token: str = ""
    slack_signing_secret: str = ""

    # Scheduler
    timezone: str = "UTC"  # reference zone for every schedule
    scheduler_idle_interval: int = 3600  # seconds, no enabled schedules
    scheduler_cooldown: int = 60  # seconds, after a batch fired
    scheduler_max_workers: int = 10

    # Admin
    admin_api_key: str = ""

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
