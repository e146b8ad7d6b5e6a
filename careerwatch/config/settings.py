from pathlib import Path
from typing import List, Optional, Tuple, Type

from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    YamlConfigSettingsSource,
)

BASE_DIR = Path(__file__).resolve().parent.parent.parent

CONFIG_FILE_NAME = "config.yaml"


def find_config_file() -> Optional[Path]:
    """
    First config.yaml found in the working directory or its config/ folder.
    """
    for directory in (Path.cwd(), Path.cwd() / "config"):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    class Config:
        env_prefix = "CAREERWATCH_"
        env_file = BASE_DIR / ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    """
    Configuration settings for the career page watcher.
    """

    # Sources (comma-separated career page URLs)
    URLS: str = ""

    # Scheduling
    SCRAPE_INTERVAL: str = "*/5 * * * *"  # crontab, optional leading seconds field
    RUN_ON_STARTUP: bool = True
    # APScheduler refuses a tick while this many passes are still running.
    MAX_OVERLAPPING_RUNS: int = 3
    SOURCE_TIMEOUT: float = 120.0  # seconds, 0 disables

    # Notifications
    NOTIFIER_TYPE: str = "log"  # log, discord
    DISCORD_WEBHOOK_URL: Optional[str] = None
    NOTIFY_ERRORS: bool = False
    HTTP_TIMEOUT: float = 10.0  # seconds

    # Storage
    REPOSITORY_TYPE: str = "memory"  # memory, json
    REPOSITORY_PATH: Path = BASE_DIR / "data" / "snapshots.json"

    # Browser settings
    HEADLESS: bool = True
    MAX_CONCURRENT_PAGES: int = 2
    NAVIGATION_TIMEOUT: int = 30000  # ms
    WAIT_STABLE_MS: int = 2000  # ms

    # Retries
    MAX_RETRIES: int = 3
    RETRY_BASE_DELAY: float = 2.0  # seconds
    RETRY_MAX_DELAY: float = 10.0  # seconds

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # text, json

    @field_validator("URLS", mode="before")
    @classmethod
    def _join_url_list(cls, value):
        # YAML files may list URLs instead of a comma-separated string
        if isinstance(value, (list, tuple)):
            return ",".join(str(url) for url in value)
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over .env, which wins over config.yaml.
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=find_config_file()),
            file_secret_settings,
        )

    def url_list(self) -> List[str]:
        """Configured source URLs, in order, without blanks."""
        return [url.strip() for url in self.URLS.split(",") if url.strip()]


settings = Settings()
