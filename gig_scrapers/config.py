from pathlib import Path
from typing import Optional

from pydantic import Field, AliasChoices, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoDBSettings(BaseSettings):
    """MongoDB connection settings. Connection parameters have no defaults on purpose."""
    uri: Optional[str] = Field(None, validation_alias=AliasChoices('MONGODB_URI', 'MONGO_URI'))
    database: Optional[str] = Field(None, validation_alias=AliasChoices('MONGODB_DATABASE', 'DB_NAME'))
    collection: Optional[str] = Field(None, validation_alias=AliasChoices('MONGODB_COLLECTION', 'COLLECTION_NAME'))
    enabled: bool = Field(True, validation_alias=AliasChoices('MONGODB_ENABLED'))
    server_selection_timeout_ms: int = Field(10000, validation_alias=AliasChoices('MONGODB_SERVER_SELECTION_TIMEOUT_MS'))

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        populate_by_name=True
    )


class GlobalScraperSettings(BaseSettings):
    """Browser and pacing settings shared by the scrapers."""
    default_user_agent: str = Field(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
        validation_alias=AliasChoices('SCRAPER_GLOBAL_DEFAULT_USER_AGENT', 'DEFAULT_USER_AGENT')
    )
    viewport_width: int = 1280
    viewport_height: int = 720
    navigation_timeout_ms: int = Field(30000, validation_alias=AliasChoices('SCRAPER_GLOBAL_NAVIGATION_TIMEOUT_MS'))
    element_timeout_ms: int = Field(15000, validation_alias=AliasChoices('SCRAPER_GLOBAL_ELEMENT_TIMEOUT_MS'))
    default_headless_browser: bool = Field(True, validation_alias=AliasChoices('SCRAPER_GLOBAL_DEFAULT_HEADLESS_BROWSER', 'DEFAULT_HEADLESS_BROWSER'))

    # Pause after each scroll so lazily loaded cards can render.
    scroll_settle_delay_sec: float = Field(2.0, validation_alias=AliasChoices('SCRAPER_GLOBAL_SCROLL_SETTLE_DELAY_SEC'))
    max_scroll_iterations: Optional[int] = Field(None, validation_alias=AliasChoices('SCRAPER_GLOBAL_MAX_SCROLL_ITERATIONS'))
    navigation_max_attempts: int = Field(3, ge=1, validation_alias=AliasChoices('SCRAPER_GLOBAL_NAVIGATION_MAX_ATTEMPTS'))
    navigation_retry_delay_sec: float = Field(1.0, ge=0.0, validation_alias=AliasChoices('SCRAPER_GLOBAL_NAVIGATION_RETRY_DELAY_SEC'))
    strict_dates: bool = Field(False, validation_alias=AliasChoices('SCRAPER_GLOBAL_STRICT_DATES'))

    model_config = SettingsConfigDict(
        env_prefix='SCRAPER_GLOBAL_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        populate_by_name=True
    )


class FileOutputSettings(BaseSettings):
    """Settings for controlling file-based outputs."""
    base_output_directory: Path = Field(Path("output"), validation_alias=AliasChoices('FILE_OUTPUT_BASE_OUTPUT_DIRECTORY', 'BASE_OUTPUT_DIRECTORY'))
    enable_json_output: bool = Field(True, validation_alias=AliasChoices('FILE_OUTPUT_ENABLE_JSON_OUTPUT', 'ENABLE_JSON_OUTPUT'))
    json_filename: str = Field("events.json", validation_alias=AliasChoices('FILE_OUTPUT_JSON_FILENAME'))
    log_output_directory: Path = Field(Path("scraper_logs"), validation_alias=AliasChoices('FILE_OUTPUT_LOG_OUTPUT_DIRECTORY', 'LOG_OUTPUT_DIRECTORY'))

    model_config = SettingsConfigDict(
        env_prefix='FILE_OUTPUT_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        populate_by_name=True
    )


class SentrySettings(BaseSettings):
    """Configuration for Sentry error tracking."""
    dsn: Optional[HttpUrl] = Field(None, validation_alias=AliasChoices('SENTRY_DSN'))
    environment: Optional[str] = Field(None, description="Overrides main app environment for Sentry if needed.")
    traces_sample_rate: float = Field(0.0, ge=0.0, le=1.0)

    model_config = SettingsConfigDict(
        env_prefix='SENTRY_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        populate_by_name=True
    )


class DiceVenueSettings(BaseSettings):
    """Configuration specific to the dice.fm venue scraper."""
    target_url: HttpUrl = Field("https://dice.fm/venue/tubbys-kingston-8qa5", validation_alias=AliasChoices('DICE_VENUE_TARGET_URL'))
    selectors_filename: str = "selectors.yaml"
    output_subfolder: str = "dice_venue"

    model_config = SettingsConfigDict(
        env_prefix='DICE_VENUE_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        populate_by_name=True
    )


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field("development", validation_alias=AliasChoices('APP_ENV', 'ENVIRONMENT'))
    log_level: str = Field("INFO", validation_alias=AliasChoices('APP_LOG_LEVEL', 'LOG_LEVEL'))

    mongodb: MongoDBSettings = Field(default_factory=MongoDBSettings)
    scraper_globals: GlobalScraperSettings = Field(default_factory=GlobalScraperSettings)
    file_outputs: FileOutputSettings = Field(default_factory=FileOutputSettings)
    sentry: SentrySettings = Field(default_factory=SentrySettings)
    dice_venue: DiceVenueSettings = Field(default_factory=DiceVenueSettings)

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        populate_by_name=True
    )


def get_settings() -> Settings:
    """Builds a fresh settings tree from the current environment."""
    return Settings()
