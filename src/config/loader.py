# src/config/loader.py
"""
Project configuration loader.
Single source of truth is config/config.json; secrets are overridden from
environment variables (and .env).
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# PATHS
# =============================================================================

def get_project_root() -> Path:
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Path to config.json (CONFIG_PATH env var wins)."""
    override = os.getenv("CONFIG_PATH")
    if override:
        return Path(override)
    return get_project_root() / "config" / "config.json"


def load_config_json(path: Path | None = None) -> dict[str, Any]:
    """Loads config.json into a dict, dropping ``_comment_*`` keys."""
    config_path = path or get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return {k: v for k, v in data.items() if not k.startswith("_comment_")}


# =============================================================================
# SECTIONS
# =============================================================================

class SystemSettings(BaseModel):
    PROJECT_NAME: str = "tuktuk"
    BRAND_NAME: str = "Go Tuk Tuk"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"


class LoggingSettings(BaseModel):
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "json"
    LOG_MAX_BYTES: int = 10485760


class ApiSettings(BaseModel):
    """HTTP server settings."""
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8001
    ALLOWED_ORIGINS: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v: Any) -> Any:
        """Accepts a comma-separated string (ALLOWED_ORIGINS env var)."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class DomainSettings(BaseModel):
    """Localisation."""
    DEFAULT_LANGUAGE: str = "en"
    TIMEZONE: str = "Asia/Yangon"
    CURRENCY: str = "ks"


class DatabaseSettings(BaseModel):
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "tuktuk"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 5
    DB_MAX_POOL_SIZE: int = 20
    DB_COMMAND_TIMEOUT: int = 60

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_NAMESPACE: str = "tuktuk"
    REDIS_MAX_CONNECTIONS: int = 50

    @property
    def url(self) -> str:
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class RabbitMQSettings(BaseModel):
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASSWORD: str = "guest"
    RABBITMQ_VHOST: str = "/"
    RABBITMQ_EXCHANGE: str = "tuktuk.events"
    RABBITMQ_PREFETCH_COUNT: int = 10

    @property
    def url(self) -> str:
        return (
            f"amqp://{self.RABBITMQ_USER}:{self.RABBITMQ_PASSWORD}"
            f"@{self.RABBITMQ_HOST}:{self.RABBITMQ_PORT}{self.RABBITMQ_VHOST}"
        )


class AuthSettings(BaseModel):
    """Token issuing and sign-in throttling."""
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = 30
    AUTH_RATE_LIMIT_ATTEMPTS: int = 5
    AUTH_RATE_LIMIT_WINDOW_SECONDS: int = 900


class FirebaseSettings(BaseModel):
    FIREBASE_ENABLED: bool = False
    FIREBASE_CREDENTIALS_PATH: str = ""


class GoogleMapsSettings(BaseModel):
    GOOGLE_MAPS_API_KEY: str = ""
    GEOCODING_LANGUAGE: str = "en"


class DispatchSettings(BaseModel):
    """Nearest-driver search."""
    DRIVER_SEARCH_RADIUS_KM: float = 3.0


class TripLimitSettings(BaseModel):
    """Bounds for end-of-trip input."""
    MAX_TRIP_DISTANCE_KM: float = 1000
    MAX_TRIP_DURATION_SEC: int = 86400
    MAX_WAITING_TIME_SEC: int = 3600
    MAX_EXTRA_FEE: float = 100000


class DriverAccountSettings(BaseModel):
    DRIVER_CODE_PREFIX: str = "7B"
    DRIVER_OPENING_BALANCE: int = 50000
    DRIVER_PASSWORD_LENGTH: int = 6


# =============================================================================
# AGGREGATE
# =============================================================================

def _section(model: type[BaseModel], data: dict[str, Any], env_keys: tuple[str, ...] = ()) -> BaseModel:
    """
    Builds a section from the keys of ``data`` it declares.
    Keys listed in ``env_keys`` are taken from the environment when set.
    """
    values = {name: data[name] for name in model.model_fields if name in data}
    for key in env_keys:
        env_value = os.getenv(key)
        if env_value:
            values[key] = env_value
    return model(**values)


class Settings(BaseSettings):
    """
    Application settings.
    Aggregates every configuration section.
    """
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    system: SystemSettings = Field(default_factory=SystemSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    domain: DomainSettings = Field(default_factory=DomainSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    rabbitmq: RabbitMQSettings = Field(default_factory=RabbitMQSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    firebase: FirebaseSettings = Field(default_factory=FirebaseSettings)
    google_maps: GoogleMapsSettings = Field(default_factory=GoogleMapsSettings)
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    trip_limits: TripLimitSettings = Field(default_factory=TripLimitSettings)
    drivers: DriverAccountSettings = Field(default_factory=DriverAccountSettings)

    @classmethod
    def from_config_json(cls, path: Path | None = None) -> "Settings":
        """
        Builds Settings from config.json.
        Secrets and host names are overridden from environment variables.
        """
        data = load_config_json(path)

        return cls(
            system=_section(SystemSettings, data, ("ENVIRONMENT",)),
            logging=_section(LoggingSettings, data, ("LOG_LEVEL",)),
            api=_section(ApiSettings, data, ("API_HOST", "API_PORT", "ALLOWED_ORIGINS")),
            domain=_section(DomainSettings, data, ("TIMEZONE",)),
            database=_section(
                DatabaseSettings, data,
                ("DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD"),
            ),
            redis=_section(RedisSettings, data, ("REDIS_HOST", "REDIS_PORT", "REDIS_PASSWORD")),
            rabbitmq=_section(
                RabbitMQSettings, data,
                ("RABBITMQ_HOST", "RABBITMQ_PORT", "RABBITMQ_USER", "RABBITMQ_PASSWORD"),
            ),
            auth=_section(AuthSettings, data, ("JWT_SECRET",)),
            firebase=_section(FirebaseSettings, data, ("FIREBASE_CREDENTIALS_PATH",)),
            google_maps=_section(GoogleMapsSettings, data, ("GOOGLE_MAPS_API_KEY",)),
            dispatch=_section(DispatchSettings, data),
            trip_limits=_section(TripLimitSettings, data),
            drivers=_section(DriverAccountSettings, data),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Returns the cached settings singleton.
    Loads .env from the project root first.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


settings = get_settings()
