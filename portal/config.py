"""Environment-driven settings for the portal.

Each concern is its own ``BaseSettings`` with its own env prefix; the
``Settings`` container loads them side by side. Read settings through the
cached ``get_settings()``; tests call ``clear_settings_cache()`` after
changing the environment.

    from portal.config import get_settings
    cap = get_settings().booking.weekly_cap
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TRUTHY = ("1", "true", "yes", "on")


class RedisSettings(BaseSettings):
    """Redis holds login sessions."""

    model_config = SettingsConfigDict(env_prefix="REDIS_", extra="ignore")

    host: str = "redis"
    port: int = 6379
    password: str = ""
    max_connections: int = Field(default=50, description="Upper bound of the blocking pool")
    pool_timeout_sec: float = Field(default=5.0, description="Wait for a free pooled connection")
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0


class PostgresSettings(BaseSettings):
    """Activity database, used only when ENABLE_PERSISTENCE is set."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", extra="ignore", populate_by_name=True)

    host: str = "postgres"
    port: int = 5432
    user: str = "portal"
    password: str = ""
    database: str = Field(default="portal", validation_alias="POSTGRES_DB")
    pool_min_size: int = 1
    pool_max_size: int = 10
    pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    pool_max_idle: int = Field(default=300, description="Seconds before an idle connection is closed")

    def get_dsn(self) -> str:
        return (
            f"host={self.host} port={self.port} dbname={self.database} "
            f"user={self.user} password={self.password} sslmode=disable"
        )


class CorsSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    origins_raw: str = Field(default="http://localhost:5173", validation_alias="CORS_ORIGINS")
    origins_regex: str = Field(default="", validation_alias="CORS_ORIGINS_REGEX")

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.origins_raw.split(",") if o.strip()]

    @property
    def allow_credentials(self) -> bool:
        # browsers refuse credentials with a wildcard origin
        return self.origins != ["*"] and not self.origins_regex


class _FlagSettings(BaseSettings):
    """Booleans read from env vars spelled 1/true/yes/on."""

    model_config = SettingsConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def parse_flag(cls, v):
        if isinstance(v, str):
            return v.strip().lower() in _TRUTHY
        return bool(v)


class DebugSettings(_FlagSettings):
    request: bool = Field(default=False, alias="request_debug")
    redis: bool = Field(default=False, alias="redis_debug")


class FeatureSettings(_FlagSettings):
    persistence: bool = Field(default=False, alias="enable_persistence")
    demo_catalog: bool = Field(default=True, alias="enable_demo_catalog")


class BookingSettings(BaseSettings):
    """Registration rules and how stored dates become instants."""

    model_config = SettingsConfigDict(env_prefix="BOOKING_", extra="ignore")

    weekly_cap: int = Field(default=3, ge=0, description="Confirmed participant activities per week")
    participant_toast_sec: float = Field(default=3.0, description="Participant toast lifetime")
    volunteer_toast_sec: float = Field(default=2.5, description="Volunteer toast lifetime")
    utc_offset: str = Field(default="+08:00", description="Offset applied to stored date/time columns")
    default_start_time: str = Field(default="09:00")
    default_end_time: str = Field(default="17:00")
    default_participant_capacity: int = Field(default=20, ge=0)
    reload_after_sec: float = Field(default=60.0, ge=0, description="Age at which a database-backed store reloads")

    @field_validator("utc_offset")
    @classmethod
    def validate_offset(cls, v: str) -> str:
        if len(v) != 6 or v[0] not in "+-" or v[3] != ":":
            raise ValueError("utc_offset must look like +08:00")
        return v


class SessionSettings(BaseSettings):
    """Login session storage."""

    model_config = SettingsConfigDict(env_prefix="SESSION_", extra="ignore")

    ttl_sec: int = Field(default=8 * 3600, description="Session lifetime in seconds")
    key_prefix: str = Field(default="portal:session:")


class Settings:
    """All sections, each loaded with its own prefix."""

    def __init__(self) -> None:
        self.redis = RedisSettings()
        self.postgres = PostgresSettings()
        self.cors = CorsSettings()
        self.debug = DebugSettings()
        self.features = FeatureSettings()
        self.booking = BookingSettings()
        self.session = SessionSettings()


@lru_cache
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
