from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """
    Application configuration settings loaded from environment variables.

    Only ``database_url`` changes how the analytics store behaves: when set,
    the networked PostgreSQL store is used, otherwise the embedded SQLite file
    at ``sqlite_path``. Everything else configures the service around it.
    """

    service_name: str = Field(default="maya-analytics", alias="SERVICE_NAME")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    json_logs: bool = Field(default=False, alias="JSON_LOGS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    api_key: str = Field(..., alias="API_KEY")

    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    sqlite_path: str = Field(default="data/analytics.db", alias="SQLITE_PATH")

    pg_pool_max_size: int = Field(default=20, alias="PG_POOL_MAX_SIZE")
    pg_pool_idle_timeout: float = Field(default=30.0, alias="PG_POOL_IDLE_TIMEOUT")
    pg_connect_timeout: float = Field(default=10.0, alias="PG_CONNECT_TIMEOUT")

    geoip_db_path: str | None = Field(default=None, alias="GEOIP_DB_PATH")
    tracing_enabled: bool = Field(default=False, alias="TRACING_ENABLED")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("database_url", "geoip_db_path")
    @classmethod
    def blank_as_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


settings = AppConfig()
