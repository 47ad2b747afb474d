"""
Restaurant Sales Dashboard API
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="restaurant_sales", description="Database name")
    user: str = Field(default="dashboard", description="Database user")
    password: SecretStr = Field(default="dashboard", description="Database password")
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Max overflow connections")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    echo: bool = Field(default=False, description="Echo SQL queries")
    ssl: bool = Field(default=False, description="Require SSL (hosted Postgres)")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Database URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL for asyncpg - uses DATABASE_URL if set"""
        if self.url:
            scheme, _, rest = self.url.partition("://")
            if scheme in ("postgres", "postgresql"):
                return f"postgresql+asyncpg://{rest}"
            return self.url
        return (
            f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}"
            f"@{self.host}:{self.port}/{self.name}"
        )


class StoreIdentifiers(BaseModel):
    """Physical identifiers of one logical store in each channel's schema"""
    in_store_id: Optional[str] = None
    online_site_id: Optional[str] = None


class ReportingSettings(BaseSettings):
    """Store mapping and time handling for sales reporting"""

    model_config = SettingsConfigDict(env_prefix="REPORTING_")

    stores: Dict[str, StoreIdentifiers] = Field(
        default={
            "Wagga": StoreIdentifiers(in_store_id="wagga", online_site_id="641"),
            "Preston": StoreIdentifiers(in_store_id="preston", online_site_id="1837"),
        },
        description="Logical store name -> physical identifiers",
    )
    local_utc_offset_hours: int = Field(
        default=11,
        description="Fixed UTC offset of the restaurants' local time",
    )
    default_top_products_limit: int = Field(default=40, description="Default top-products limit")
    max_top_products_limit: int = Field(default=500, description="Upper bound for top-products limit")

    @property
    def local_utc_offset_seconds(self) -> int:
        return self.local_utc_offset_hours * 3600

    @property
    def store_names_by_in_store_id(self) -> Dict[str, str]:
        """Reverse lookup used to label in-store product rows"""
        return {
            ids.in_store_id: name
            for name, ids in self.stores.items()
            if ids.in_store_id
        }


class CatalogSettings(BaseSettings):
    """Static product catalog configuration"""

    model_config = SettingsConfigDict(env_prefix="CATALOG_")

    data_dir: Path = Field(default=Path("./data/catalog"), description="Catalog directory")
    files: Dict[str, str] = Field(
        default={
            "wagga": "wagga_products.json",
            "preston": "preston_products.json",
        },
        description="In-store id -> catalog file name, in load order",
    )

    def sources(self) -> Dict[str, Path]:
        """Catalog partitions with resolved file paths"""
        return {store: self.data_dir / file_name for store, file_name in self.files.items()}


class SecuritySettings(BaseSettings):
    """CORS Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    frontend_url: str = Field(
        default="http://localhost:5173",
        alias="FRONTEND_URL",
        description="Dashboard origin allowed by CORS",
    )

    @property
    def cors_origins(self) -> List[str]:
        return [self.frontend_url]


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or console")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="restaurant-sales-dashboard", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=3001, alias="BACKEND_PORT", description="API port")
    api_workers: int = Field(default=4, alias="API_WORKERS", description="API workers")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
