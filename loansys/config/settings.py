"""
Application settings and configuration management using Pydantic BaseSettings.
"""

from decimal import Decimal
from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Environment enumeration"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class StorageBackendType(str, Enum):
    """Available storage backends for the loan and user collections."""
    MEMORY = "memory"
    JSON = "json"
    SQLITE = "sqlite"


class StorageConfig(BaseSettings):
    """Storage configuration settings."""
    backend: StorageBackendType = Field(default=StorageBackendType.JSON)
    path: str = Field(default="data")
    strict_load: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="STORAGE_", extra="ignore")

    @property
    def absolute_path(self) -> str:
        """Get absolute path to the storage location."""
        return str(Path(self.path).resolve())


class LendingConfig(BaseSettings):
    """Lending defaults used by calculators and reports."""
    default_annual_rate: Decimal = Field(default=Decimal("12"), ge=0)
    currency: str = Field(default="INR", pattern=r"^[A-Z]{3}$")

    model_config = SettingsConfigDict(env_prefix="LENDING_", extra="ignore")


class AppConfig(BaseSettings):
    """Application configuration settings."""
    environment: Environment = Field(default=Environment.DEVELOPMENT)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    service_name: str = Field(default="loansys")

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT


class Settings(BaseSettings):
    """Centralized application settings manager using Pydantic BaseSettings."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    lending: LendingConfig = Field(default_factory=LendingConfig)
    app: AppConfig = Field(default_factory=AppConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **kwargs):
        self._load_env_file()
        super().__init__(**kwargs)

    def _load_env_file(self) -> None:
        """Load environment variables from .env file."""
        env_file = Path(".env")
        if env_file.exists():
            from dotenv import load_dotenv
            load_dotenv(env_file)

    def update_storage_path(self, path: str) -> None:
        """Update storage path."""
        self.storage.path = path
