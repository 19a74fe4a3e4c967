"""Application Configuration"""

from typing import List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Rental Billing Engine"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./rental_billing.db"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600

    # CORS (5173 = Vite default dev server)
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:3001,http://localhost:5173"
    ALLOWED_METHODS: str = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
    ALLOWED_HEADERS: str = "*"

    # Storage (slip artifacts). "http" probes public URLs, "r2" asks the bucket.
    STORAGE_BACKEND: str = "http"
    STORAGE_PUBLIC_BASE_URL: str = "http://localhost:5000"
    R2_ACCOUNT_ID: str = ""
    R2_ACCESS_KEY_ID: str = ""
    R2_SECRET_ACCESS_KEY: str = ""
    R2_BUCKET_NAME: str = "payment-slips"

    # Store calls
    STORE_TIMEOUT_SECONDS: float = 10.0
    STORE_RETRY_ATTEMPTS: int = 3
    STORE_RETRY_DELAY_SECONDS: float = 0.2
    AGGREGATE_TIMEOUT_SECONDS: float = 30.0

    # Slip existence probes
    SLIP_PROBE_TIMEOUT_SECONDS: float = 5.0
    SLIP_PROBE_RETRY_ATTEMPTS: int = 2
    SLIP_PROBE_CONCURRENCY: int = 4

    # Rate catalog: bill type names containing one of these keywords
    WATER_RATE_KEYWORDS: str = "water,น้ำ"
    ELECTRICITY_RATE_KEYWORDS: str = "electric,ไฟ"
    STRICT_RATES: bool = False
    DEFAULT_OTHER_DESCRIPTION: str = "Other charges"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("ALLOWED_ORIGINS")
    @classmethod
    def parse_origins(cls, v: str) -> List[str]:
        """Parse comma-separated origins into a list"""
        return [origin.strip() for origin in v.split(",")]

    @field_validator("ALLOWED_METHODS")
    @classmethod
    def parse_methods(cls, v: str) -> List[str]:
        """Parse comma-separated methods into a list"""
        return [method.strip() for method in v.split(",")]

    @field_validator("WATER_RATE_KEYWORDS", "ELECTRICITY_RATE_KEYWORDS")
    @classmethod
    def parse_keywords(cls, v: str) -> List[str]:
        """Parse comma-separated rate keywords into a lowercase list"""
        return [kw.strip().lower() for kw in v.split(",") if kw.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


# Global settings instance
settings = Settings()
