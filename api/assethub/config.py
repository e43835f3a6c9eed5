"""Application configuration."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    postgres_host: str = "postgres"
    postgres_port: int = 5432
    postgres_user: str = "assethub"
    postgres_password: str = "changeme"
    postgres_db: str = "assethub_db"
    database_dsn: Optional[str] = None  # full URL override (e.g. sqlite for local dev)

    # Redis
    redis_url: str = "redis://redis:6379/0"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = True
    api_workers: int = 1
    public_base_url: str = "http://localhost:8000"

    # Celery
    celery_broker_url: str = "redis://redis:6379/0"
    celery_result_backend: str = "redis://redis:6379/0"
    processing_queue: str = "asset-processing"
    processing_slot_ttl_seconds: int = 3600
    processing_stale_after_seconds: int = 1800

    # Security
    secret_key: str = "changeme-use-a-secure-random-key-in-production"
    config_encryption_key: str = "changeme-32-bytes-base64-encoded-key"

    # Platform default storage (tenants may override with a persisted config)
    storage_provider: Optional[str] = "local"
    storage_base_path: str = ""
    storage_local_path: str = "/data/assets"
    storage_bucket_name: Optional[str] = None
    storage_region: str = "us-east-1"
    storage_endpoint_url: Optional[str] = None
    storage_access_key_id: Optional[str] = None
    storage_secret_access_key: Optional[str] = None
    presigned_url_ttl_seconds: int = 3600

    # Rate limiting
    rate_limit_enabled: bool = True

    # Logging
    log_level: str = "INFO"

    # Environment
    environment: str = "development"

    @property
    def database_url(self) -> str:
        """Build database URL."""
        if self.database_dsn:
            return self.database_dsn
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def default_storage_config(self) -> Optional[dict]:
        """Driver configuration for the platform default storage, if any."""
        provider = (self.storage_provider or "").lower()
        if not provider:
            return None
        if provider == "local":
            return {
                "provider": "local",
                "base_path": self.storage_local_path,
            }
        config = {
            "provider": provider,
            "base_path": self.storage_base_path,
            "bucket_name": self.storage_bucket_name,
            "region": self.storage_region,
            "aws_access_key_id": self.storage_access_key_id,
            "aws_secret_access_key": self.storage_secret_access_key,
        }
        if self.storage_endpoint_url:
            config["endpoint_url"] = self.storage_endpoint_url
        return config


settings = Settings()
