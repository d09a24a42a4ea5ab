"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (and a .env file)
with sensible defaults. Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without a bucket.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Short Form Video API"
    api_version: str = "1.0"
    port: int = Field(
        default=3000,
        description="HTTP listen port"
    )

    # Google Cloud Storage Configuration
    gcs_bucket_name: str = Field(
        default="short-form-videos",
        description="Bucket holding video binaries and metadata sidecars"
    )
    google_cloud_project_id: str = Field(
        default="",
        description="Google Cloud project scope for storage requests"
    )
    google_cloud_key_file: Optional[str] = Field(
        default=None,
        description="Path to a JSON HMAC key file (accessId/secret). Alternative to inline keys."
    )
    gcs_access_key_id: str = Field(
        default="",
        description="HMAC access ID for the GCS interoperability API"
    )
    gcs_secret_access_key: str = Field(
        default="",
        description="HMAC secret for the GCS interoperability API"
    )
    gcs_endpoint_url: str = Field(
        default="https://storage.googleapis.com",
        description="S3-compatible endpoint. Point at MinIO for local testing."
    )
    public_base_url: str = Field(
        default="https://storage.googleapis.com",
        description="Base of public video URLs: {public_base_url}/{bucket}/{key}"
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of a real bucket."
    )
    storage_timeout_seconds: float = Field(
        default=30.0,
        description="Connect and read timeout for each storage call"
    )

    # Application Behavior
    max_upload_size_mb: int = Field(
        default=100,
        description="Maximum video upload size in MB."
    )
    default_random_count: int = Field(
        default=5,
        description="Number of videos returned by /video/random when count is absent or invalid"
    )
    skip_corrupt_metadata: bool = Field(
        default=False,
        description="Skip unreadable metadata objects when listing instead of failing the request."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode.

        Returns list of missing required fields.
        """
        missing = []

        if not self.gcs_bucket_name:
            missing.append("GCS_BUCKET_NAME")

        if not self.storage_mock_mode and not self.google_cloud_key_file:
            if not self.gcs_access_key_id:
                missing.append("GCS_ACCESS_KEY_ID or GOOGLE_CLOUD_KEY_FILE")
            if not self.gcs_secret_access_key:
                missing.append("GCS_SECRET_ACCESS_KEY or GOOGLE_CLOUD_KEY_FILE")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process. For tests, call
    get_settings.cache_clear() to reset.
    """
    return Settings()
