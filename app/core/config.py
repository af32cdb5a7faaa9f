"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "placify"

    # JWT Auth (tokens are issued by the auth service, we only verify them)
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # Resume storage: "local" or "s3"
    resume_storage_type: str = "local"
    resume_storage_dir: str = "uploads/resumes"
    resume_base_url: str = "/static/resumes"
    max_resume_size_mb: int = 10

    # S3 (only used when resume_storage_type == "s3")
    s3_bucket_name: str = ""
    aws_region: str = "ap-south-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""

    # Lifecycle
    notification_ttl_days: int = 30
    job_default_ttl_days: int = 30
    retention_days: int = 90
    scheduler_enabled: bool = True

    # App
    log_level: str = "INFO"
    debug: bool = True

    @property
    def max_resume_size_bytes(self) -> int:
        return self.max_resume_size_mb * 1024 * 1024

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
