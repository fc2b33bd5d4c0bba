# app/core/config.py
from typing import Optional
from pydantic import AnyUrl
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    # comma separated list, "*" allows every origin
    CORS_ORIGINS: str = "*"

    # Tokens
    SECRET_KEY: str = "change-me"  # override in .env / secrets
    REFRESH_SECRET_KEY: str = "change-me-too"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # Redis (shared failed-login counters)
    REDIS_URL: str = "redis://localhost:6379/0"
    MAX_LOGIN_ATTEMPTS: int = 5
    LOGIN_WINDOW_SECONDS: int = 15 * 60
    # reverse proxies in front of the API; 0 ignores X-Forwarded-For
    TRUSTED_PROXY_HOPS: int = 0

    # MongoDB
    MONGODB_URI: str = "mongodb://localhost:27017/job_board"
    MONGODB_DB: str = "job_board"

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE_MB: int = 5
    MAX_UPLOAD_FILES: int = 3

    # S3 / R2 (optional, local disk is used when unset)
    S3_PROVIDER: str = "aws"
    S3_BUCKET: Optional[str] = None
    S3_ENDPOINT: Optional[AnyUrl] = None
    S3_REGION: Optional[str] = None
    S3_ACCESS_KEY: Optional[str] = None
    S3_SECRET_KEY: Optional[str] = None

    # MinIO dev fallback
    MINIO_ENDPOINT: Optional[str] = None
    MINIO_ACCESS_KEY: Optional[str] = None
    MINIO_SECRET_KEY: Optional[str] = None

    # Pydantic v2 settings: read from .env file
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() == "development"

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

# single shared settings instance
settings = Settings()
