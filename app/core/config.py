# app/core/config.py
from typing import Optional
from pydantic import AnyUrl
from pydantic_settings import BaseSettings

DEFAULT_SECRET_KEY = "change-me"

class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    SECRET_KEY: str = DEFAULT_SECRET_KEY  # override in .env / secrets; required when APP_ENV=production
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Job / profile store: 'mongo' or 'memory'
    JOB_STORE: str = "mongo"
    MONGODB_URI: str = "mongodb://localhost:27017/resume_enhancer"
    MONGODB_DB: str = "resume_enhancer"
    JOBS_COLLECTION: str = "resumeQueue"
    USERS_COLLECTION: str = "users"
    APPLICATIONS_COLLECTION: str = "applications"

    # Creation-event queue: 'redis' (separate worker process) or 'inline' (same process)
    QUEUE_BACKEND: str = "redis"
    REDIS_URL: str = "redis://localhost:6379/0"

    # S3 / R2 / MinIO
    S3_BUCKET: str = "resumes"
    S3_ENDPOINT: Optional[AnyUrl] = None
    S3_REGION: Optional[str] = None
    S3_ACCESS_KEY: Optional[str] = None
    S3_SECRET_KEY: Optional[str] = None
    # dev fallback when no S3 credentials are configured
    LOCAL_UPLOAD_DIR: str = "uploads"
    TEMP_DIR: Optional[str] = None
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # LLM
    LLM_ADAPTER: str = "http"
    LLM_HTTP_URL: str = "https://api.openai.com/v1/chat/completions"
    LLM_API_KEY: Optional[str] = None
    LLM_MODEL: str = "gpt-4-turbo"
    LLM_MAX_TOKENS: int = 2000
    LLM_TIMEOUT_SEC: float = 60
    LLM_MAX_ATTEMPTS: int = 3
    # wait attempt * LLM_BACKOFF_MS between attempts
    LLM_BACKOFF_MS: int = 1000

    # Worker tuning
    WORKER_MAX_RETRIES: int = 5
    WORKER_CLAIM_IDLE_MS: int = 30_000
    WORKER_READ_BLOCK_MS: int = 5000
    # processing jobs older than this are failed by the sweeper; 0 disables it
    JOB_STALE_AFTER_SEC: int = 900
    STALE_SWEEP_INTERVAL_SEC: int = 60

    # Client
    POLL_INTERVAL_SEC: float = 3.0

    # Pydantic v2 settings: read from .env file
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


def get_settings() -> Settings:
    return Settings()
