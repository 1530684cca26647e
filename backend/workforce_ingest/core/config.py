"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Database (individual vars) ─────────────
    POSTGRES_USER: str = "workforce_user"
    POSTGRES_PASSWORD: str = "workforce_pass"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "workforce_db"

    # Full URL override (e.g. sqlite+aiosqlite:///./local.db for local runs)
    DATABASE_URL_OVERRIDE: str = ""

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for app runtime (asyncpg)."""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # ── Redis / Celery ────────────────────────
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # ── Backends ──────────────────────────────
    # "sql" | "memory"
    DOCUMENT_STORE_BACKEND: str = "sql"
    # "s3" | "memory"
    BLOB_STORE_BACKEND: str = "s3"

    # ── Object Storage (S3 / MinIO) ───────────
    STORAGE_ENDPOINT: str = "http://localhost:9000"
    STORAGE_ACCESS_KEY: str = "minioadmin"
    STORAGE_SECRET_KEY: str = "minioadmin"
    STORAGE_BUCKET_NAME: str = "workforce-media"
    STORAGE_REGION: str = "ap-south-1"
    # When set, uploaded objects are addressed as <base>/<path> instead of presigned URLs
    STORAGE_PUBLIC_BASE_URL: str = ""
    STORAGE_URL_EXPIRY_SECONDS: int = 604800

    # ── Import pipeline ───────────────────────
    IMPORT_MAX_BATCH_SIZE: int = 400
    MEDIA_MAX_WORKERS: int = 4
    MEDIA_JPEG_QUALITY: int = 75
    ID_ORG_PREFIX: str = "CISS"
    QR_RENDER_IMAGES: bool = True
    STEP_RETRY_BACKOFF_SECONDS: float = 2.0

    # ── Application ───────────────────────────
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}


settings = Settings()
