"""Application configuration loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings exposed via dependency injection throughout the app."""

    # Read .env with BOM tolerance; case-sensitive keys
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=True,
    )

    APP_NAME: str = "Lead Engine API"
    ENV: str = "dev"  # dev | staging | prod
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ALLOWED_ORIGINS: list[str] = Field(default_factory=list)

    # DB
    DB_DRIVER: str = "mysql+aiomysql"
    DB_HOST: str = "127.0.0.1"
    DB_PORT: int = 3306
    DB_USER: str = "leadengine"
    DB_PASSWORD: str = ""  # set via env/.env
    DB_NAME: str = "leadengine"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_ISOLATION_LEVEL: str = "READ COMMITTED"

    # Rows per storage call when seeding a new batch.
    TASK_INSERT_CHUNK_SIZE: int = 1000
    # Tasks per storage call when writing assignments.
    ASSIGNMENT_CHUNK_SIZE: int = 100
    DEFAULT_DUE_IN_DAYS: int = 7

    # Maximum allowed upload size for user-supplied documents.
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024  # 5 MB
    # How many documents may be converted to text at the same time.
    DOC_MAX_CONCURRENCY: int = 4
    DOC_OP_TIMEOUT_SEC: float = 30
    # Rate limit for upload endpoints. See leadengine.core.rate_limit.limiter for syntax.
    DOC_UPLOAD_RATE: str = "5/minute"

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_DRIVER.startswith("sqlite"):
            return f"{self.DB_DRIVER}:///{self.DB_NAME}"
        return (
            f"{self.DB_DRIVER}://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4"
        )


settings = Settings()
