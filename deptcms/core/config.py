"""
Application settings
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Departmental CMS"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DB_USERNAME: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "deptcms"
    DB_URL: Optional[str] = None  # full URL, overrides the DB_* parts (e.g. sqlite+aiosqlite:///./cms.db)

    # JWT
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Accept ?identity= / ?admin= query parameters as the caller's email
    ALLOW_IDENTITY_QUERY: bool = True

    # CORS
    CORS_ORIGINS: list = ["*"]

    # Media uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024

    # Department assigned to new users when none is given
    DEFAULT_DEPARTMENT: str = "CSE"

    @property
    def DATABASE_URL(self) -> str:
        """Database connection URL"""
        if self.DB_URL:
            return self.DB_URL
        return f"postgresql+asyncpg://{self.DB_USERNAME}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
