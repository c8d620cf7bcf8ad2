"""
Environment configuration for the institute back-office.

Values come from the process environment and an optional .env file.
Several keys accept the names used by existing deployments
(PROJECT_NAME, BACKEND_CORS_ORIGINS, MAX_FILE_SIZE, SMTP_USERNAME,
FROM_EMAIL) through field aliases.
"""

import json
import secrets
import string
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Set, Union

from dotenv import load_dotenv
from pydantic import Field, validator
from pydantic_settings import BaseSettings

load_dotenv(dotenv_path=Path('.') / '.env')

DEFAULT_UPLOAD_EXTENSIONS = {
    "pdf", "doc", "docx", "ppt", "pptx", "xls", "xlsx", "txt", "zip",
    "jpg", "jpeg", "png", "mp4",
}


def _random_secret(length: int = 32) -> str:
    """Per-process signing key for deployments that do not set one"""
    alphabet = string.ascii_letters + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def _split_list(value: str) -> List[str]:
    if value.startswith('[') and value.endswith(']'):
        try:
            return list(json.loads(value))
        except json.JSONDecodeError:
            pass
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Application
    APP_NAME: str = Field(default="Institute Back-Office", alias="PROJECT_NAME")
    API_VERSION: str = Field(default="v1", alias="PROJECT_VERSION")
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = Field(default=["*"], alias="BACKEND_CORS_ORIGINS")

    # Database: DATABASE_URL wins over the DB_* components
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "institute"
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10
    DB_ECHO: bool = False

    # Bearer tokens
    JWT_SECRET_KEY: str = Field(default_factory=_random_secret)
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_HOURS: int = 12

    # Content uploads
    UPLOAD_DIR: str = "uploads"
    UPLOAD_BASE_URL: str = "/uploads"
    MAX_UPLOAD_SIZE: int = Field(default=10485760, alias="MAX_FILE_SIZE")
    ALLOWED_EXTENSIONS: Set[str] = Field(
        default=DEFAULT_UPLOAD_EXTENSIONS, alias="ALLOWED_FILE_EXTENSIONS"
    )

    # Notification email; nothing is sent unless EMAIL_ENABLED and SMTP_HOST are set
    EMAIL_ENABLED: bool = False
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = Field(default=None, alias="SMTP_USERNAME")
    SMTP_PASSWORD: Optional[str] = None
    SMTP_TLS: bool = True
    EMAIL_FROM_NAME: str = "Institute Back-Office"
    EMAIL_FROM_ADDRESS: Optional[str] = Field(default=None, alias="FROM_EMAIL")

    # Receipt header and amounts
    CURRENCY: str = "INR"
    INSTITUTE_NAME: str = "Institute"
    INSTITUTE_ADDRESS: Optional[str] = None
    INSTITUTE_PHONE: Optional[str] = None
    INSTITUTE_EMAIL: Optional[str] = None
    INSTITUTE_WEBSITE: Optional[str] = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    LOG_FILE: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        populate_by_name = True
        extra = "ignore"

    @validator('CORS_ORIGINS', pre=True)
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str):
            return _split_list(v)
        return v

    @validator('ALLOWED_EXTENSIONS', pre=True)
    def parse_allowed_extensions(cls, v: Union[str, Set[str], List[str]]) -> Set[str]:
        """Accept "pdf,.docx" or a JSON list; stored without dots, lowercased"""
        if isinstance(v, str):
            v = _split_list(v)
        return {ext.lstrip('.').lower() for ext in v}

    @validator('LOG_LEVEL')
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    def get_database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    def is_sqlite(self) -> bool:
        return self.get_database_url().startswith("sqlite")

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
