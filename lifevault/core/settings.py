from typing import Literal

from pydantic import EmailStr
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "LifeVault"
    ENVIRONMENT: Literal["development", "production", "test"] = "development"
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = "sqlite:///./data/lifevault.db"

    # Auth Config
    ALGORITHM: str = "RS256"
    SERVER_PRIVATE_KEY: str
    SERVER_PUBLIC_KEY: str
    SETUP_TOKEN_EXPIRE_MINUTES: int = 10
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60

    # Security
    PIN_PEPPER: str
    OTP_EXPIRE_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 5

    # Storage
    STORAGE_DIR: str = "storage"
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    SIGNED_URL_EXPIRE_SECONDS: int = 60
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024

    # Traffic
    RATE_LIMIT: str = "100 per 15 minutes"
    RATE_LIMIT_ENABLED: bool = True
    REQUEST_TIMEOUT_SECONDS: float = 10.0
    FRONTEND_URL: str = "http://localhost:5173"

    # Bootstrap administrator (optional)
    ADMIN_EMAIL: EmailStr | None = None
    ADMIN_PIN: str | None = None

    model_config = SettingsConfigDict(env_file=".env")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"
