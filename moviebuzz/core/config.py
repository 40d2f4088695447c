# moviebuzz/core/config.py
import os
from typing import List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
DOTENV = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env")


class Settings(BaseSettings):
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    DATABASE_URL: str = "sqlite:///./moviebuzz.db"

    IDENTIFIER_KIND: Literal["email", "mobile"] = "email"
    MIN_USERNAME_LENGTH: int = 3
    MAX_USERNAME_LENGTH: int = 30
    MIN_PASSWORD_LENGTH: int = 6
    MAX_PASSWORD_LENGTH: int = 128
    MOBILE_MIN_DIGITS: int = 10
    MOBILE_MAX_DIGITS: int = 15

    OTP_LENGTH: int = 6
    OTP_EXPIRE_MINUTES: int = 10
    OTP_RESEND_COOLDOWN_SECONDS: int = 0

    SMTP_SERVER: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_TIMEOUT: float = 10.0
    MAIL_FROM_NAME: str = "MovieBuzz"

    API_PREFIX: str = "/api/auth"
    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1", "testserver"]
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=DOTENV,
        env_ignore_empty=True,
        extra="ignore"
    )

    @field_validator("SECRET_KEY")
    @classmethod
    def secret_key_strength(cls, value: str) -> str:
        if len(value.strip()) < 16:
            raise ValueError("SECRET_KEY must be at least 16 characters")
        return value

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_SERVER and self.SMTP_USER and self.SMTP_PASSWORD)


settings = Settings()
