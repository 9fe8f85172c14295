"""
Application configuration using Pydantic Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import json
from pydantic import field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """

    # Application
    APP_NAME: str = "Online Case Filing System"
    COURT_NAME: str = "Gauhati High Court"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Database
    DATABASE_URL: str

    # JWT Authentication
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    SESSION_COOKIE_NAME: str = "access_token"
    VERIFICATION_TOKEN_EXPIRE_HOURS: int = 24

    # Admin onboarding (sha256 hex of the shared security code)
    ADMIN_SECURITY_CODE_HASH: str = ""
    BOOTSTRAP_ADMIN_EMAIL: str = ""
    BOOTSTRAP_ADMIN_PASSWORD: str = ""
    BOOTSTRAP_ADMIN_NAME: str = "Administrator"

    # Payment gateway
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    PAYMENT_CURRENCY: str = "INR"

    # Filing fees (major currency units)
    FILING_FEE_HIGH: int = 1000
    FILING_FEE_STANDARD: int = 500

    # Blob storage
    STORAGE_BACKEND: str = "local"  # local | s3
    UPLOAD_DIR: str = "public/uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_SIZE: int = 52428800  # 50MB

    # AWS Configuration (only needed for STORAGE_BACKEND=s3)
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "ap-south-1"
    S3_BUCKET_NAME: str = "courtfile-evidence"

    # Email delivery
    EMAIL_PROVIDER: str = "dev"  # dev | brevo
    BREVO_API_KEY: str = ""
    BREVO_API_URL: str = "https://api.brevo.com/v3/smtp/email"
    EMAIL_SENDER: str = "noreply@casefiling.local"
    EMAIL_SENDER_NAME: str = "Online Case Filing System"

    # CORS
    CORS_ORIGINS: str = '["http://localhost:3000"]'
    CORS_ORIGIN_REGEX: str | None = None

    @field_validator("STORAGE_BACKEND", "EMAIL_PROVIDER", mode="before")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("ADMIN_SECURITY_CODE_HASH", mode="before")
    @classmethod
    def normalize_hash(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from JSON string"""
        try:
            return json.loads(self.CORS_ORIGINS)
        except (json.JSONDecodeError, TypeError):
            return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
