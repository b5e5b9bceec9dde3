"""
Configuration settings for the Scooter Support Chat backend.

Loads environment variables from .env file and provides typed configuration.
"""

from typing import Dict, List
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:8080"],
        description="Allowed CORS origins",
    )

    # Security Configuration
    SECRET_KEY: str = Field(
        default="5f1c0b7e2a9d4e63b8a17c2f90d46e1ab3c58d7f2e4a6b9c0d1e2f3a4b5c6d7e",
        description="Secret key used to verify auth provider tokens",
    )
    ALGORITHM: str = Field(default="HS256", description="JWT signing algorithm")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=60, description="Access token expiration time in minutes"
    )

    # Database Configuration
    DATABASE_URL: str = Field(
        default="sqlite:///./data/chat.db", description="Database URL"
    )
    DATABASE_ECHO: bool = Field(
        default=False, description="Echo SQL queries (for debugging)"
    )

    # Chat Configuration
    DEFAULT_CONVERSATION_TITLE: str = Field(
        default="Support Chat", description="Title of conversations created on chat open"
    )
    AUTO_REPLY_DELAY_SECONDS: float = Field(
        default=1.0, description="Delay before an automated reply is persisted"
    )
    AUTO_REPLY_AUTHOR_ID: str = Field(
        default="system", description="Author id stored on automated replies"
    )
    AUTO_REPLY_TAG: str = Field(
        default="[Auto-Reply]", description="Prefix marking automated replies"
    )
    TYPING_TIMEOUT_SECONDS: float = Field(
        default=3.0, description="Inactivity period after which typing is cleared"
    )
    CONVERSATION_PREVIEW_LENGTH: int = Field(
        default=40, description="Length of the first-message preview in listings"
    )

    # File Upload Configuration
    MAX_UPLOAD_SIZE: int = Field(
        default=25 * 1024 * 1024,  # 25 MiB
        description="Maximum file upload size in bytes",
    )
    ALLOWED_FILE_TYPES: Dict[str, str] = Field(
        default={
            "application/pdf": "pdf",
            "image/jpeg": "jpg",
            "image/jpg": "jpg",
            "image/png": "png",
            "image/gif": "gif",
            "video/mp4": "mp4",
            "video/avi": "avi",
        },
        description="Allowed MIME types mapped to their file extension",
    )

    # Blob Storage Configuration
    STORAGE_BACKEND: str = Field(
        default="local", description="Blob storage backend: 'local' or 's3'"
    )
    STORAGE_BUCKET: str = Field(
        default="chat-files", description="Bucket holding chat attachments"
    )
    UPLOAD_DIR: str = Field(
        default="./data/uploads", description="Directory for locally stored attachments"
    )
    PUBLIC_BASE_URL: str = Field(
        default="http://localhost:8000/files",
        description="Base URL under which local attachments are served",
    )
    AWS_ACCESS_KEY: str | None = Field(default=None, description="AWS access key ID")
    AWS_SECRET_KEY: str | None = Field(default=None, description="AWS secret access key")
    AWS_REGION: str = Field(default="eu-central-1", description="AWS region name")

    # Rate Limits
    MESSAGE_RATE_LIMIT: str = Field(default="30/minute", description="Send limit per client")
    UPLOAD_RATE_LIMIT: str = Field(default="10/minute", description="Upload limit per client")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
