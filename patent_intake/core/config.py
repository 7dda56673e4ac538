from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BYTES_PER_MB = 1024 * 1024


class Settings(BaseSettings):
    PROJECT_NAME: str = "Questionario Brevetto"
    VERSION: str = "1.0.0"

    # --- Environment & Debug ---
    ENVIRONMENT: str = "local"
    DEBUG: bool = False  # Default to False for security
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # --- Server ---
    PORT: int = 3000
    STATIC_DIR: str = "public"

    # --- Mail transport ---
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_SECURE: bool = False
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None

    # --- Mail envelope ---
    RECIPIENT_EMAIL: Optional[str] = None
    MAIL_FROM: Optional[str] = None

    # --- Uploads ---
    MAX_TOTAL_UPLOAD_MB: float = 15
    MAX_ATTACHMENTS: int = 20

    # --- Rate Limiting / Proxy ---
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_MAX_REQUESTS: int = 60
    TRUSTED_PROXIES: List[str] = Field(
        default_factory=lambda: ["127.0.0.1", "10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"],
        description="CIDR ranges of trusted reverse proxies for X-Forwarded-For",
    )

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator("SMTP_HOST", "SMTP_USER", "SMTP_PASS", "RECIPIENT_EMAIL", "MAIL_FROM", mode="before")
    @classmethod
    def blank_as_missing(cls, v: Optional[str]) -> Optional[str]:
        # An exported-but-empty variable counts as unset
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("MAX_TOTAL_UPLOAD_MB", mode="after")
    @classmethod
    def validate_upload_ceiling(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("MAX_TOTAL_UPLOAD_MB must be a positive number")
        return v

    @property
    def max_total_bytes(self) -> int:
        return int(self.MAX_TOTAL_UPLOAD_MB * BYTES_PER_MB)

    @property
    def max_total_label(self) -> str:
        """Upload ceiling as shown to users (``15`` rather than ``15.0``)."""
        return f"{self.MAX_TOTAL_UPLOAD_MB:g}"


settings = Settings()
