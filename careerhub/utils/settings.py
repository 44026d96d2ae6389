"""
Application settings loaded from the environment (.env supported)
"""
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from careerhub.utils.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings(BaseModel):
    """Runtime configuration for the CareerHub API"""

    environment: str = "development"

    # Database
    mongo_uri: str = "mongodb://localhost:27017"
    db_name: str = "careerhub"

    # Auth
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = Field(default=60, ge=1)

    # Generative AI
    gemini_api_key: Optional[str] = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    ai_models: List[str] = Field(default_factory=lambda: ["gemini-1.5-flash", "gemini-2.0-flash"])
    ai_timeout: int = Field(default=120, ge=1)

    # Uploads and OCR
    upload_dir: str = "uploads"
    scratch_dir: str = "temp_images"
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, ge=1)
    ocr_language: str = "eng"
    ocr_dpi: int = Field(default=300, ge=72)

    # Mail and reminders
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: Optional[str] = None
    reminder_hour: int = Field(default=9, ge=0, le=23)
    enable_reminders: bool = True

    client_url: str = "*"

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            environment=os.getenv("ENVIRONMENT", defaults.environment).lower(),
            mongo_uri=os.getenv("MONGO_URI", defaults.mongo_uri),
            db_name=os.getenv("DB_NAME", defaults.db_name),
            jwt_secret=os.getenv("JWT_SECRET") or None,
            jwt_expire_minutes=int(os.getenv("JWT_EXPIRE_MINUTES", defaults.jwt_expire_minutes)),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_base_url=os.getenv("GEMINI_BASE_URL", defaults.gemini_base_url),
            ai_models=_as_list(os.getenv("AI_MODELS", "")) or defaults.ai_models,
            ai_timeout=int(os.getenv("AI_TIMEOUT", defaults.ai_timeout)),
            upload_dir=os.getenv("UPLOAD_DIR", defaults.upload_dir),
            scratch_dir=os.getenv("SCRATCH_DIR", defaults.scratch_dir),
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", defaults.max_upload_bytes)),
            ocr_language=os.getenv("OCR_LANGUAGE", defaults.ocr_language),
            ocr_dpi=int(os.getenv("OCR_DPI", defaults.ocr_dpi)),
            smtp_host=os.getenv("SMTP_HOST", defaults.smtp_host),
            smtp_port=int(os.getenv("SMTP_PORT", defaults.smtp_port)),
            smtp_user=os.getenv("SMTP_USER") or os.getenv("EMAIL_USER") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or os.getenv("EMAIL_PASS") or None,
            smtp_from=os.getenv("SMTP_FROM") or None,
            reminder_hour=int(os.getenv("REMINDER_HOUR", defaults.reminder_hour)),
            enable_reminders=_as_bool(os.getenv("ENABLE_REMINDERS", "true")),
            client_url=os.getenv("CLIENT_URL", defaults.client_url),
        )

    def validate_for_production(self) -> None:
        """Refuse to start a production server with missing secrets"""
        if self.environment != "production":
            return
        for key in ("jwt_secret", "gemini_api_key"):
            if not getattr(self, key):
                raise ConfigurationError(f"{key.upper()} is not defined", config_key=key.upper())

    @property
    def signing_key(self) -> str:
        # Development fallback so local runs work without a .env
        return self.jwt_secret or "careerhub-dev-secret"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
