"""
Environment configuration for the student onboarding service.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional, Set, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


def _split_list(v: str) -> List[str]:
    """Parse a JSON list or a comma separated string."""
    if v.startswith('[') and v.endswith(']'):
        try:
            return json.loads(v)
        except json.JSONDecodeError:
            pass
    return [item.strip() for item in v.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    @staticmethod
    def get_secret_key_default() -> str:
        """Generate a default secret key if not provided"""
        import secrets
        import string
        alphabet = string.ascii_letters + string.digits
        return ''.join(secrets.choice(alphabet) for _ in range(32))

    # Application configuration
    APP_NAME: str = Field(default="Student Onboarding Service", alias="PROJECT_NAME")
    API_VERSION: str = Field(default="v1", alias="PROJECT_VERSION")
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(default=["*"], alias="BACKEND_CORS_ORIGINS")

    # Database configuration
    DATABASE_URL: str = "sqlite:///./onboarding.db"
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10

    # Security configuration
    JWT_SECRET_KEY: str = Field(default_factory=lambda: Settings.get_secret_key_default())
    JWT_ALGORITHM: str = "HS256"

    # File storage
    UPLOAD_DIR: str = Field(default="uploads", alias="UPLOAD_DIR")
    MAX_UPLOAD_SIZE: int = Field(default=10485760, alias="MAX_FILE_SIZE")
    ALLOWED_EXTENSIONS: Annotated[Set[str], NoDecode] = Field(
        default={"jpg", "jpeg", "png", "pdf", "webp"},
        alias="ALLOWED_FILE_EXTENSIONS"
    )

    # Document classifier (Gemini)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODELS: Annotated[List[str], NoDecode] = Field(default=["gemini-1.5-flash"])
    CLASSIFIER_TIMEOUT_SECONDS: float = 30.0
    DOCUMENT_CONFIDENCE_THRESHOLD: float = 70.0

    # Payment gateway
    CURRENCY: str = Field(default="INR", alias="CURRENCY")
    CURRENCY_MINOR_UNITS: int = 100
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_WEBHOOK_SECRET: str = ""
    PAYMENT_GATEWAY_TIMEOUT_SECONDS: float = 30.0
    PAYMENT_PURPOSE: str = "Tuition Fee Payment"

    # Business logic
    DEFAULT_TOTAL_FEE: float = 50000.0
    PROGRESS_MODULE_WEIGHTS: Dict[str, float] = Field(default_factory=dict)

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"
    LOG_FILE: Optional[str] = None
    ENABLE_STRUCTURED_LOGGING: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        populate_by_name=True,
        extra="ignore",
    )

    # Validators
    @field_validator('CORS_ORIGINS', 'GEMINI_MODELS', mode='before')
    @classmethod
    def parse_string_list(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse list settings from a JSON or comma separated string"""
        if isinstance(v, str):
            return _split_list(v)
        return v

    @field_validator('ALLOWED_EXTENSIONS', mode='before')
    @classmethod
    def parse_allowed_extensions(cls, v: Union[str, Set[str], List[str]]) -> Set[str]:
        """Parse ALLOWED_EXTENSIONS from string to set"""
        if isinstance(v, str):
            return {ext.lstrip('.').lower() for ext in _split_list(v)}
        return {ext.lstrip('.').lower() for ext in v}

    @field_validator('PROGRESS_MODULE_WEIGHTS', mode='before')
    @classmethod
    def parse_module_weights(cls, v: Union[str, Dict[str, Any]]) -> Dict[str, float]:
        """Parse PROGRESS_MODULE_WEIGHTS from a JSON object string"""
        if isinstance(v, str):
            v = json.loads(v) if v.strip() else {}
        return {key: float(weight) for key, weight in v.items()}

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(valid_levels)}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
