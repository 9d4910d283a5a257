import os
from pydantic_settings import BaseSettings
from typing import List, Optional

from dotenv import load_dotenv
load_dotenv()


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    PORT: int = 5000
    LOG_LEVEL: str = "INFO"

    # MongoDB
    MONGODB_URI: str = "mongodb://localhost:27017/doctor-derma-clinic"
    MONGODB_DB_NAME: Optional[str] = None  # falls back to the database in MONGODB_URI

    # SMTP
    EMAIL_HOST: str = "smtp.gmail.com"
    EMAIL_PORT: int = 587
    EMAIL_SECURE: bool = False
    EMAIL_USER: str = ""
    EMAIL_PASS: str = ""
    EMAIL_VERIFY_CONNECTION: bool = True

    # Clinic display info used in emails
    CLINIC_NAME: str = "Doctor Derma Clinic"
    CLINIC_EMAIL: str = ""
    CLINIC_PHONE: str = ""
    CLINIC_ADDRESS: str = ""
    CLINIC_TIMEZONE: str = "UTC"

    # URLs
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # CORS - empty means FRONTEND_URL only
    CORS_ORIGINS: List[str] = []

    # Rate limiting (15 minute window, 100 requests per IP)
    RATE_LIMIT_WINDOW_MS: int = 900000
    RATE_LIMIT_MAX_REQUESTS: int = 100

    # Redis - optional, shared rate limit counters across workers
    REDIS_URL: str = os.getenv("REDIS_URL", "")

    SECURITY_HEADERS_ENABLED: bool = True

    # Appointment status writes outside the transition table are rejected
    # when True and only logged when False
    STRICT_STATUS_TRANSITIONS: bool = False

    # When True, contact creation and appointment confirmation no longer fail
    # the request if the notification email cannot be sent
    EMAIL_FAILURES_BEST_EFFORT: bool = False

    @property
    def IS_PRODUCTION(self) -> bool:
        """Check if running in production"""
        return self.ENVIRONMENT == "production"

    @property
    def EMAIL_ENABLED(self) -> bool:
        """Email notifications need both SMTP credentials"""
        return bool(self.EMAIL_USER and self.EMAIL_PASS)

    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        return self.CORS_ORIGINS or [self.FRONTEND_URL]

    @property
    def RATE_LIMIT_WINDOW_SECONDS(self) -> int:
        return max(1, self.RATE_LIMIT_WINDOW_MS // 1000)

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Singleton instance
settings = Settings()
