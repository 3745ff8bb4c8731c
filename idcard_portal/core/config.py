from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """App settings loaded from environment variables (.env)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Railway Employee ID Card Portal"
    ENV: str = "dev"

    # SECURITY
    SECRET_KEY: str = "CHANGE_ME"
    COOKIE_SECURE: bool = False   # set True behind HTTPS
    COOKIE_SAMESITE: str = "lax"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 12  # 12h

    # CORS
    CORS_ALLOW_ORIGINS: str = "*"  # "*" or "https://a.com,https://b.com"
    CORS_ALLOW_CREDENTIALS: bool = False

    # LOCAL RECORD STORE
    STORE_BACKEND: str = "sql"  # sql | redis | memory
    DATABASE_URL: str = "sqlite:///./idcard_portal.db"
    REDIS_URL: str = "redis://127.0.0.1:6379/0"

    # MOCK SUBMIT SERVICE
    SUBMIT_DELAY_MS: int = 300
    SUBMIT_FAILURE_RATE: float = 0.0  # 0..1, synthetic failures for the retry path

    # PORTAL DEFAULTS
    DEFAULT_EMPLOYEE_NO: str = "EMP001"
    DEFAULT_LANGUAGE: str = "en"

    # MOCK AUTH
    PASSWORD_MIN_LENGTH: int = 8
    OTP_LENGTH: int = 6
    OTP_RESEND_SECONDS: int = 60

    # UPLOADS (metadata only, files never leave the browser)
    MAX_UPLOAD_MB: int = 5

    def cors_origins(self) -> list[str]:
        s = (self.CORS_ALLOW_ORIGINS or "").strip()
        if not s or s == "*":
            return ["*"]
        return [x.strip() for x in s.split(",") if x.strip()]

    def store_backend(self) -> str:
        b = (self.STORE_BACKEND or "").strip().lower()
        return b if b in ("sql", "redis", "memory") else "sql"


settings = Settings()
