# app/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()

VALID_ENVS = ("development", "staging", "production", "test")


def _default_log_level(env: str) -> str:
    return {
        "production": "WARNING",
        "development": "DEBUG",
        "test": "ERROR",
    }.get(env, "INFO")


def _csv(value: str):
    return [v.strip() for v in value.split(",") if v.strip()]


class Settings:
    def __init__(self):
        env = os.getenv("ENV", "development").lower()
        if env not in VALID_ENVS:
            env = "development"
        self.ENV = env

        # Database
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bookmyseva.db")

        # JWT
        self.SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
        self.JWT_ALGORITHM = "HS256"
        self.JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))
        self.JWT_ISSUER = "bookmyseva"
        self.JWT_AUDIENCE = "bookmyseva-users"

        # CORS
        self.CORS_ORIGINS = _csv(os.getenv("CORS_ORIGINS", "*"))

        # Logging
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", _default_log_level(env)).upper()

        # Chat
        self.BOT_REPLY_DELAY_SECONDS = float(os.getenv("BOT_REPLY_DELAY_SECONDS", "1.0"))
        self.SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "86400"))
        self.SESSION_SWEEP_INTERVAL_SECONDS = int(os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", "300"))
        self.INTENT_MATCH_POLICY = os.getenv("INTENT_MATCH_POLICY", "overlap").lower()
        self.INTENT_MATCH_THRESHOLD = float(os.getenv("INTENT_MATCH_THRESHOLD", "0.3"))
        self.FALLBACK_REPLY = os.getenv(
            "FALLBACK_REPLY",
            "I'm not sure I understand. Would you like to speak to a human agent?",
        )

        # Rate limiting
        self.LOGIN_RATE_LIMIT = os.getenv("LOGIN_RATE_LIMIT", "20 per 15 minutes")

        # R2 / S3 compatible storage
        self.R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID", "")
        self.R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID", "")
        self.R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY", "")
        self.R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "")
        self.R2_PUBLIC_DOMAIN = os.getenv("R2_PUBLIC_DOMAIN", "")
        self.MAX_UPLOAD_SIZE_BYTES = int(os.getenv("MAX_UPLOAD_SIZE_BYTES", str(10 * 1024 * 1024)))
        self.ALLOWED_UPLOAD_TYPES = _csv(
            os.getenv(
                "ALLOWED_UPLOAD_TYPES",
                "image/jpeg,image/png,image/webp,image/gif,application/pdf",
            )
        )

    @property
    def R2_ENDPOINT(self) -> str:
        if not self.R2_ACCOUNT_ID:
            return ""
        return f"https://{self.R2_ACCOUNT_ID}.r2.cloudflarestorage.com"

    def is_production(self) -> bool:
        return self.ENV == "production"


settings = Settings()
