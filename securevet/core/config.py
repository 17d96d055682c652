# securevet/core/config.py
from __future__ import annotations

import warnings
from typing import Dict, List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Development-only defaults. Never deploy with these.
DEV_JWT_SECRET = "dev-jwt-secret-change-me"
DEV_ENCRYPTION_KEY = "ZGV2LXZldGNsaW5pYy1lbmNyeXB0aW9uLWtleS0zMmI="


class Settings(BaseSettings):
    # Firebase Admin service account (JSON file path)
    FIREBASE_CREDENTIALS: str = "securevet/core/firebase_key.json"

    # "local": bcrypt credentials + signed session tokens issued by this API
    # "firebase": Firebase Authentication ID tokens
    AUTH_PROVIDER: Literal["local", "firebase"] = "local"

    JWT_SECRET: str = DEV_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_HOURS: int = 2

    # Field encryption for medical notes (urlsafe base64, 32 bytes)
    ENCRYPTION_KEY: str = DEV_ENCRYPTION_KEY
    ENCRYPTION_KEY_ID: str = "k1"
    # Old keys kept for decryption only, e.g. {"k0": "<base64 key>"}
    ENCRYPTION_RETIRED_KEYS: Dict[str, str] = {}

    CLINIC_TIMEZONE: str = "UTC"
    CORS_ORIGINS: List[str] = ["http://localhost:5173"]
    LOG_LEVEL: str = "INFO"
    DEBUG_EVENTS: bool = False

    # Request throttling per client address ("limits" notation)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100 per 15 minutes"
    AUTH_RATE_LIMIT: str = "10 per minute"
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    AUDIT_LOG_LIMIT: int = 50
    TOTP_ISSUER: str = "SecureVet"

    # Outgoing email (skipped when SMTP_HOST is empty)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    EMAIL_FROM: str = "SecureVet <noreply@securevet.app>"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()

if settings.JWT_SECRET == DEV_JWT_SECRET:
    warnings.warn(
        "JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
if settings.ENCRYPTION_KEY == DEV_ENCRYPTION_KEY:
    warnings.warn(
        "ENCRYPTION_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
