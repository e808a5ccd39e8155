"""
Service configuration.

Values come from the process environment first, then a local .env file
(gitignored; copy .env.example), then the defaults below. Two secrets have
no default and the service refuses to start without them: the JWT signing
key and the card number encryption key.

    from bankcards.config import settings
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings for the Bank Cards service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Bank Cards API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # --- Database ---
    # SQLite for local runs; swap to a postgresql+asyncpg URL for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/bankcards.db"

    # --- Authentication ---
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Card Encryption ---
    # URL-safe base64 of a 32, 48 or 64 byte AES-SIV key.
    # Generate with: python -c "import os, base64; print(base64.urlsafe_b64encode(os.urandom(64)).decode())"
    CARD_ENCRYPTION_KEY: str

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # --- Transfers ---
    # How many times a transfer is re-evaluated after losing an optimistic-lock race
    TRANSFER_MAX_RETRIES: int = 3

    # --- Pagination ---
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


# Built once at import; modules share this instance
settings = Settings()
