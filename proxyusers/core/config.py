"""Application configuration loaded from environment variables."""

import hashlib
from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "sqlite://",
    "sqlite+pysqlite://",
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
)


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False

    # Document store for proxy user accounts
    DATABASE_URL: str = "sqlite:///./proxyusers.db"

    # PBKDF2 parameters. Changing any of these invalidates every stored hash.
    PASSWORD_HASH_ITERATIONS: int = 10000
    PASSWORD_HASH_KEY_LENGTH: int = 64
    PASSWORD_HASH_DIGEST: str = "sha1"
    SALT_BYTES: int = 16

    # Creation rejects passwords of this length or shorter.
    PASSWORD_MIN_LENGTH: int = 8
    # Saves only re-hash passwords longer than this. Intentionally not the same
    # value as PASSWORD_MIN_LENGTH; see DESIGN.md before changing either.
    REHASH_MIN_LENGTH: int = 6

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.strip().startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a SQLite or PostgreSQL URL (e.g. sqlite:/// or postgresql://)"
            )
        return v.strip()

    @field_validator("PASSWORD_HASH_ITERATIONS")
    @classmethod
    def validate_iterations(cls, v: int) -> int:
        if v < 1000 or v > 10_000_000:
            raise ValueError(
                "PASSWORD_HASH_ITERATIONS must be between 1000 and 10000000"
            )
        return v

    @field_validator("PASSWORD_HASH_KEY_LENGTH")
    @classmethod
    def validate_key_length(cls, v: int) -> int:
        if v < 16 or v > 512:
            raise ValueError("PASSWORD_HASH_KEY_LENGTH must be between 16 and 512 bytes")
        return v

    @field_validator("PASSWORD_HASH_DIGEST")
    @classmethod
    def validate_digest(cls, v: str) -> str:
        name = v.strip().lower()
        if name not in hashlib.algorithms_available:
            raise ValueError(f"PASSWORD_HASH_DIGEST '{v}' is not a hashlib algorithm")
        return name

    @field_validator("SALT_BYTES")
    @classmethod
    def validate_salt_bytes(cls, v: int) -> int:
        if v < 8 or v > 64:
            raise ValueError("SALT_BYTES must be between 8 and 64")
        return v

    @field_validator("PASSWORD_MIN_LENGTH", "REHASH_MIN_LENGTH")
    @classmethod
    def validate_length_threshold(cls, v: int) -> int:
        if v < 0 or v > 128:
            raise ValueError("password length thresholds must be between 0 and 128")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
