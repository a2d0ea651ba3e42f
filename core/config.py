"""
core/config.py -- Jobly settings, read from the environment and .env.

Every environment variable the service understands is a field on Settings;
other modules call get_settings() rather than reading os.environ.

  get_settings() is wrapped in lru_cache, so Settings is built once per
  process. Tests set variables before the first call (see tests/conftest.py).

  Env var names are the upper-cased field names: SECRET_KEY, DATABASE_URL,
  BCRYPT_WORK_FACTOR, AUTH_RATE_LIMIT, CORS_ORIGINS, DEBUG.

  The after-validator resolves SECRET_KEY: generated when DEBUG is on,
  mandatory otherwise, and never shorter than 32 characters since it is the
  HS256 signing key for every token.

Layer rule: core/ is the kernel. No imports from api/, auth/ or board/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("jobly.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'jobly.db'}"


class Settings(BaseSettings):
    """Runtime configuration for the API, the store and the CLI."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # "" means unset; validate_settings() replaces or rejects it.
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # bcrypt cost factor. Tests lower this through BCRYPT_WORK_FACTOR=4.
    bcrypt_work_factor: int = 12
    auth_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Resolve SECRET_KEY and range-check the bcrypt cost.

        With DEBUG on, a missing key is replaced by a random one, so tokens
        stop verifying after a restart. Without DEBUG, a missing key is fatal.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("SECRET_KEY not set; generated a temporary key (DEBUG mode).")
            else:
                raise ValueError(
                    "SECRET_KEY is not set. Export it (or add it to .env), "
                    "or set DEBUG=true to use a throwaway key."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if not 4 <= self.bcrypt_work_factor <= 31:
            raise ValueError("BCRYPT_WORK_FACTOR must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings, building it on first use.

    get_settings.cache_clear() forces a re-read of the environment.
    """
    return Settings()
