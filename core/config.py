"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Authgate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. Dev/test mode generates a JWT secret with a warning;
      production mode refuses to start without one.

Security notes:
  JWT_SECRET shorter than 32 chars is rejected outright. HS256 signing relies
  on key entropy -- a short key weakens every issued token.

  BCRYPT_ROUNDS is bounded to the range bcrypt itself accepts (4-31). The
  production default of 10 is the floor for interactive logins.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import re
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("authgate.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'authgate.db'}"

# "7d", "12h", "30m", "45s", "-1h", or a bare number of seconds.
_DURATION_RE = re.compile(r"^(-?\d+)\s*([smhdw]?)$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}


def parse_duration(value: str) -> int:
    """Convert a duration string such as "7d" or "-1h" into seconds.

    Negative durations are allowed so tests can mint already-expired tokens.

    Raises:
        ValueError: If the string is not a recognised duration.
    """
    match = _DURATION_RE.match(value.strip().lower())
    if match is None:
        raise ValueError(f"Invalid duration: {value!r} (expected e.g. '7d', '12h', '30m', '3600')")
    amount, unit = match.groups()
    return int(amount) * _UNIT_SECONDS[unit]


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults except the secret, whose absence is handled by
    validate_jwt_secret() so Settings() can be instantiated in test and dev
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    environment: str = "production"
    debug: bool = False
    host: str = "0.0.0.0"  # nosec B104 -- container default, override with HOST
    port: int = 3000
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_secret: str = ""
    jwt_expires_in: str = "7d"
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("jwt_expires_in")
    @classmethod
    def validate_jwt_expires_in(cls, value: str) -> str:
        parse_duration(value)
        return value

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Enforce the JWT_SECRET policy.

        Dev/test mode (DEBUG=true or ENVIRONMENT=development/test):
            auto-generate a random secret with a warning. Tokens will not
            survive a restart.

        Production mode: refuse to start if JWT_SECRET is missing.

        Both modes: reject secrets shorter than 32 characters.
        """
        if not self.jwt_secret:
            if self.debug or self.environment in ("development", "test"):
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("Using auto-generated JWT_SECRET. Issued tokens will not survive a restart.")
            else:
                raise ValueError(
                    "JWT_SECRET is required in production mode. "
                    "Set JWT_SECRET in your environment or .env file. "
                    "To run in development mode, set ENVIRONMENT=development."
                )
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        return self

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def token_ttl_seconds(self) -> int:
        return parse_duration(self.jwt_expires_in)

    @property
    def is_development(self) -> bool:
        """True when internal error detail may be included in responses."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
