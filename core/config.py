"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the token service happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_sign_key -> JWT_SIGN_KEY). Type coercion and validation are
      built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. A missing or short signing secret is a
      hard startup failure -- there is no runtime recovery path.

Security notes:
  [K1] JWT_SIGN_KEY shorter than 16 bytes is rejected outright. HMAC-SHA256
       relies on key entropy -- a short key makes offline brute-force of the
       secret from a single captured token practical.

  [K2] There is no auto-generated fallback key. A random key would silently
       invalidate every outstanding token on restart and would differ between
       workers behind a load balancer.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("jwtauth.config")

MIN_SIGN_KEY_BYTES = 16


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field except jwt_sign_key has a default. The model_validator
    enforces the signing-key policy at startup.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `jwt_issuer` reads from JWT_ISSUER, `debug` reads from DEBUG.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False

    # ------------------------------------------------------------------
    # Token signing
    # ------------------------------------------------------------------

    jwt_issuer: str = "JwtAuthDemo"
    # Empty string is the sentinel for "not configured". The model_validator
    # below raises, so callers never see "".
    jwt_sign_key: str = ""
    # Default 2 hours.
    jwt_expire_seconds: int = 7200
    # Applied to nbf/iat only; exp is checked strictly.
    jwt_clock_skew_seconds: int = 5

    # Single-audience deployment: audience check is off unless enabled here.
    jwt_validate_audience: bool = False
    jwt_audience: str = ""

    # ------------------------------------------------------------------
    # HTTP surface
    # ------------------------------------------------------------------

    signin_rate_limit: str = "10/minute"
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_token_settings(self) -> "Settings":
        """Enforce the signing-key policy [K1][K2] and sane token lifetimes."""
        if not self.jwt_sign_key:
            raise ValueError(
                "JWT_SIGN_KEY is required. " "Set JWT_SIGN_KEY in your environment or .env file."
            )
        if len(self.jwt_sign_key.encode("utf-8")) < MIN_SIGN_KEY_BYTES:
            raise ValueError(f"JWT_SIGN_KEY must be at least {MIN_SIGN_KEY_BYTES} bytes.")
        if not self.jwt_issuer:
            raise ValueError("JWT_ISSUER must not be empty.")
        if self.jwt_expire_seconds <= 0:
            raise ValueError("JWT_EXPIRE_SECONDS must be positive.")
        if self.jwt_clock_skew_seconds < 0:
            raise ValueError("JWT_CLOCK_SKEW_SECONDS must not be negative.")
        if self.jwt_validate_audience and not self.jwt_audience:
            raise ValueError("JWT_AUDIENCE is required when JWT_VALIDATE_AUDIENCE is enabled.")
        if self.debug:
            logger.warning("DEBUG is enabled -- sign-in accepts any credentials unless a checker is configured.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    This is the official FastAPI pattern for config (see FastAPI docs /advanced/settings/).

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
