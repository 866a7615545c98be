"""
auth/keys.py -- Key material provider: signing secret and issuer identity.

KeyMaterial is loaded once at process start and frozen. The issuer and the
validator both receive the same instance at construction and only ever read
from it, so concurrent requests share it without locking.

The signing key is never serialized and never logged: it is excluded from
repr() so an accidental log line or traceback cannot print it.

Layer rule: no imports from api/. core.config is the only import from core/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from auth.errors import KeyMaterialError

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("jwtauth.auth")

MIN_KEY_BYTES = 16
ALGORITHM = "HS256"


@dataclass(frozen=True)
class KeyMaterial:
    """Immutable signing configuration shared by TokenIssuer and TokenValidator."""

    signing_key: bytes = field(repr=False)
    issuer: str
    expire_seconds: int = 7200
    clock_skew_seconds: int = 5
    validate_audience: bool = False
    audience: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.signing_key:
            raise KeyMaterialError("Signing key is not configured.")
        if len(self.signing_key) < MIN_KEY_BYTES:
            raise KeyMaterialError(f"Signing key must be at least {MIN_KEY_BYTES} bytes.")
        if not self.issuer:
            raise KeyMaterialError("Issuer is not configured.")
        if self.expire_seconds <= 0:
            raise KeyMaterialError("Token validity window must be positive.")
        if self.clock_skew_seconds < 0:
            raise KeyMaterialError("Clock skew must not be negative.")
        if self.validate_audience and not self.audience:
            raise KeyMaterialError("Audience validation is enabled but no audience is configured.")

    @classmethod
    def from_secret(cls, secret: str, issuer: str, **options) -> "KeyMaterial":
        """Build KeyMaterial from a text secret (UTF-8 encoded)."""
        return cls(signing_key=(secret or "").encode("utf-8"), issuer=issuer, **options)

    @classmethod
    def load(cls, settings: "Settings") -> "KeyMaterial":
        """Build KeyMaterial from application settings. Raises KeyMaterialError."""
        material = cls.from_secret(
            settings.jwt_sign_key,
            settings.jwt_issuer,
            expire_seconds=settings.jwt_expire_seconds,
            clock_skew_seconds=settings.jwt_clock_skew_seconds,
            validate_audience=settings.jwt_validate_audience,
            audience=settings.jwt_audience or None,
        )
        logger.info(
            "Key material loaded (issuer=%s, expire=%ds, skew=%ds, audience_check=%s)",
            material.issuer,
            material.expire_seconds,
            material.clock_skew_seconds,
            material.validate_audience,
        )
        return material
