"""
auth/errors.py -- Error taxonomy for token issuance, validation, and access checks.

Every error carries a stable machine-readable `code`. Validation-stage errors
(MalformedToken through NotYetValid) never reach an API client directly: the
authentication pipeline collapses them into Unauthenticated and keeps the
specific code for diagnostics only, so error responses cannot be used as a
signature or issuer oracle.

Layer rule: stdlib only.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all errors raised by the auth package."""

    code = "auth_error"


class KeyMaterialError(AuthError, ValueError):
    """Signing secret or issuer is missing or unusable. Fatal at startup."""

    code = "key_material"


class InvalidSubject(AuthError, ValueError):
    """Issuance was requested for an empty subject."""

    code = "invalid_subject"


# ---------------------------------------------------------------------------
# Validation stages, in pipeline order
# ---------------------------------------------------------------------------


class TokenError(AuthError):
    """A presented token failed one stage of validation."""

    code = "invalid_token"


class MalformedToken(TokenError):
    code = "malformed"


class InvalidSignature(TokenError):
    code = "invalid_signature"


class InvalidIssuer(TokenError):
    code = "invalid_issuer"


class InvalidAudience(TokenError):
    code = "invalid_audience"


class TokenExpired(TokenError):
    code = "expired"


class NotYetValid(TokenError):
    code = "not_yet_valid"


# ---------------------------------------------------------------------------
# Request outcomes
# ---------------------------------------------------------------------------


class Unauthenticated(AuthError):
    """No acceptable bearer token on a request that requires one.

    `reason` is the internal diagnostic code: "missing_header",
    "invalid_header", or the code of the TokenError that rejected the token.
    It is logged, never returned to the caller.
    """

    code = "unauthorized"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class Forbidden(AuthError):
    """Identity was proven but the principal lacks every required role."""

    code = "forbidden"
