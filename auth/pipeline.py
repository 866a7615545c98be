"""
auth/pipeline.py -- Request-time authentication and the role gate.

Per request:
  NoPrincipal -> Unauthenticated                       (no / ill-formed header)
  NoPrincipal -> TokenPresented -> Unauthenticated      (validator rejected it)
  NoPrincipal -> TokenPresented -> Authenticated -> Forbidden | Authorized

Every validator failure becomes Unauthenticated. The specific stage code is
logged here and carried on Unauthenticated.reason, but the HTTP layer returns
the same 401 for all of them so a client cannot probe which stage failed.

This module has no web framework imports. auth/dependencies.py adapts it to
FastAPI; main.py uses the validator directly.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from auth.errors import Forbidden, TokenError, Unauthenticated
from auth.models import Principal, RoleRequirement
from auth.tokens import TokenValidator

logger = logging.getLogger("jwtauth.auth")

BEARER_SCHEME = "bearer"


def extract_bearer_token(header_values: Sequence[str]) -> str:
    """Return the token from the Authorization header values of one request.

    Accepts exactly one header of the form "Bearer <token>" (scheme matched
    case-insensitively). Raises Unauthenticated with reason "missing_header"
    when there is no header and "invalid_header" for anything else: repeated
    headers, another scheme, no token, or more than one token.
    """
    values = [v for v in header_values if v and v.strip()]
    if not values:
        raise Unauthenticated("missing_header")
    if len(values) > 1:
        raise Unauthenticated("invalid_header")
    parts = values[0].split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        raise Unauthenticated("invalid_header")
    return parts[1]


class Authenticator:
    """Turns Authorization header values into a Principal or Unauthenticated."""

    def __init__(self, validator: TokenValidator) -> None:
        self._validator = validator

    def authenticate(self, header_values: Sequence[str]) -> Principal:
        try:
            token = extract_bearer_token(header_values)
        except Unauthenticated as e:
            logger.info("Request rejected before validation: %s", e.reason)
            raise

        try:
            claims = self._validator.validate(token)
        except TokenError as e:
            # Stage code goes to the log only [oracle protection].
            logger.info("Bearer token rejected: %s (%s)", e.code, e)
            raise Unauthenticated(e.code) from e

        return Principal(claims)


def authorize(principal: Principal, requirement: RoleRequirement) -> Principal:
    """Pass the principal through if it satisfies the requirement, else raise Forbidden.

    An empty requirement admits any authenticated principal. Otherwise one
    matching role claim is enough (OR across the required roles).
    """
    if not requirement.is_satisfied_by(principal):
        logger.info(
            "Principal %r lacks required role(s) %s",
            principal.name,
            sorted(requirement.roles),
        )
        raise Forbidden(f"One of roles {sorted(requirement.roles)} is required.")
    return principal
