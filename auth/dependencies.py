"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

One auth method: the Authorization: Bearer <token> header. There is no
cookie or API-key fallback.

get_principal() runs the authentication pipeline and raises HTTP 401 on any
failure. require() wraps it with a RoleRequirement and raises HTTP 403 when
the principal holds none of the required roles. Endpoints that are anonymous
simply do not depend on either; current_principal() returns None for them.

The 401 body and WWW-Authenticate header are identical for a missing header,
an ill-formed header, and a token the validator rejected. The distinction is
in the log only.

Layer rule: no imports from api/ or core/.
  auth/dependencies.py may import from fastapi (for Depends/HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request

from auth.errors import Forbidden, Unauthenticated
from auth.models import Principal, RoleRequirement
from auth.pipeline import Authenticator, authorize

_WWW_AUTHENTICATE = {"WWW-Authenticate": "Bearer"}


def current_principal(request: Request) -> Optional[Principal]:
    """Return the Principal attached to this request, or None for no identity.

    Safe to call from anonymous endpoints: absence of a principal is not an
    error.
    """
    return getattr(request.state, "principal", None)


def get_principal(request: Request) -> Principal:
    """Require a valid bearer token. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(principal: Principal = Depends(get_principal)): ...
    """
    authenticator: Authenticator = request.app.state.authenticator
    try:
        principal = authenticator.authenticate(request.headers.getlist("authorization"))
    except Unauthenticated:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers=_WWW_AUTHENTICATE,
        )
    request.state.principal = principal
    return principal


def require(requirement: RoleRequirement):
    """Build a dependency that admits principals satisfying `requirement`.

    Raises HTTP 401 if unauthenticated, HTTP 403 if no required role matches:
        @router.get("/admin-only")
        async def route(principal: Principal = Depends(require(RoleRequirement.any_of("admin")))): ...
    """

    def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        try:
            return authorize(principal, requirement)
        except Forbidden:
            raise HTTPException(
                status_code=403,
                detail={"code": "forbidden", "message": "Required role missing."},
            )

    return dependency


require_admin = require(RoleRequirement.any_of("admin"))
