"""
api/routes/v1/token.py -- Sign-in and token identity REST endpoints.

Routes:
  POST /signin        -- check credentials; return a signed bearer token
  GET  /claims        -- every claim of the caller's token (requires auth)
  GET  /username      -- the caller's subject (requires auth)
  GET  /jwtid         -- the caller's token id (requires auth)
  GET  /admin/claims  -- as /claims, admin role only

Security:
  [H2] POST /signin is rate-limited per IP (SIGNIN_RATE_LIMIT, default 10/minute).
  [M5] Cache-Control: no-store on sign-in responses.
  Wrong username and wrong password return the same 400 "bad_credentials".
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import ClaimResponse, SignInRequest, TokenResponse
from auth.credentials import CredentialChecker
from auth.dependencies import get_principal, require_admin
from auth.errors import InvalidSubject
from auth.models import Principal
from auth.tokens import TokenIssuer
from core.config import get_settings

# Auth policy:
# - POST /signin:        public -- sign-in must be unauthenticated
# - GET  /claims:        requires auth (get_principal)
# - GET  /username:      requires auth (get_principal)
# - GET  /jwtid:         requires auth (get_principal)
# - GET  /admin/claims:  requires role "admin" (require_admin)
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(lambda: get_settings().signin_rate_limit)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/signin", response_model=TokenResponse)
def signin(request: Request, body: SignInRequest) -> JSONResponse:
    """Check credentials with the configured checker and issue a token.

    The checker returns the user's roles, which become `role` claims.
    """
    checker: CredentialChecker = request.app.state.credential_checker
    issuer: TokenIssuer = request.app.state.issuer

    roles = checker(body.username, body.password)
    if roles is None:
        resp = JSONResponse(
            status_code=400,
            content={"error": {"code": "bad_credentials", "message": "Invalid username or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"  # [M5]
        return resp

    try:
        token = issuer.issue(body.username, roles)
    except InvalidSubject:
        raise HTTPException(
            status_code=400,
            detail={"code": "invalid_subject", "message": "Username must not be empty."},
        )

    resp = JSONResponse(
        status_code=200,
        content=TokenResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=issuer.expire_seconds,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/claims", response_model=list[ClaimResponse])
async def get_claims(principal: Principal = Depends(get_principal)) -> list[ClaimResponse]:
    """Return every claim carried by the caller's token, in token order."""
    return [ClaimResponse.from_claim(c) for c in principal.claims]


@router.get("/username", response_model=str)
async def get_username(principal: Principal = Depends(get_principal)) -> str:
    """Return the caller's subject (username)."""
    return principal.name or ""


@router.get("/jwtid", response_model=str)
async def get_token_id(principal: Principal = Depends(get_principal)) -> str:
    """Return the caller's token id.

    Tokens from this service always carry jti; a 404 here means the token was
    signed with the shared key by something else that omitted it.
    """
    if principal.token_id is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Token has no jti claim."},
        )
    return principal.token_id


@router.get("/admin/claims", response_model=list[ClaimResponse])
async def get_admin_claims(principal: Principal = Depends(require_admin)) -> list[ClaimResponse]:
    """Return the caller's claims. Admin role only."""
    return [ClaimResponse.from_claim(c) for c in principal.claims]
