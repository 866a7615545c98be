"""
auth/models.py -- Domain dataclasses for claims, principals, and role requirements.

Pattern: Data class (pure data container, near-zero logic). Issuer, validator
and pipeline do the work; these types only own the shape.

All types here are frozen. A Principal is built once per request from a
validated ClaimSet and handed to route handlers explicitly -- nothing mutates
it after construction and nothing stores it past the request.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

# Registered claim names, as they appear in the token payload.
SUBJECT = "sub"
JWT_ID = "jti"
ROLE = "role"
ISSUER = "iss"
AUDIENCE = "aud"
ISSUED_AT = "iat"
NOT_BEFORE = "nbf"
EXPIRES = "exp"

TIMESTAMP_CLAIMS = frozenset({ISSUED_AT, NOT_BEFORE, EXPIRES})

# At most one claim of each of these types may appear in a ClaimSet.
# `role` and `aud` may repeat.
SINGLE_VALUED_CLAIMS = frozenset({SUBJECT, JWT_ID, ISSUER}) | TIMESTAMP_CLAIMS


def _claim_value(value: Any) -> str:
    """Render a decoded JSON payload value as a claim string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float, str)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


@dataclass(frozen=True)
class Claim:
    """A single (type, value) fact asserted by a token."""

    type: str
    value: str


@dataclass(frozen=True)
class ClaimSet:
    """Ordered, immutable collection of claims from one token.

    Order carries no meaning. Registered single-valued claim types (sub, jti,
    iss, iat, nbf, exp) may appear at most once; a duplicate is a caller
    error and raises ValueError. `role` and `aud` may repeat.
    """

    claims: tuple[Claim, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for claim in self.claims:
            if claim.type in SINGLE_VALUED_CLAIMS:
                if claim.type in seen:
                    raise ValueError(f"Duplicate '{claim.type}' claim")
                seen.add(claim.type)

    def __iter__(self) -> Iterator[Claim]:
        return iter(self.claims)

    def __len__(self) -> int:
        return len(self.claims)

    def get(self, claim_type: str) -> Optional[str]:
        """Return the first value of claim_type, or None if absent."""
        for claim in self.claims:
            if claim.type == claim_type:
                return claim.value
        return None

    def get_all(self, claim_type: str) -> list[str]:
        return [c.value for c in self.claims if c.type == claim_type]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ClaimSet":
        """Flatten a decoded token payload into claims.

        A JSON array becomes one claim per element (this is how several
        `role` values travel). Null values are dropped.
        """
        claims: list[Claim] = []
        for claim_type, value in payload.items():
            values = value if isinstance(value, list) else [value]
            for item in values:
                if item is None:
                    continue
                claims.append(Claim(claim_type, _claim_value(item)))
        return cls(tuple(claims))


@dataclass(frozen=True)
class Principal:
    """The authenticated identity attached to one request."""

    claims: ClaimSet

    @property
    def name(self) -> Optional[str]:
        return self.claims.get(SUBJECT)

    @property
    def token_id(self) -> Optional[str]:
        return self.claims.get(JWT_ID)

    @property
    def roles(self) -> frozenset[str]:
        return frozenset(self.claims.get_all(ROLE))

    def is_in_role(self, role: str) -> bool:
        return role in self.roles


@dataclass(frozen=True)
class RoleRequirement:
    """Roles an endpoint accepts. Empty means any authenticated principal.

    Declared per endpoint as a plain value and checked by
    auth.pipeline.authorize(); a principal passes when it holds at least one
    of the listed roles.
    """

    roles: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        # Accept any iterable of role names, store a frozenset.
        object.__setattr__(self, "roles", frozenset(self.roles))

    @classmethod
    def any_of(cls, *roles: str) -> "RoleRequirement":
        return cls(frozenset(roles))

    def is_satisfied_by(self, principal: Principal) -> bool:
        if not self.roles:
            return True
        return not self.roles.isdisjoint(principal.roles)
