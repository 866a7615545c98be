"""Unit tests for auth/models.py -- ClaimSet, Principal, RoleRequirement.

Covers:
- Payload flattening: arrays, numbers, booleans, nested objects, nulls
- Duplicate single-valued claims rejected; repeated roles allowed
- Principal lookups when claims are absent
"""

import pytest

from auth.models import Claim, ClaimSet, Principal, RoleRequirement


class TestClaimSet:
    def test_from_payload_flattens_role_array(self):
        claims = ClaimSet.from_payload({"sub": "will", "role": ["admin", "user"]})
        assert claims.get("sub") == "will"
        assert claims.get_all("role") == ["admin", "user"]
        assert len(claims) == 3

    def test_from_payload_renders_values_as_strings(self):
        claims = ClaimSet.from_payload({"exp": 1700007200, "ratio": 1.5, "flag": True, "whole": 3.0})
        assert claims.get("exp") == "1700007200"
        assert claims.get("ratio") == "1.5"
        assert claims.get("flag") == "true"
        assert claims.get("whole") == "3"

    def test_from_payload_nested_object_becomes_json(self):
        claims = ClaimSet.from_payload({"address": {"b": 2, "a": 1}})
        assert claims.get("address") == '{"a":1,"b":2}'

    def test_from_payload_drops_nulls(self):
        claims = ClaimSet.from_payload({"sub": "will", "email": None})
        assert claims.get("email") is None
        assert len(claims) == 1

    def test_duplicate_subject_rejected(self):
        with pytest.raises(ValueError):
            ClaimSet((Claim("sub", "will"), Claim("sub", "mallory")))

    def test_duplicate_subject_from_payload_array_rejected(self):
        with pytest.raises(ValueError):
            ClaimSet.from_payload({"sub": ["will", "mallory"]})

    def test_repeated_role_allowed(self):
        claims = ClaimSet((Claim("role", "a"), Claim("role", "b")))
        assert claims.get_all("role") == ["a", "b"]

    def test_iteration_preserves_order(self):
        items = (Claim("sub", "will"), Claim("role", "x"), Claim("jti", "1"))
        assert list(ClaimSet(items)) == list(items)


class TestPrincipal:
    def test_lookups(self):
        principal = Principal(ClaimSet.from_payload({"sub": "will", "jti": "abc", "role": ["admin"]}))
        assert principal.name == "will"
        assert principal.token_id == "abc"
        assert principal.is_in_role("admin")
        assert not principal.is_in_role("user")

    def test_absent_claims_are_none(self):
        principal = Principal(ClaimSet())
        assert principal.name is None
        assert principal.token_id is None
        assert principal.roles == frozenset()


class TestRoleRequirement:
    def test_accepts_any_iterable(self):
        assert RoleRequirement(["admin", "admin", "user"]).roles == frozenset({"admin", "user"})

    def test_any_of_equals_constructor(self):
        assert RoleRequirement.any_of("admin") == RoleRequirement(frozenset({"admin"}))

    def test_default_is_empty(self):
        assert RoleRequirement().roles == frozenset()
