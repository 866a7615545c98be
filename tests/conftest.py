"""
tests/conftest.py -- Shared test fixtures for the JWT auth service tests.

This module provides:
  - clock: a FakeClock injected into TokenIssuer/TokenValidator so expiry
    and not-before behaviour is tested without sleeping
  - material / issuer / validator: unit-level token services on one key
  - api_client: TestClient over create_app() with a fixed credential checker

Constants and request helpers live in tests/helpers.py.

The signing key and rate limit must be in the environment before any app
module import, because get_settings() is cached on first call and the
sign-in rate limit is read from it per request.
"""

from __future__ import annotations

import os
from collections.abc import Generator

from helpers import TEST_ISSUER, TEST_SECRET, FakeClock, check_credentials

# CRITICAL: Set the signing key before any auth/core/api import so
# get_settings() validates instead of raising.
os.environ.setdefault("JWT_SIGN_KEY", TEST_SECRET)
os.environ.setdefault("JWT_ISSUER", TEST_ISSUER)
os.environ.setdefault("SIGNIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from auth.keys import KeyMaterial
from auth.tokens import TokenIssuer, TokenValidator
from core.config import Settings


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def material() -> KeyMaterial:
    return KeyMaterial.from_secret(TEST_SECRET, TEST_ISSUER, expire_seconds=7200, clock_skew_seconds=5)


@pytest.fixture
def issuer(material: KeyMaterial, clock: FakeClock) -> TokenIssuer:
    return TokenIssuer(material, clock=clock)


@pytest.fixture
def validator(material: KeyMaterial, clock: FakeClock) -> TokenValidator:
    return TokenValidator(material, clock=clock)


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient over a fully assembled app.

    Uses explicit Settings rather than get_settings() so tests are not
    affected by a developer's .env file.
    """
    settings = Settings(
        jwt_sign_key=TEST_SECRET,
        jwt_issuer=TEST_ISSUER,
        jwt_expire_seconds=7200,
        _env_file=None,
    )
    app = create_app(settings=settings, credential_checker=check_credentials)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client
