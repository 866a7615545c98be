"""
tests/helpers.py -- Constants and small helpers shared by the test modules.

  - TEST_SECRET / TEST_ISSUER: the key material every test app is built on
  - START: fixed epoch the FakeClock starts from
  - USERS / check_credentials(): the credential store behind api_client
  - sign_payload(): signs an arbitrary payload with the test key, for tokens
    the issuer would never produce (wrong issuer, missing claims, ...)
  - bearer() / signin(): request helpers for the HTTP tests

Nothing here imports the service packages, so conftest can put the signing
key in the environment before get_settings() is first called.
"""

from __future__ import annotations

from typing import Optional

from fastapi.testclient import TestClient
from jose import jws

TEST_SECRET = "test-signing-secret-0123456789abcdef"
TEST_ISSUER = "JwtAuthDemo"

START = 1_700_000_000.0

# username -> (password, roles)
USERS = {
    "will": ("secret", set()),
    "alice": ("secret", {"admin"}),
    "bob": ("secret", {"user"}),
}


class FakeClock:
    """Callable clock returning a settable epoch time."""

    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def check_credentials(username: str, password: str) -> Optional[set[str]]:
    entry = USERS.get(username)
    if entry is None or entry[0] != password:
        return None
    return set(entry[1])


def sign_payload(payload: dict, key: str = TEST_SECRET, algorithm: str = "HS256") -> str:
    return jws.sign(payload, key, algorithm=algorithm)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def signin(client: TestClient, username: str, password: str = "secret") -> str:
    resp = client.post("/signin", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]
