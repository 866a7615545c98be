"""
auth/credentials.py -- The credential-check seam used by sign-in.

Checking a username/password pair is not this service's job: password
storage and user lookup live in whatever directory the deployment uses. The
sign-in route only needs a callable that answers "is this pair valid, and
which roles does the user hold?".

A CredentialChecker returns the user's role set on success and None on
failure. It must not raise for a bad password.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Optional

logger = logging.getLogger("jwtauth.auth")

CredentialChecker = Callable[[str, str], Optional[set[str]]]


def accept_any(username: str, password: str) -> Optional[set[str]]:
    """Development checker: any non-empty password is accepted, no roles granted."""
    if not password:
        return None
    logger.warning("Development credential checker accepted user %r", username)
    return set()


def reject_all(username: str, password: str) -> Optional[set[str]]:
    """Default production checker until a real one is configured."""
    return None
