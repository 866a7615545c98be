"""
auth/tokens.py -- JWT issuance and validation.

Security design decisions:
  Algorithm: HS256 only, via python-jose. The HMAC key object is constructed
       once from KeyMaterial and reused for every sign/verify call. The alg
       named in a token header is checked against HS256 but never used to pick
       a key -- there is exactly one active key.

  Validation order: structural -> signature -> issuer -> audience (optional)
       -> temporal. The first failing stage raises its own TokenError subclass
       and stops. Nothing in a payload is trusted before the signature stage
       has passed.

  Signature compare: jose's HMACKey.verify uses hmac.compare_digest, so the
       comparison time does not depend on how many leading bytes match.

  jti: uuid4 (os.urandom backed). A counter or timestamp would let a client
       predict the id of another user's token.

  Clock skew: applied to nbf and iat only. exp is strict -- a token is dead
       the second its window closes.

Both classes are stateless beyond the frozen KeyMaterial they hold, so one
instance of each serves every request concurrently.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import binascii
import json
import logging
import math
import re
import time
import uuid
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Optional

from jose import jwk, jws
from jose.exceptions import JOSEError
from jose.utils import base64url_decode

from auth.errors import (
    InvalidAudience,
    InvalidIssuer,
    InvalidSignature,
    InvalidSubject,
    MalformedToken,
    NotYetValid,
    TokenExpired,
)
from auth.keys import ALGORITHM, KeyMaterial
from auth.models import (
    AUDIENCE,
    EXPIRES,
    ISSUED_AT,
    ISSUER,
    JWT_ID,
    NOT_BEFORE,
    ROLE,
    SUBJECT,
    ClaimSet,
)

logger = logging.getLogger("jwtauth.auth")

Clock = Callable[[], float]

# Unpadded base64url alphabet. jose's decoder silently skips foreign
# characters, so segments are checked against this first.
_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")


# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------


class TokenIssuer:
    """Builds and signs time-bounded tokens for an already-verified subject."""

    def __init__(self, material: KeyMaterial, clock: Clock = time.time) -> None:
        self._material = material
        self._key = jwk.construct(material.signing_key, ALGORITHM)
        self._clock = clock

    @property
    def expire_seconds(self) -> int:
        return self._material.expire_seconds

    def issue(self, subject: str, roles: Iterable[str] = (), expire_seconds: int = 0) -> str:
        """Return a signed token string for `subject` carrying one role claim per role.

        Args:
            subject:        Username, stored as the `sub` claim. Must be non-empty.
            roles:          Zero or more role names. Duplicates collapse. A
                            single string is one role, not its characters.
            expire_seconds: Validity window in seconds. If 0 (default), uses
                            the configured window.

        Raises InvalidSubject before anything is signed if subject is empty.
        """
        if not subject or not subject.strip():
            raise InvalidSubject("Subject must be a non-empty string.")
        if isinstance(roles, str):
            roles = (roles,)

        duration = expire_seconds if expire_seconds > 0 else self._material.expire_seconds
        now = int(self._clock())
        payload: dict[str, Any] = {
            SUBJECT: subject,
            JWT_ID: str(uuid.uuid4()),
            ISSUER: self._material.issuer,
            ISSUED_AT: now,
            NOT_BEFORE: now,
            EXPIRES: now + duration,
        }
        if self._material.audience:
            payload[AUDIENCE] = self._material.audience

        role_list = sorted({str(r) for r in roles if r})
        if len(role_list) == 1:
            payload[ROLE] = role_list[0]
        elif role_list:
            payload[ROLE] = role_list

        token = jws.sign(payload, self._key, algorithm=ALGORITHM)
        logger.debug("Issued token jti=%s sub=%s roles=%s", payload[JWT_ID], subject, role_list)
        return token


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _decode_segment(segment: str) -> bytes:
    if not segment or not _SEGMENT_RE.match(segment):
        raise MalformedToken("Token segment is empty or not base64url.")
    try:
        return base64url_decode(segment.encode("ascii"))
    except (TypeError, ValueError, binascii.Error) as e:
        raise MalformedToken("Token segment is not valid base64url.") from e


def _decode_json_object(data: bytes, what: str) -> dict:
    try:
        obj = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedToken(f"Token {what} is not valid JSON.") from e
    if not isinstance(obj, dict):
        raise MalformedToken(f"Token {what} must be a JSON object.")
    return obj


def _numeric_date(payload: Mapping[str, Any], claim: str) -> Optional[float]:
    """Read a NumericDate claim. Accepts JSON numbers and numeric strings.

    json.loads yields NaN/Infinity floats and unbounded ints, so the result
    must also be a finite float.
    """
    value = payload.get(claim)
    if value is None:
        return None
    if isinstance(value, bool) or not (
        isinstance(value, (int, float)) or (isinstance(value, str) and _NUMERIC_RE.match(value))
    ):
        raise MalformedToken(f"'{claim}' claim is not a timestamp.")
    try:
        timestamp = float(value)
    except OverflowError as e:
        raise MalformedToken(f"'{claim}' claim is out of range.") from e
    if not math.isfinite(timestamp):
        raise MalformedToken(f"'{claim}' claim is not a finite timestamp.")
    return timestamp


class TokenValidator:
    """Verifies token strings and reconstructs their ClaimSet."""

    def __init__(self, material: KeyMaterial, clock: Clock = time.time) -> None:
        self._material = material
        self._key = jwk.construct(material.signing_key, ALGORITHM)
        self._clock = clock

    def validate(self, token: str) -> ClaimSet:
        """Run every validation stage in order and return the ClaimSet.

        Raises the TokenError subclass of the first stage that fails:
        MalformedToken, InvalidSignature, InvalidIssuer, InvalidAudience,
        TokenExpired, or NotYetValid.
        """
        # 1. Structural
        if not isinstance(token, str):
            raise MalformedToken("Token must be a string.")
        segments = token.split(".")
        if len(segments) != 3:
            raise MalformedToken(f"Token must have 3 segments, got {len(segments)}.")
        header_segment, payload_segment, signature_segment = segments
        header = _decode_json_object(_decode_segment(header_segment), "header")
        payload = _decode_json_object(_decode_segment(payload_segment), "payload")
        signature = _decode_segment(signature_segment)

        # 2. Signature
        self._verify_signature(header, f"{header_segment}.{payload_segment}", signature)

        # 3. Issuer
        if payload.get(ISSUER) != self._material.issuer:
            raise InvalidIssuer("Token issuer does not match.")

        # 4. Audience (off in the default single-audience profile)
        if self._material.validate_audience:
            self._verify_audience(payload)

        # 5. Temporal
        self._verify_lifetime(payload)

        try:
            return ClaimSet.from_payload(payload)
        except ValueError as e:
            raise MalformedToken(str(e)) from e

    def _verify_signature(self, header: Mapping[str, Any], signing_input: str, signature: bytes) -> None:
        if header.get("alg") != ALGORITHM:
            raise InvalidSignature(f"Unsupported signing algorithm: {header.get('alg')!r}")
        try:
            matches = self._key.verify(signing_input.encode("ascii"), signature)
        except JOSEError as e:
            raise InvalidSignature("Signature could not be verified.") from e
        if not matches:
            raise InvalidSignature("Signature verification failed.")

    def _verify_audience(self, payload: Mapping[str, Any]) -> None:
        aud = payload.get(AUDIENCE)
        audiences = aud if isinstance(aud, list) else [aud]
        if self._material.audience not in audiences:
            raise InvalidAudience("Token audience does not match.")

    def _verify_lifetime(self, payload: Mapping[str, Any]) -> None:
        exp = _numeric_date(payload, EXPIRES)
        if exp is None:
            raise MalformedToken("Token has no 'exp' claim.")
        nbf = _numeric_date(payload, NOT_BEFORE)
        iat = _numeric_date(payload, ISSUED_AT)

        now = self._clock()
        skew = self._material.clock_skew_seconds
        if now >= exp:
            raise TokenExpired("Token has expired.")
        if nbf is not None and now + skew < nbf:
            raise NotYetValid("Token is not valid yet (nbf).")
        if iat is not None and now + skew < iat:
            raise NotYetValid("Token was issued in the future (iat).")
