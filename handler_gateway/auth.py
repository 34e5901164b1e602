from __future__ import annotations

import enum
import hmac
import re
from typing import Optional

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)


class AuthResult(enum.Enum):
    AUTHORIZED = "authorized"
    MISSING_SERVER_SECRET = "missing_server_secret"
    UNAUTHORIZED = "unauthorized"


def extract_bearer_token(header_value: Optional[str]) -> str:
    """Strip a case-insensitive ``Bearer`` prefix. Absent header -> ""."""
    return _BEARER_PREFIX.sub("", header_value or "", count=1)


def authenticate(header_value: Optional[str], configured_secret: Optional[str]) -> AuthResult:
    """
    Decide whether an ``Authorization`` header carries the shared secret.

    A missing secret is reported separately from a bad credential: it is a
    server misconfiguration, not a client fault. The byte lengths are compared
    before hmac.compare_digest, which then runs in time independent of where
    the first differing byte sits.
    """
    if not configured_secret:
        return AuthResult.MISSING_SERVER_SECRET

    got = extract_bearer_token(header_value).encode("utf-8")
    expected = configured_secret.encode("utf-8")

    if not got or len(got) != len(expected):
        return AuthResult.UNAUTHORIZED
    if not hmac.compare_digest(got, expected):
        return AuthResult.UNAUTHORIZED
    return AuthResult.AUTHORIZED
