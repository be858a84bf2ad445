"""
auth/tokens.py -- Password hashing and access-token signing.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). bcrypt is the right
       choice for low-entropy secrets because its cost factor makes offline
       brute force expensive. gensalt() draws a fresh salt per call, so the
       same cleartext never hashes to the same value twice. Default cost
       factor is 10; Settings.bcrypt_rounds overrides it.

  JWT: python-jose with HS256. TokenIssuer signs a claims payload
       ({sub, email, name}) and stamps iat/exp. decode() returns None on any
       failure -- the route layer turns that into a 401.

The issuer takes its key and lifetime as constructor arguments rather than
reading settings at import time, so tests and the API lifespan can each build
one with exactly the configuration they need.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

if TYPE_CHECKING:
    from auth.models import User
    from core.config import Settings

logger = logging.getLogger("accounts.auth.tokens")

BCRYPT_ROUNDS = 10
# bcrypt only reads this many bytes of its input.
BCRYPT_MAX_BYTES = 72

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Registration validation caps passwords at 72 bytes, bcrypt's input limit,
    so nothing reaching this function is silently truncated.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Inputs longer than BCRYPT_MAX_BYTES never match: some bcrypt releases
    truncate them silently, others raise. A malformed stored hash makes
    bcrypt raise ValueError, which also means "does not match".
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------


def claims_for(user: User) -> dict:
    """Identity facts embedded in every access token."""
    return {"sub": user.id, "email": user.email, "name": user.name}


# ---------------------------------------------------------------------------
# JWT signing
# ---------------------------------------------------------------------------


class TokenIssuer:
    """Signs and verifies time-limited bearer tokens.

    Usage:
        issuer = TokenIssuer.from_settings(get_settings())
        token = issuer.sign({"sub": user.id, "email": user.email, "name": user.name})
        claims = issuer.decode(token)  # None if invalid or expired
    """

    def __init__(self, secret_key: str, expire_seconds: int = 24 * 3600, verify_expiration: bool = True) -> None:
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds
        self.verify_expiration = verify_expiration

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenIssuer:
        return cls(
            secret_key=settings.secret_key,
            expire_seconds=settings.token_expire_seconds,
            verify_expiration=not settings.ignore_token_expiration,
        )

    def sign(self, claims: dict) -> str:
        """Encode claims as a signed JWT with iat/exp stamped from now."""
        now = datetime.now(timezone.utc)
        payload = dict(claims)
        payload["iat"] = now
        payload["exp"] = now + timedelta(seconds=self.expire_seconds)
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def decode(self, token: str) -> dict | None:
        """Decode and verify a JWT. Returns the payload dict or None on any failure.

        A token without a subject is treated as invalid: every downstream
        check resolves identity through sub.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                options={"verify_exp": self.verify_expiration},
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            return None
        if not payload.get("sub"):
            return None
        return payload
