"""
auth/tokens.py -- JWT and password hashing utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       username, isAdmin and iat. Decoding returns None on any failure -- an
       invalid token is treated exactly like a missing one, and the access
       checks turn that into a 401 only on routes that need an identity.

       Tokens carry no exp claim: a token stays valid until SECRET_KEY is
       rotated. Identity is re-derived from the token on every request.

  Passwords: bcrypt directly (no passlib wrapper). The work factor comes from
       Settings.bcrypt_work_factor so tests can use the minimum cost. The
       _DUMMY_HASH constant enables timing equalization in
       BoardStore.authenticate() so response time does not reveal whether a
       username exists.

Layer rule: no imports from api/ or board/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

logger = logging.getLogger("jobly.auth")

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are truncated by bcrypt. The API layer
    caps new passwords at 20 characters, well below that threshold.
    """
    rounds = get_settings().bcrypt_work_factor
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the DB -- treat as a failed match.
        return False


_DUMMY_HASH: str | None = None


def dummy_hash() -> str:
    """Return a throwaway bcrypt hash for timing equalization.

    Computed lazily so importing this module does not pay for a bcrypt round
    before Settings are known.
    """
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = hash_password("jobly_timing_dummy")
    return _DUMMY_HASH


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_token(username: str, is_admin: bool, secret_key: str | None = None) -> str:
    """Encode a signed JWT carrying the user's identity.

    Args:
        username:   Stored as the "username" claim.
        is_admin:   Stored as the "isAdmin" claim; drives AdminOnly checks.
        secret_key: Signing key. Defaults to Settings.secret_key.
    """
    payload = {
        "username": username,
        "isAdmin": bool(is_admin),
        "iat": int(datetime.now(timezone.utc).timestamp()),
    }
    return jwt.encode(payload, secret_key or get_settings().secret_key, algorithm=_ALGORITHM)


def decode_token(token: str, secret_key: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure."""
    try:
        return jwt.decode(token, secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        logger.debug("Rejected bearer token (signature or format invalid)")
        return None
