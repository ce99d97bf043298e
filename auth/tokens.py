"""
auth/tokens.py -- JWT identity assertions and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       user_id, username (as the sub claim), role, and expiry. Verification
       returns None on any failure -- the dependency layer turns that into
       BadAssertion.

  Passwords: bcrypt with a per-secret salt from bcrypt.gensalt(). The
       _DUMMY_HASH constant enables timing equalization in accounts.login()
       so response time does not reveal whether a username exists.

  SECRET_KEY: sourced from core.config.get_settings(), which validates it at
       startup.

Layer rule: no imports from api/ or orgs/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.models import Identity
from core.config import get_settings

logger = logging.getLogger("credvault.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

# bcrypt ignores (4.x) or rejects (5.x) input past this many bytes.
BCRYPT_MAX_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError when the UTF-8 encoding exceeds BCRYPT_MAX_BYTES, on
    every bcrypt release, so a hash never covers only a prefix.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password cannot be longer than {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the store, or an over-long password on bcrypt>=4.1.
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("credvault_timing_dummy")


def burn_verify(plain: str) -> None:
    """Run one bcrypt comparison against the dummy hash and discard the result."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, username: str, role: str, expire_seconds: int = 0) -> str:
    """Encode a signed identity assertion {user_id, username, role}.

    Args:
        user_id:        Numeric user ID stored in the DB.
        username:       Username stored as the JWT subject claim.
        role:           Role at issue time (informational only).
        expire_seconds: Token lifetime. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    expire = datetime.now(timezone.utc) + timedelta(seconds=duration)
    payload = {
        "sub": username,
        "user_id": user_id,
        "role": role,
        "exp": expire,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> Identity | None:
    """Verify a JWT and return its Identity, or None on any failure.

    Expired tokens, bad signatures, and tokens missing a claim all come back
    as None so the caller has exactly one failure path.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    user_id = payload.get("user_id")
    if not isinstance(user_id, int) or "sub" not in payload or "role" not in payload:
        return None
    return Identity(user_id=user_id, username=payload["sub"], role=payload["role"])


# ---------------------------------------------------------------------------
# Cookie helper
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, expire_seconds: int = 0) -> None:
    """Write the JWT access token as an httpOnly cookie on the response.

    httponly=True keeps the token away from page scripts; samesite="lax"
    blocks it on cross-site POSTs. max_age matches the JWT expiry so both
    expire together.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    response.set_cookie(
        "access_token",
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=duration,
    )
