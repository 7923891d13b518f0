"""
auth/tokens.py -- JWT, password hashing, and cookie utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry the
       account email (sub), a random token id (jti), issue time and expiry.
       Verification returns None on any failure -- the access guard turns that
       into a 403. The jti makes every token unique, so two logins within the
       same second still produce two independently revocable sessions.

  Passwords: bcrypt directly. Bcrypt is the right choice for low-entropy
       secrets because its cost factor makes brute-force expensive. The
       _DUMMY_HASH constant enables timing equalization in
       authenticate_account() so response time does not reveal whether an
       email is registered.

  Cookie: the token is also delivered as an httpOnly cookie named "jwt" with
       SameSite=None and a max-age equal to the token lifetime, so browser
       clients never have to touch the token from JavaScript.

  SECRET_KEY: sourced from core.config.get_settings(), which validates it at
       startup.

Layer rule: no imports from api/ or tasks/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from auth.models import Account
    from auth.store import AccountStore

logger = logging.getLogger("taskvault.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

COOKIE_NAME = "jwt"

# bcrypt rejects (or on older releases truncates) anything past 72 bytes.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Callers must reject passwords over MAX_PASSWORD_BYTES first (see
    password_too_long); bcrypt raises ValueError for them.
    """
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def password_too_long(plain: str) -> bool:
    """True if the UTF-8 encoding of plain exceeds what bcrypt accepts.

    The limit is in bytes, so a password of 40 Cyrillic letters (80 bytes)
    is too long even though it is only 40 characters.
    """
    return len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash. Treat as a mismatch rather than a 500.
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("taskvault_timing_dummy")


def authenticate_account(store: AccountStore, email: str, password: str) -> Account | None:
    """Check an email/password pair with timing equalization.

    Always runs bcrypt whether or not the account exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the Account on success, None on any failure.
    """
    account = store.get_by_email(email)
    if account is None:
        # Equalize timing -- do NOT return early before running bcrypt
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, account.hashed_password):
        return None
    return account


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(email: str, issued_at: datetime, expires_at: datetime) -> str:
    """Encode a signed JWT for the given account email.

    The caller (SessionRegistry.issue) owns the clock so the Session it records
    and the claims in the token agree.
    """
    payload = {
        "sub": email,
        "jti": secrets.token_hex(8),
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure.

    Covers bad signatures, malformed tokens and expired tokens alike.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return payload


# ---------------------------------------------------------------------------
# Token transport
# ---------------------------------------------------------------------------


def extract_token(request: Request) -> str | None:
    """Return the bearer token presented with the request, if any.

    The httpOnly cookie wins over the Authorization header: browser clients
    send the cookie automatically, API clients send the header.
    """
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def set_auth_cookie(response: Response, token: str) -> None:
    """Write the JWT as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="none": the single-page client is served from a different origin.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the JWT expiry so both expire together.
    """
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="none",
        secure=_settings.secure_cookies,
        max_age=_settings.token_expire_seconds,
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        COOKIE_NAME,
        httponly=True,
        samesite="none",
        secure=_settings.secure_cookies,
    )
