"""
auth/service.py -- Account signup, login, logout and token verification.

The Authenticator is the only code that checks passwords or mints sessions.
Route handlers call it and translate its exceptions (core/errors.py) into HTTP
responses; cookies are the route layer's concern.

Enumeration resistance:
  login() raises the same Unauthorized("Invalid credentials.") for an unknown
  email and for a wrong password, and authenticate_account() runs bcrypt in
  both cases so the two are indistinguishable by timing too.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import Account, Identity, Session
from auth.sessions import SessionRegistry
from auth.store import AccountStore
from auth.tokens import MAX_PASSWORD_BYTES, authenticate_account, hash_password, password_too_long
from core.errors import Conflict, InternalError, Unauthorized, ValidationError

logger = logging.getLogger("taskvault.auth")

_INVALID_CREDENTIALS = "Invalid credentials."
_PASSWORD_TOO_LONG = f"Password must be at most {MAX_PASSWORD_BYTES} bytes."


class Authenticator:
    def __init__(self, store: AccountStore, registry: SessionRegistry) -> None:
        self.store = store
        self.registry = registry

    def signup(self, email: str | None, password: str | None) -> Account:
        """Register a new account. Does not log the caller in.

        Raises ValidationError on a missing field or an over-long password,
        Conflict if the email is taken and InternalError if the store fails
        for any other reason.
        """
        if not email or not password:
            raise ValidationError("Please provide all required fields.")
        if password_too_long(password):
            raise ValidationError(_PASSWORD_TOO_LONG)
        if self.store.get_by_email(email) is not None:
            raise Conflict("User already exists.")

        account = Account(email=email, hashed_password=hash_password(password))
        try:
            account.id = self.store.create_account(account)
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same email.
            raise Conflict("User already exists.") from exc
        except SQLAlchemyError as exc:
            logger.exception("Account insert failed")
            raise InternalError("Could not create account.") from exc

        logger.info("Account created (id=%s)", account.id)
        return account

    def login(self, email: str | None, password: str | None) -> Session:
        """Verify credentials and issue a session.

        Raises ValidationError on a missing field or an over-long password
        (no account can have one) and Unauthorized with one generic message
        for every credential failure.
        """
        if not email or not password:
            raise ValidationError("Please provide email and password.")
        if password_too_long(password):
            raise ValidationError(_PASSWORD_TOO_LONG)
        account = authenticate_account(self.store, email, password)
        if account is None:
            logger.warning("Failed login attempt")
            raise Unauthorized(_INVALID_CREDENTIALS)

        session = self.registry.issue(account.email)
        logger.info("Login succeeded (account id=%s, active sessions=%d)", account.id, len(self.registry))
        return session

    def logout(self, token: str | None) -> None:
        """Revoke a session token. Unknown or already revoked tokens are fine."""
        if not token:
            raise ValidationError("Missing authorization token.")
        self.registry.revoke(token)
        logger.info("Session revoked (active sessions=%d)", len(self.registry))

    def verify(self, token: str | None) -> Identity:
        """Return the identity behind a token that is still signed, unexpired and active."""
        session = self.registry.resolve(token) if token else None
        if session is None:
            raise Unauthorized("Invalid or expired session.")
        return Identity(email=session.subject_email, token=session.token)
