"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors tasks/models.py
-- dataclasses own domain shape; stores, the registry and routes do the work.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    """A registered user of TaskVault.

    email is the identity and never changes after signup. hashed_password is
    a bcrypt hash; the plaintext is never stored or logged.
    """

    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Session:
    """An issued bearer token and the account it speaks for.

    Sessions live only in the SessionRegistry. They are created by login and
    end on logout or when expires_at passes.
    """

    token: str
    subject_email: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Identity:
    """The resolved caller of a protected request.

    Set by the access guard on request.state.identity and handed to route
    handlers. token is the credential that authenticated the request, kept so
    /auth/verify-token can echo it back.
    """

    email: str
    token: str
