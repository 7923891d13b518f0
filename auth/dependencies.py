"""
auth/dependencies.py -- The access guard and its FastAPI Depends() helper.

Every protected route depends on get_current_identity(). Token lookup order:
  1. "jwt" httpOnly cookie -- set by POST /auth/login for browser clients.
  2. Authorization: Bearer <token> header -- API clients.

Outcomes:
  - no token at all                         -> Unauthorized (401)
  - token present but signature/expiry bad  -> Forbidden (403)
  - token revoked (ENFORCE_REVOCATION=true) -> Forbidden (403)
  - otherwise an Identity is stored on request.state.identity and returned

The 401/403 split separates "no credential supplied" from "credential
supplied but not accepted".

Layer rule: may import fastapi/starlette (this is the DI seam) but not api/.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Identity
from auth.sessions import SessionRegistry
from auth.tokens import decode_access_token, extract_token
from core.errors import Forbidden, Unauthorized


class AccessGuard:
    """Turns a presented token into an Identity, or refuses it.

    enforce_revocation=False checks only signature and expiry, so a logged-out
    token keeps working until it expires naturally.
    """

    def __init__(self, registry: SessionRegistry, enforce_revocation: bool = True) -> None:
        self.registry = registry
        self.enforce_revocation = enforce_revocation

    def authenticate(self, token: str | None) -> Identity:
        if not token:
            raise Unauthorized("Authentication required.")
        payload = decode_access_token(token)
        if payload is None:
            raise Forbidden("Invalid or expired token.")
        if self.enforce_revocation and not self.registry.is_active(token):
            raise Forbidden("Session has been revoked.")
        return Identity(email=payload["sub"], token=token)


def get_current_identity(request: Request) -> Identity:
    """Require authentication on a route.

    Use as a FastAPI dependency:
        @router.get("/task")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    guard: AccessGuard = request.app.state.access_guard
    identity = guard.authenticate(extract_token(request))
    request.state.identity = identity
    return identity
