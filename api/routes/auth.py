"""
api/routes/auth.py -- Signup, login, logout and token verification endpoints.

Routes:
  POST /auth/signup        -- create an account; 201
  POST /auth/login         -- password login; returns {token} and sets the jwt cookie
  POST /auth/logout        -- revoke the presented token and clear the cookie; 204
  GET  /auth/verify-token  -- echo the token that authenticated this request (guarded)

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  Login failures share one message and one status whatever the cause.
  Cache-Control: no-store on login responses so the token is never cached.
"""

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import CredentialsRequest, MessageResponse, TokenResponse
from auth.dependencies import get_current_identity
from auth.models import Identity
from auth.service import Authenticator
from auth.tokens import clear_auth_cookie, extract_token, set_auth_cookie
from core.config import get_settings

# Auth policy:
# - POST /auth/signup:        public
# - POST /auth/login:         public -- login endpoint must be unauthenticated
# - POST /auth/logout:        public, but a token must be presented (400 otherwise)
# - GET  /auth/verify-token:  requires auth (get_current_identity)
router = APIRouter()

_settings = get_settings()


@router.post("/auth/signup", response_model=MessageResponse, status_code=201)
def signup(request: Request, body: CredentialsRequest) -> MessageResponse:
    """Register a new account. The caller must log in separately afterwards."""
    authenticator: Authenticator = request.app.state.authenticator
    authenticator.signup(body.email, body.password)
    return MessageResponse(message="User created successfully.")


@router.post("/auth/login", response_model=TokenResponse)
@limiter.limit(_settings.login_rate_limit)  # must stay below @router.post
def login(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Authenticate with email and password.

    The token is delivered twice: in the JSON body for API clients and as the
    httpOnly "jwt" cookie for browsers. Either may be presented afterwards.
    """
    authenticator: Authenticator = request.app.state.authenticator
    session = authenticator.login(body.email, body.password)
    resp = JSONResponse(status_code=200, content=TokenResponse(token=session.token).model_dump())
    set_auth_cookie(resp, session.token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout", status_code=204)
def logout(request: Request) -> Response:
    """Revoke the presented token (cookie or Bearer header) and clear the cookie.

    Returns 204 whether or not the token was still active.
    """
    authenticator: Authenticator = request.app.state.authenticator
    authenticator.logout(extract_token(request))
    resp = Response(status_code=204)
    clear_auth_cookie(resp)
    return resp


@router.get("/auth/verify-token", response_model=TokenResponse)
def verify_token(request: Request, identity: Identity = Depends(get_current_identity)) -> TokenResponse:
    """Confirm the current session is still live and echo its token.

    The single-page client calls this on load to decide whether a stored
    session can be reused. Unlike the guard, this always consults the session
    registry, so a revoked token gets a 401 here.
    """
    authenticator: Authenticator = request.app.state.authenticator
    verified = authenticator.verify(identity.token)
    return TokenResponse(token=verified.token)
