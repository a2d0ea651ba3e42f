"""
api/routes/v1/auth.py -- Token issuing endpoints.

Routes:
  POST /api/v1/auth/token     -- exchange username/password for a JWT
  POST /api/v1/auth/register  -- create a non-admin account and return its JWT

Both routes are public and rate-limited per client IP (AUTH_RATE_LIMIT).
The returned token goes in the Authorization header of later requests:
    Authorization: Bearer <token>

Security:
  BoardStore.authenticate() runs bcrypt even for unknown usernames, and both
  failure modes return the same 401, so neither timing nor message reveals
  whether a username exists.
  Cache-Control: no-store on every token response.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

from api.limiter import limiter
from api.models import RegisterRequest, TokenRequest, TokenResponse
from auth.tokens import create_token
from board.models import User
from board.store import BoardStore
from core.config import get_settings

router = APIRouter()

_RATE_LIMIT = get_settings().auth_rate_limit


@limiter.limit(_RATE_LIMIT)
@router.post("/auth/token", response_model=TokenResponse)
def token(request: Request, response: Response, body: TokenRequest) -> TokenResponse:
    """Authenticate with username and password; return a signed JWT.

    Raises UnauthorizedError (401) on a bad username or password.
    """
    store: BoardStore = request.app.state.store
    user = store.authenticate(body.username, body.password)
    response.headers["Cache-Control"] = "no-store"
    return TokenResponse(token=create_token(user.username, user.is_admin))


@limiter.limit(_RATE_LIMIT)
@router.post("/auth/register", response_model=TokenResponse, status_code=201)
def register(request: Request, response: Response, body: RegisterRequest) -> TokenResponse:
    """Register a new user and return a JWT for it.

    Self-registration never grants admin; admins create other admins through
    POST /users. Raises BadRequestError (400) on a duplicate username.
    """
    store: BoardStore = request.app.state.store
    user = store.register(
        User(
            username=body.username,
            first_name=body.first_name,
            last_name=body.last_name,
            email=body.email,
            is_admin=False,
        ),
        body.password,
    )
    response.headers["Cache-Control"] = "no-store"
    return TokenResponse(token=create_token(user.username, user.is_admin))
