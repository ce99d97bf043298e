"""
api/routes/v1/auth.py -- Registration, login, and profile REST endpoints.

Routes:
  POST /api/v1/auth/register   -- create a normal-role account (public)
  POST /api/v1/auth/login      -- password login; returns JWT and sets cookie (public)
  POST /api/v1/auth/logout     -- clears cookie; 200
  GET  /api/v1/auth/me         -- caller's profile and org unit memberships

Security:
  POST /login and /register are rate-limited per IP (Settings.*_rate_limit).
  Login returns the same invalid_credentials error for a wrong username and
  a wrong password, and runs bcrypt either way (auth.accounts.authenticate).
  Cache-Control: no-store on login responses.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, ProfileResponse, RegisterRequest, UserCreatedResponse
from api.routes.v1.serializers import profile_to_response
from auth import accounts
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import UserStore
from auth.tokens import set_auth_cookie
from core.config import get_settings
from orgs import directory
from orgs.store import OrgStore

_settings = get_settings()

# Auth policy:
# - POST /api/v1/auth/register: public -- gated by Settings.self_registration_enabled
# - POST /api/v1/auth/login:    public
# - POST /api/v1/auth/logout:   public -- clearing a cookie needs no prior auth
# - GET  /api/v1/auth/me:       requires auth (get_current_user)
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(_settings.register_rate_limit)
@router.post("/auth/register", response_model=UserCreatedResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> UserCreatedResponse:
    """Create an account with the default 'normal' role.

    The username is rejected if any existing username matches it
    case-insensitively.
    """
    user_store: UserStore = request.app.state.user_store
    user = accounts.register(user_store, body.username, body.password)
    return UserCreatedResponse(id=user.id, username=user.username, role=user.role)


@limiter.limit(_settings.login_rate_limit)
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a JWT and set the cookie."""
    user_store: UserStore = request.app.state.user_store
    user, token = accounts.login(user_store, body.username, body.password)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=_settings.token_expire_seconds,
            user_id=user.id,
            username=user.username,
            role=user.role,
        ).model_dump(),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout")
async def logout() -> JSONResponse:
    """Clear the JWT cookie and end the session."""
    resp = JSONResponse(content={"message": "Logged out."})
    resp.delete_cookie("access_token")
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=ProfileResponse)
def me(request: Request, current_user: User = Depends(get_current_user)) -> ProfileResponse:
    """Return the caller's profile with org unit and division names."""
    org_store: OrgStore = request.app.state.org_store
    return profile_to_response(directory.get_profile(org_store, current_user))
