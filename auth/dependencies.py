"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two token sources are checked in priority order:
  1. Authorization: Bearer <token> header -- API clients.
  2. JWT cookie ("access_token") -- set by POST /auth/login for browsers.

get_current_user() verifies the token, then reloads the user from the store
so the role used for authorization is the current one, not the one baked
into the token. Any failure raises BadAssertion, which api/main.py renders
as a 401.

Layer rule: auth/dependencies.py may import from fastapi because this module
is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.accounts import resolve_caller
from auth.models import User
from auth.tokens import decode_access_token
from core.errors import BadAssertion


def _extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get("access_token") or None


def get_current_user(request: Request) -> User:
    """Require a valid identity assertion. Raises BadAssertion otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = _extract_token(request)
    if token is None:
        raise BadAssertion("Authentication required.")
    identity = decode_access_token(token)
    if identity is None:
        raise BadAssertion("Invalid or expired token.")
    return resolve_caller(request.app.state.user_store, identity)
