"""
api/routes/v1/users.py -- User roster and role management.

Routes:
  GET   /api/v1/users                  -- every user with org unit memberships
  PATCH /api/v1/users/{user_id}/role   -- set a user's role (admin only)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import ProfileResponse, RoleUpdate, UserCreatedResponse
from api.routes.v1.serializers import profile_to_response
from auth.dependencies import get_current_user
from auth.models import User
from auth.roles import change_role
from auth.store import UserStore
from core.errors import UnknownUser, store_guard
from orgs import directory
from orgs.store import OrgStore

router = APIRouter()


@router.get("/users", response_model=list[ProfileResponse])
def list_users(request: Request, current_user: User = Depends(get_current_user)) -> list[ProfileResponse]:
    user_store: UserStore = request.app.state.user_store
    org_store: OrgStore = request.app.state.org_store
    return [profile_to_response(p) for p in directory.list_users(user_store, org_store, current_user)]


@router.patch("/users/{user_id}/role", response_model=UserCreatedResponse)
def update_role(
    request: Request,
    user_id: int,
    body: RoleUpdate,
    current_user: User = Depends(get_current_user),
) -> UserCreatedResponse:
    """Set the role of user_id. Admin only; the new role must be normal, management or admin."""
    user_store: UserStore = request.app.state.user_store
    change_role(user_store, current_user, user_id, body.role)
    with store_guard("reload user"):
        updated = user_store.get_by_id(user_id)
    if updated is None:
        raise UnknownUser(f"User {user_id} not found.")
    return UserCreatedResponse(id=updated.id, username=updated.username, role=updated.role)
