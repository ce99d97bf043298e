"""
api/routes/v1/memberships.py -- Division membership REST endpoints.

Routes:
  POST   /api/v1/memberships   -- assign a user to a division
  DELETE /api/v1/memberships   -- unassign a user from a division

Both require the admin role and membership of the target division.
DELETE takes a JSON body, like POST, since a membership has no id of its own.
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Request

from api.models import MembershipRequest, MessageResponse
from auth.dependencies import get_current_user
from auth.models import User
from orgs import membership
from orgs.store import OrgStore

router = APIRouter()


@router.post("/memberships", response_model=MessageResponse, status_code=201)
def assign_division(
    request: Request,
    body: MembershipRequest,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    org_store: OrgStore = request.app.state.org_store
    membership.assign(
        org_store,
        request.app.state.user_store,
        current_user,
        body.user_id,
        body.org_unit,
        body.division,
    )
    return MessageResponse(message="User assigned.")


@router.delete("/memberships", response_model=MessageResponse)
def unassign_division(
    request: Request,
    body: MembershipRequest = Body(...),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    org_store: OrgStore = request.app.state.org_store
    membership.unassign(
        org_store,
        request.app.state.user_store,
        current_user,
        body.user_id,
        body.org_unit,
        body.division,
    )
    return MessageResponse(message="User unassigned.")
