"""
api/routes/v1/credentials.py -- Division credential REST endpoints.

Routes:
  GET  /api/v1/credentials   -- credentials of every division the caller belongs to
  POST /api/v1/credentials   -- add a credential to a division (member only)
  PUT  /api/v1/credentials   -- replace a credential (management/admin member only)

Authorization is decided in orgs/registry.py; this module only maps HTTP
bodies to domain values and back. Responses carry Cache-Control: no-store
because they may contain plaintext passwords.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import CredentialCreate, CredentialUpdate, MessageResponse, OrgUnitMembership
from api.routes.v1.serializers import membership_to_response, model_to_credential
from auth.dependencies import get_current_user
from auth.models import User
from orgs import directory, registry
from orgs.store import OrgStore

router = APIRouter()


@router.get("/credentials", response_model=list[OrgUnitMembership])
def view_credentials(
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
) -> list[OrgUnitMembership]:
    org_store: OrgStore = request.app.state.org_store
    response.headers["Cache-Control"] = "no-store"
    return [membership_to_response(m) for m in directory.view_credentials(org_store, current_user)]


@router.post("/credentials", response_model=MessageResponse, status_code=201)
def add_credential(
    request: Request,
    body: CredentialCreate,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """Append a credential to a division the caller belongs to."""
    org_store: OrgStore = request.app.state.org_store
    registry.add_credential(
        org_store,
        current_user,
        body.org_unit,
        body.division,
        model_to_credential(body.credential),
    )
    return MessageResponse(message="Account added.")


@router.put("/credentials", response_model=MessageResponse)
def update_credential(
    request: Request,
    body: CredentialUpdate,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """Replace old_credential (matched on name, username and password) with new_credential."""
    org_store: OrgStore = request.app.state.org_store
    registry.update_credential(
        org_store,
        current_user,
        body.org_unit,
        body.division,
        model_to_credential(body.old_credential),
        model_to_credential(body.new_credential),
    )
    return MessageResponse(message="Account updated.")
