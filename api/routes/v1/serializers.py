"""
api/routes/v1/serializers.py -- Domain dataclass to API model mapping.

Route handlers return API models only; these helpers are the one place the
orgs/ dataclasses are translated into them.
"""

from __future__ import annotations

from api.models import CredentialModel, DivisionAccounts, OrgUnitMembership, ProfileResponse
from orgs.models import Credential, DivisionView, OrgMembership, Profile


def credential_to_model(credential: Credential) -> CredentialModel:
    return CredentialModel(name=credential.name, username=credential.username, password=credential.password)


def model_to_credential(model) -> Credential:
    return Credential(name=model.name, username=model.username, password=model.password)


def membership_to_response(membership: OrgMembership) -> OrgUnitMembership:
    divisions: list = []
    for division in membership.divisions:
        if isinstance(division, DivisionView):
            divisions.append(
                DivisionAccounts(
                    name=division.name,
                    accounts=[credential_to_model(a) for a in division.accounts],
                )
            )
        else:
            divisions.append(division)
    return OrgUnitMembership(org_unit_id=membership.org_unit_id, name=membership.name, divisions=divisions)


def profile_to_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        username=profile.username,
        role=profile.role,
        organisational_units=[membership_to_response(m) for m in profile.organisational_units],
    )
