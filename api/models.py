"""
API request and response models for CredVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
orgs/models.py, which own the internal domain representation. Route handlers
map between the two.

Separation of concerns: auth/ + orgs/ models = domain truth; api/ models = API contract.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.tokens import BCRYPT_MAX_BYTES

# ---------------------------------------------------------------------------
# Shared envelopes
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health.

    status is "healthy" when every component reports "ok", else "degraded".
    """

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = {}


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    Fields are taken verbatim: login compares against exactly what was
    registered, surrounding whitespace included.
    """

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=BCRYPT_MAX_BYTES)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, v: str) -> str:
        if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"password must be at most {BCRYPT_MAX_BYTES} bytes when UTF-8 encoded")
        return v


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=BCRYPT_MAX_BYTES)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: int
    username: str
    role: str


class UserCreatedResponse(BaseModel):
    id: int
    username: str
    role: str


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------


class CredentialModel(BaseModel):
    """A stored credential as sent and returned over the API."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    username: str
    password: str


class DivisionAccounts(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    accounts: list[CredentialModel] = []


class OrgUnitMembership(BaseModel):
    """One org unit the caller belongs to.

    divisions is a list of names in profile responses and a list of
    DivisionAccounts in GET /credentials responses.
    """

    model_config = ConfigDict(from_attributes=True)

    org_unit_id: int
    name: str
    divisions: list[Union[DivisionAccounts, str]] = []


class ProfileResponse(BaseModel):
    """Response for GET /api/v1/auth/me and each row of GET /api/v1/users."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: str
    organisational_units: list[OrgUnitMembership] = []


class RoleUpdate(BaseModel):
    """Request body for PATCH /api/v1/users/{user_id}/role.

    role is a plain string so an unknown value reaches the role authorizer
    and is rejected as invalid_role (400), not as a schema error (422).
    """

    role: str


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class CredentialFields(BaseModel):
    """A credential whose fields must all be non-empty."""

    name: str = Field(min_length=1, max_length=255)
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=1024)


class CredentialCreate(BaseModel):
    """Request body for POST /api/v1/credentials."""

    org_unit: str = Field(min_length=1, max_length=255)
    division: str = Field(min_length=1, max_length=255)
    credential: CredentialFields


class CredentialUpdate(BaseModel):
    """Request body for PUT /api/v1/credentials.

    new_credential fields may be empty here; the registry rejects them with
    empty_field after the caller is authenticated.
    """

    org_unit: str = Field(min_length=1, max_length=255)
    division: str = Field(min_length=1, max_length=255)
    old_credential: CredentialModel
    new_credential: CredentialModel


# ---------------------------------------------------------------------------
# Memberships
# ---------------------------------------------------------------------------


class MembershipRequest(BaseModel):
    """Request body for POST and DELETE /api/v1/memberships."""

    user_id: int
    org_unit: str = Field(min_length=1, max_length=255)
    division: str = Field(min_length=1, max_length=255)
