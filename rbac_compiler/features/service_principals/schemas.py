"""
Pydantic schemas for service principals and their credentials.
"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from rbac_compiler.core.context import as_utc
from rbac_compiler.features.assignments.schemas import Assignment


MASKED_SECRET = "<sensitive>"


class ServicePrincipalRoleConfig(BaseModel):
    """A caller-specified grant, applied verbatim without table lookup."""
    scope: str = Field(..., min_length=1, description="Scope identifier used as-is")
    role: str = Field(..., min_length=1)


class ServicePrincipalConfig(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=120)
    description: str = ""
    owners: List[str] = Field(default_factory=list, description="Falls back to the organization owners when empty")
    roles: Dict[str, ServicePrincipalRoleConfig] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)
    rotation_days: Optional[int] = Field(None, description="Defaults to the resolution context rotation period")


class ApplicationRecord(BaseModel):
    key: str
    name: str
    display_name: str
    description: str
    owners: List[str] = []
    tags: List[str] = []

    model_config = ConfigDict(frozen=True)


class ServicePrincipalRecord(BaseModel):
    key: str
    application_key: str
    owners: List[str] = []
    tags: List[str] = []

    model_config = ConfigDict(frozen=True)


class OwnerEdge(BaseModel):
    principal_key: str
    owner_id: str

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> str:
        return f"{self.principal_key}/{self.owner_id}"


class CredentialRecord(BaseModel):
    """Password credential; the secret itself is issued by the backend and never logged."""
    key: str
    application_id: str = Field(..., description="Key of the owning application record")
    key_id: str
    end_date: datetime
    secret_value: Optional[str] = None
    sensitive: bool = True

    model_config = ConfigDict(frozen=True)

    @field_validator('end_date')
    @classmethod
    def end_date_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class ResolvedServicePrincipals(BaseModel):
    applications: List[ApplicationRecord] = []
    service_principals: List[ServicePrincipalRecord] = []
    owner_edges: List[OwnerEdge] = []
    credentials: List[CredentialRecord] = []
    assignments: List[Assignment] = []

    model_config = ConfigDict(frozen=True)


class CredentialRotationRequest(BaseModel):
    credentials: List[CredentialRecord]
    rotation_days: Optional[int] = None
    renew_within_days: Optional[int] = None
    now: Optional[datetime] = None

    @field_validator('now')
    @classmethod
    def now_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class CredentialRotationResult(BaseModel):
    credentials: List[CredentialRecord]
    rotated: List[str] = Field(default_factory=list, description="Keys of credentials given a new expiry")
