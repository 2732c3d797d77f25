"""
Pydantic schemas for scopes, role assignments and custom role definitions.
"""
from enum import Enum
from typing import Annotated, List, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# ============================================================================
# Scopes
# ============================================================================

class TenantScope(BaseModel):
    kind: Literal["tenant"] = "tenant"
    tenant_id: str

    model_config = ConfigDict(frozen=True)

    def render(self) -> str:
        # The tenant root management group shares the tenant id
        return f"/providers/Microsoft.Management/managementGroups/{self.tenant_id}"


class ManagementGroupScope(BaseModel):
    kind: Literal["management_group"] = "management_group"
    management_group_id: str

    model_config = ConfigDict(frozen=True)

    def render(self) -> str:
        return self.management_group_id


class SubscriptionScope(BaseModel):
    kind: Literal["subscription"] = "subscription"
    subscription_id: str

    model_config = ConfigDict(frozen=True)

    def render(self) -> str:
        return f"/subscriptions/{self.subscription_id}"


class ResourceGroupScope(BaseModel):
    kind: Literal["resource_group"] = "resource_group"
    id: str

    model_config = ConfigDict(frozen=True)

    def render(self) -> str:
        return self.id


class CustomScope(BaseModel):
    kind: Literal["custom"] = "custom"
    id: str

    model_config = ConfigDict(frozen=True)

    def render(self) -> str:
        return self.id


Scope = Annotated[
    Union[TenantScope, ManagementGroupScope, SubscriptionScope, ResourceGroupScope, CustomScope],
    Field(discriminator="kind"),
]


# ============================================================================
# Assignments
# ============================================================================

class ScopeTier(str, Enum):
    MANAGEMENT_GROUP = "management_group"
    TENANT = "tenant"
    SUBSCRIPTION = "subscription"
    RESOURCE_GROUP = "resource_group"
    SERVICE_PRINCIPAL = "service_principal"


class Assignment(BaseModel):
    """Exactly one role granted to one principal at one scope."""
    key: str = Field(..., description="Stable key used by the executor to diff runs")
    tier: ScopeTier
    scope: Scope
    role: str = Field(..., min_length=1)
    principal_key: str
    principal_type: Literal["group", "service_principal"] = "group"

    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def scope_string(self) -> str:
        return self.scope.render()


# ============================================================================
# Resource groups and custom roles
# ============================================================================

class Criticality(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ResourceGroupConfig(BaseModel):
    """A caller-managed resource group that persona groups are granted access to."""
    id: str = Field(..., min_length=1, description="Full resource group id, used verbatim as the scope")
    name: str = Field(..., min_length=1)
    environment: str
    resource_types: List[str] = []
    criticality_level: Criticality = Criticality.MEDIUM


class CustomRoleConfig(BaseModel):
    description: str = ""
    actions: List[str] = []
    not_actions: List[str] = []
    data_actions: List[str] = []
    not_data_actions: List[str] = []

    @field_validator('actions', 'not_actions', 'data_actions', 'not_data_actions')
    @classmethod
    def sorted_unique(cls, v: List[str]) -> List[str]:
        """Keep permission lists stable across runs."""
        return sorted(set(v))


class RoleDefinition(BaseModel):
    key: str
    name: str
    description: str
    actions: List[str] = []
    not_actions: List[str] = []
    data_actions: List[str] = []
    not_data_actions: List[str] = []
    assignable_scopes: List[str] = []

    model_config = ConfigDict(frozen=True)
