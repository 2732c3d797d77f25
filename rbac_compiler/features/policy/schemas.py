"""
Pydantic schemas for policy configuration and the resolved policy document.
"""
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator

from rbac_compiler.core.context import ResolutionContext
from rbac_compiler.core.personas import Persona
from rbac_compiler.features.assignments.schemas import (
    Assignment,
    CustomRoleConfig,
    ResourceGroupConfig,
    RoleDefinition,
    ScopeTier,
)
from rbac_compiler.features.hierarchy.builder import validate_prefix
from rbac_compiler.features.hierarchy.schemas import Group, GroupLevel, MembershipEdge
from rbac_compiler.features.service_principals.schemas import (
    MASKED_SECRET,
    ApplicationRecord,
    CredentialRecord,
    OwnerEdge,
    ServicePrincipalConfig,
    ServicePrincipalRecord,
)


RoleTableInput = Dict[str, Dict[Persona, List[str]]]


# ============================================================================
# Configuration
# ============================================================================

class PolicyConfig(BaseModel):
    """Declarative input, normally produced by an external loader."""
    org_prefix: str = Field(..., description="Organization prefix, up to 20 letters, digits or hyphens")
    environments: List[str] = Field(..., min_length=1)
    projects: List[str] = Field(default_factory=list)
    enable_project_groups: bool = False
    owners: List[str] = Field(..., min_length=1, description="Owner object ids attached to every group")

    resource_groups: Optional[Dict[str, ResourceGroupConfig]] = None
    service_principals: Dict[str, ServicePrincipalConfig] = Field(default_factory=dict)

    enable_management_group_assignments: bool = False
    enable_tenant_assignments: bool = False
    enable_subscription_assignments: bool = False
    enable_resource_group_assignments: bool = False
    management_group_name: Optional[str] = None
    tenant_id: Optional[str] = None

    environment_role_tables: Optional[RoleTableInput] = Field(
        None, description="Full role tables for additional or replaced environments"
    )
    resource_type_role_tables: Optional[RoleTableInput] = None
    environment_role_overrides: Optional[RoleTableInput] = Field(
        None, description="Per (environment, persona) role lists taking precedence over any table"
    )
    resource_type_role_overrides: Optional[RoleTableInput] = None
    custom_roles: Dict[str, CustomRoleConfig] = Field(default_factory=dict)

    @field_validator('org_prefix')
    @classmethod
    def prefix_format(cls, v: str) -> str:
        return validate_prefix(v)

    @field_validator('owners')
    @classmethod
    def owners_not_blank(cls, v: List[str]) -> List[str]:
        if any(not owner.strip() for owner in v):
            raise ValueError('Owner ids must not be blank')
        return v

    @field_validator('resource_groups', 'service_principals')
    @classmethod
    def names_without_slash(cls, v: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        # '/' separates the name from the rest of an assignment key
        for name in v or {}:
            if not name or '/' in name:
                raise ValueError(f"Name '{name}' must be non-empty and must not contain '/'")
        return v


class PolicyRequest(BaseModel):
    """Body of ``POST /policy/resolve``."""
    config: PolicyConfig
    context: Optional[ResolutionContext] = None


# ============================================================================
# Summary views
# ============================================================================

class PersonaGroupSummary(BaseModel):
    group_key: str
    roles: List[str] = []
    projects: Dict[str, str] = Field(default_factory=dict, description="Project name -> group key")


class EnvironmentSummary(BaseModel):
    group_key: str
    personas: Dict[str, PersonaGroupSummary] = {}


class PersonaSummary(BaseModel):
    groups: List[str] = []
    environment_roles: Dict[str, List[str]] = {}
    resource_type_roles: Dict[str, List[str]] = {}


class PrivilegedGroup(BaseModel):
    key: str
    environment: str
    roles: List[str] = []


class PolicySummary(BaseModel):
    by_environment: Dict[str, EnvironmentSummary] = {}
    by_persona: Dict[str, PersonaSummary] = {}
    privileged_groups: List[PrivilegedGroup] = []


# ============================================================================
# Resolved policy
# ============================================================================

class ResolvedPolicy(BaseModel):
    """
    Complete, flat output of one resolution.

    Every collection is sorted by key so identical input serializes
    byte-for-byte identically.
    """
    groups: List[Group] = []
    memberships: List[MembershipEdge] = []
    role_definitions: List[RoleDefinition] = []
    assignments: List[Assignment] = []
    applications: List[ApplicationRecord] = []
    service_principals: List[ServicePrincipalRecord] = []
    owner_edges: List[OwnerEdge] = []
    credentials: List[CredentialRecord] = []
    summary: PolicySummary = Field(default_factory=PolicySummary)

    model_config = ConfigDict(frozen=True)

    def group_assignments(self) -> List[Assignment]:
        return [a for a in self.assignments if a.tier is not ScopeTier.SERVICE_PRINCIPAL]

    def service_principal_assignments(self) -> List[Assignment]:
        return [a for a in self.assignments if a.tier is ScopeTier.SERVICE_PRINCIPAL]

    def entity_index(self) -> Dict[str, Dict[str, Any]]:
        """Records of every kind keyed by their stable key."""
        return {
            "groups": {g.key: g for g in self.groups},
            "memberships": {m.key: m for m in self.memberships},
            "role_definitions": {r.key: r for r in self.role_definitions},
            "assignments": {a.key: a for a in self.assignments},
            "applications": {a.key: a for a in self.applications},
            "service_principals": {s.key: s for s in self.service_principals},
            "owner_edges": {o.key: o for o in self.owner_edges},
            "credentials": {c.key: c for c in self.credentials},
        }

    def apply_stages(self) -> List[Tuple[str, List[str]]]:
        """
        Keys grouped in the order an executor must create them.

        Entities inside one stage do not depend on each other.
        """
        def level(value: GroupLevel) -> List[str]:
            return [g.key for g in self.groups if g.level is value]

        return [
            ("root", level(GroupLevel.ROOT)),
            ("environments", level(GroupLevel.ENVIRONMENT)),
            ("personas", level(GroupLevel.PERSONA)),
            ("projects", level(GroupLevel.PROJECT)),
            ("memberships", [m.key for m in self.memberships]),
            ("role_definitions", [r.key for r in self.role_definitions]),
            ("assignments", [a.key for a in self.group_assignments()]),
            ("applications", [a.key for a in self.applications]),
            ("service_principals", [s.key for s in self.service_principals]),
            ("credentials", [c.key for c in self.credentials]),
            ("owner_edges", [o.key for o in self.owner_edges]),
            ("service_principal_assignments", [a.key for a in self.service_principal_assignments()]),
        ]

    def to_document(self, mask_secrets: bool = True) -> Dict[str, Any]:
        """JSON-ready document; secret values are masked unless asked otherwise."""
        document = self.model_dump(mode="json")
        if mask_secrets:
            for credential in document["credentials"]:
                if credential.get("secret_value") is not None:
                    credential["secret_value"] = MASKED_SECRET
        document["apply_stages"] = [
            {"stage": stage, "keys": keys} for stage, keys in self.apply_stages()
        ]
        return document


# ============================================================================
# Diff
# ============================================================================

class EntityDiff(BaseModel):
    added: List[str] = []
    removed: List[str] = []
    changed: List[str] = []

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)


class PolicyDiff(BaseModel):
    changes: Dict[str, EntityDiff] = {}

    @property
    def is_empty(self) -> bool:
        return all(diff.is_empty for diff in self.changes.values())


class PolicyDiffRequest(BaseModel):
    previous: ResolvedPolicy
    current: ResolvedPolicy
