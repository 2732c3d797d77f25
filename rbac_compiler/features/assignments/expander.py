"""
Assignment expansion.

Turns resolved role lists into atomic single-role assignments for every
enabled scope tier. Only persona groups receive tier assignments; project
groups inherit through membership.
"""
from typing import Any, List, Mapping, Optional, Sequence

from rbac_compiler.core.context import ResolutionContext
from rbac_compiler.core.errors import CardinalityError, ReferentialError
from rbac_compiler.features.assignments.schemas import (
    Assignment,
    CustomRoleConfig,
    ManagementGroupScope,
    ResourceGroupConfig,
    ResourceGroupScope,
    RoleDefinition,
    ScopeTier,
    SubscriptionScope,
    TenantScope,
)
from rbac_compiler.features.hierarchy.schemas import Group, Hierarchy
from rbac_compiler.features.roles.resolver import RoleResolver
from rbac_compiler.utils import get_logger


log = get_logger(__name__)

MANAGEMENT_GROUP_PATH = "/providers/Microsoft.Management/managementGroups/{name}"


def make_assignment(
    key: str,
    tier: ScopeTier,
    scope: Any,
    role: Any,
    principal_key: str,
    principal_type: str = "group",
) -> Assignment:
    """
    Build one assignment, refusing anything that is not a single role name.

    Raises:
        CardinalityError: ``role`` is a collection or a comma-joined list
    """
    if not isinstance(role, str) or "," in role:
        raise CardinalityError(
            f"Assignment '{key}' must carry exactly one role, got {role!r}",
            details={"key": key},
        )
    return Assignment(
        key=key,
        tier=tier,
        scope=scope,
        role=role,
        principal_key=principal_key,
        principal_type=principal_type,
    )


def _expand_groups(
    tier: ScopeTier,
    scope: Any,
    groups: Sequence[Group],
    resolver: RoleResolver,
    key_prefix: str,
) -> List[Assignment]:
    assignments = []
    for group in groups:
        for role in resolver.roles_for_environment(group.environment, group.persona):
            assignments.append(make_assignment(
                key=f"{key_prefix}{group.key}-{role}",
                tier=tier,
                scope=scope,
                role=role,
                principal_key=group.key,
            ))
    return assignments


def management_group_scope(name: str, context: ResolutionContext) -> ManagementGroupScope:
    management_group_id = context.management_group_id or MANAGEMENT_GROUP_PATH.format(name=name)
    return ManagementGroupScope(management_group_id=management_group_id)


def expand_assignments(
    hierarchy: Hierarchy,
    resolver: RoleResolver,
    context: ResolutionContext,
    enable_management_group: bool = False,
    enable_tenant: bool = False,
    enable_subscription: bool = False,
    enable_resource_group: bool = False,
    management_group_name: Optional[str] = None,
    resource_groups: Optional[Mapping[str, ResourceGroupConfig]] = None,
) -> List[Assignment]:
    """
    Expand every enabled tier into single-role assignments.

    The resource group tier is the full product of resource groups and persona
    groups, so its size is |resource groups| x |persona groups| x roles.

    Raises:
        ReferentialError: a tier is enabled without its prerequisite
        RoleLookupError: a persona group's environment has no role table
    """
    persona_groups = sorted(hierarchy.persona_groups(), key=lambda group: group.key)
    assignments: List[Assignment] = []

    if enable_management_group:
        if not management_group_name:
            raise ReferentialError(
                "Management group assignments are enabled but no management group name is set",
                details={"tier": ScopeTier.MANAGEMENT_GROUP.value},
            )
        scope = management_group_scope(management_group_name, context)
        assignments += _expand_groups(ScopeTier.MANAGEMENT_GROUP, scope, persona_groups, resolver, "management_group-")

    if enable_tenant:
        if not context.tenant_id:
            raise ReferentialError(
                "Tenant assignments are enabled but no tenant id is set",
                details={"tier": ScopeTier.TENANT.value},
            )
        scope = TenantScope(tenant_id=context.tenant_id)
        assignments += _expand_groups(ScopeTier.TENANT, scope, persona_groups, resolver, "tenant-")

    if enable_subscription:
        if not context.subscription_id:
            raise ReferentialError(
                "Subscription assignments are enabled but no subscription id is set",
                details={"tier": ScopeTier.SUBSCRIPTION.value},
            )
        scope = SubscriptionScope(subscription_id=context.subscription_id)
        assignments += _expand_groups(ScopeTier.SUBSCRIPTION, scope, persona_groups, resolver, "subscription-")

    if enable_resource_group:
        if resource_groups is None:
            raise ReferentialError(
                "Resource group assignments are enabled but no resource group map is set",
                details={"tier": ScopeTier.RESOURCE_GROUP.value},
            )
        for rg_name in sorted(resource_groups):
            scope = ResourceGroupScope(id=resource_groups[rg_name].id)
            assignments += _expand_groups(
                ScopeTier.RESOURCE_GROUP, scope, persona_groups, resolver, f"resource_group-{rg_name}/",
            )

    log.debug("Expanded %d assignments over %d persona groups", len(assignments), len(persona_groups))
    return assignments


def build_role_definitions(
    custom_roles: Optional[Mapping[str, CustomRoleConfig]],
    context: ResolutionContext,
) -> List[RoleDefinition]:
    """Emit one role definition per custom role, assignable at the subscription when known."""
    if not custom_roles:
        return []
    assignable_scopes = []
    if context.subscription_id:
        assignable_scopes.append(SubscriptionScope(subscription_id=context.subscription_id).render())
    return [
        RoleDefinition(
            key=f"role-definition-{name}",
            name=name,
            description=role.description,
            actions=role.actions,
            not_actions=role.not_actions,
            data_actions=role.data_actions,
            not_data_actions=role.not_data_actions,
            assignable_scopes=assignable_scopes,
        )
        for name, role in sorted(custom_roles.items())
    ]
