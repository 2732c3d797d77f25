"""
Policy resolution entry point and output assembly.

Single pass: validate, build the hierarchy, expand assignments, expand service
principals, then merge everything into one :class:`ResolvedPolicy`. Any error
aborts before a document exists.
"""
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from rbac_compiler.core.context import ResolutionContext
from rbac_compiler.core.errors import ConfigValidationError, ReferentialError
from rbac_compiler.core.personas import PERSONAS
from rbac_compiler.features.assignments.expander import build_role_definitions, expand_assignments
from rbac_compiler.features.hierarchy.builder import build_hierarchy
from rbac_compiler.features.hierarchy.schemas import Group, Hierarchy
from rbac_compiler.features.policy.schemas import (
    EnvironmentSummary,
    PersonaGroupSummary,
    PersonaSummary,
    PolicyConfig,
    PolicySummary,
    PrivilegedGroup,
    ResolvedPolicy,
)
from rbac_compiler.features.roles.resolver import RoleResolver
from rbac_compiler.features.service_principals.resolver import resolve_service_principals
from rbac_compiler.utils import get_logger


log = get_logger(__name__)


def load_policy_config(data: Mapping[str, Any]) -> PolicyConfig:
    """
    Validate raw configuration.

    Raises:
        ConfigValidationError: with one entry per failing field
    """
    try:
        return PolicyConfig.model_validate(data)
    except ValidationError as exc:
        field_errors = {}
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ())) or "root"
            field_errors[location] = error.get("msg", "invalid value")
        raise ConfigValidationError(
            f"Invalid policy configuration ({len(field_errors)} errors)",
            field_errors=field_errors,
        ) from exc


def _check_coverage(config: PolicyConfig, resolver: RoleResolver) -> None:
    # Every environment must resolve for every persona, even with all tiers disabled
    for environment in sorted(config.environments):
        for persona in PERSONAS:
            resolver.roles_for_environment(environment, persona)

    for name, resource_group in sorted((config.resource_groups or {}).items()):
        if resource_group.environment not in config.environments:
            raise ReferentialError(
                f"Resource group '{name}' references unknown environment '{resource_group.environment}'",
                details={"resource_group": name, "environment": resource_group.environment},
            )
        for resource_type in resource_group.resource_types:
            resolver.roles_for_resource_type(resource_type, PERSONAS[0])


def _check_topology(groups: List[Group]) -> None:
    keys = {group.key for group in groups}
    if len(keys) != len(groups):
        raise ReferentialError("Duplicate group keys in resolved hierarchy")
    for group in groups:
        if group.parent_key is not None and group.parent_key not in keys:
            raise ReferentialError(
                f"Group '{group.key}' references missing parent '{group.parent_key}'",
                details={"key": group.key, "parent_key": group.parent_key},
            )


def _check_unique_keys(records: List[Any], kind: str) -> None:
    seen = set()
    for record in records:
        if record.key in seen:
            raise ReferentialError(f"Duplicate {kind} key '{record.key}'", details={"key": record.key})
        seen.add(record.key)


def build_summary(hierarchy: Hierarchy, resolver: RoleResolver) -> PolicySummary:
    """Derive the by-environment, by-persona and privileged-groups views."""
    by_environment: Dict[str, EnvironmentSummary] = {}
    by_persona: Dict[str, PersonaSummary] = {
        persona.value: PersonaSummary(
            resource_type_roles={
                resource_type: resolver.roles_for_resource_type(resource_type, persona)
                for resource_type in resolver.resource_types
            },
        )
        for persona in PERSONAS
    }
    privileged: List[PrivilegedGroup] = []

    for env_group in sorted(hierarchy.children(hierarchy.root.key), key=lambda g: g.key):
        personas: Dict[str, PersonaGroupSummary] = {}
        for persona_group in hierarchy.children(env_group.key):
            roles = resolver.roles_for_environment(env_group.environment, persona_group.persona)
            personas[persona_group.persona.value] = PersonaGroupSummary(
                group_key=persona_group.key,
                roles=roles,
                projects={
                    project_group.project: project_group.key
                    for project_group in sorted(hierarchy.children(persona_group.key), key=lambda g: g.key)
                },
            )
            persona_summary = by_persona[persona_group.persona.value]
            persona_summary.groups.append(persona_group.key)
            persona_summary.environment_roles[env_group.environment] = roles
            if persona_group.is_privileged:
                privileged.append(PrivilegedGroup(
                    key=persona_group.key,
                    environment=env_group.environment,
                    roles=roles,
                ))
        by_environment[env_group.environment] = EnvironmentSummary(group_key=env_group.key, personas=personas)

    for persona_summary in by_persona.values():
        persona_summary.groups.sort()
    return PolicySummary(
        by_environment=by_environment,
        by_persona=by_persona,
        privileged_groups=sorted(privileged, key=lambda p: p.key),
    )


def resolve_policy(
    config: PolicyConfig | Mapping[str, Any],
    context: Optional[ResolutionContext] = None,
) -> ResolvedPolicy:
    """
    Resolve a policy configuration into a complete policy document.

    Args:
        config: Validated :class:`PolicyConfig` or raw mapping
        context: Explicit tenant/subscription/clock context; built from
            settings when omitted

    Raises:
        ConfigValidationError, RoleLookupError, ReferentialError, CardinalityError
    """
    if not isinstance(config, PolicyConfig):
        config = load_policy_config(config)
    if context is None:
        context = ResolutionContext.from_settings(tenant_id=config.tenant_id)
    elif context.tenant_id is None and config.tenant_id:
        context = context.model_copy(update={"tenant_id": config.tenant_id})

    resolver = RoleResolver.from_config(config)
    _check_coverage(config, resolver)

    hierarchy = build_hierarchy(
        config.org_prefix,
        config.environments,
        projects=config.projects,
        enable_project_groups=config.enable_project_groups,
        owners=config.owners,
    )
    _check_topology(hierarchy.groups)

    assignments = expand_assignments(
        hierarchy,
        resolver,
        context,
        enable_management_group=config.enable_management_group_assignments,
        enable_tenant=config.enable_tenant_assignments,
        enable_subscription=config.enable_subscription_assignments,
        enable_resource_group=config.enable_resource_group_assignments,
        management_group_name=config.management_group_name,
        resource_groups=config.resource_groups,
    )
    role_definitions = build_role_definitions(config.custom_roles, context)
    principals = resolve_service_principals(config.service_principals, context, default_owners=config.owners)

    all_assignments = sorted(assignments + principals.assignments, key=lambda a: a.key)
    _check_unique_keys(all_assignments, "assignment")

    policy = ResolvedPolicy(
        groups=sorted(hierarchy.groups, key=lambda g: g.key),
        memberships=sorted(hierarchy.memberships, key=lambda m: m.key),
        role_definitions=role_definitions,
        assignments=all_assignments,
        applications=principals.applications,
        service_principals=principals.service_principals,
        owner_edges=sorted(principals.owner_edges, key=lambda o: o.key),
        credentials=principals.credentials,
        summary=build_summary(hierarchy, resolver),
    )
    log.info(
        "Resolved policy for %s: %d groups, %d memberships, %d assignments, %d service principals",
        config.org_prefix,
        len(policy.groups),
        len(policy.memberships),
        len(policy.assignments),
        len(policy.service_principals),
    )
    return policy
