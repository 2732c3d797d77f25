import pytest

from rbac_compiler.core.context import ResolutionContext
from rbac_compiler.core.errors import CardinalityError, ReferentialError
from rbac_compiler.core.personas import Persona
from rbac_compiler.features.assignments.expander import (
    build_role_definitions,
    expand_assignments,
    make_assignment,
)
from rbac_compiler.features.assignments.schemas import (
    CustomRoleConfig,
    ResourceGroupConfig,
    ScopeTier,
    SubscriptionScope,
)
from rbac_compiler.features.hierarchy.builder import build_hierarchy
from rbac_compiler.features.roles.resolver import RoleResolver

from conftest import SUBSCRIPTION_ID, TENANT_ID


@pytest.fixture
def hierarchy():
    return build_hierarchy("acme", ["dev", "prod"], projects=["billing"], enable_project_groups=True)


def _expected_total(hierarchy, resolver) -> int:
    return sum(
        len(resolver.roles_for_environment(group.environment, group.persona))
        for group in hierarchy.persona_groups()
    )


def test_disabled_tiers_emit_nothing(hierarchy, context) -> None:
    assert expand_assignments(hierarchy, RoleResolver(), context) == []


def test_subscription_tier_expands_one_role_per_assignment(hierarchy, context) -> None:
    resolver = RoleResolver()
    assignments = expand_assignments(hierarchy, resolver, context, enable_subscription=True)

    assert len(assignments) == _expected_total(hierarchy, resolver) == 22
    assert {a.scope_string for a in assignments} == {f"/subscriptions/{SUBSCRIPTION_ID}"}
    assert all(a.tier is ScopeTier.SUBSCRIPTION for a in assignments)

    technical = [a for a in assignments if a.principal_key == "acme-dev-technical"]
    assert [a.role for a in technical] == [
        "Contributor",
        "Key Vault Administrator",
        "Storage Blob Data Contributor",
        "Log Analytics Reader",
    ]
    assert technical[0].key == "subscription-acme-dev-technical-Contributor"


def test_project_groups_get_no_tier_assignments(hierarchy, context) -> None:
    assignments = expand_assignments(hierarchy, RoleResolver(), context, enable_subscription=True)
    project_keys = {group.key for group in hierarchy.project_groups()}

    assert not project_keys & {a.principal_key for a in assignments}


def test_tenant_scope_string(hierarchy, context) -> None:
    assignments = expand_assignments(hierarchy, RoleResolver(), context, enable_tenant=True)

    assert assignments
    assert assignments[0].scope_string == f"/providers/Microsoft.Management/managementGroups/{TENANT_ID}"
    assert assignments[0].key.startswith("tenant-")


def test_management_group_scope_from_name_or_context(hierarchy, context) -> None:
    derived = expand_assignments(
        hierarchy, RoleResolver(), context, enable_management_group=True, management_group_name="acme-root",
    )
    assert derived[0].scope_string == "/providers/Microsoft.Management/managementGroups/acme-root"

    resolved_context = context.model_copy(update={"management_group_id": "mg-opaque-id"})
    resolved = expand_assignments(
        hierarchy, RoleResolver(), resolved_context, enable_management_group=True, management_group_name="acme-root",
    )
    assert {a.scope_string for a in resolved} == {"mg-opaque-id"}


def test_resource_group_tier_is_full_product(context) -> None:
    hierarchy = build_hierarchy("acme", ["dev", "prod"])
    three_roles = {persona.value: ["Reader", "Contributor", "Monitoring Reader"] for persona in Persona}
    resolver = RoleResolver(environment_tables={"dev": three_roles, "prod": three_roles})
    resource_groups = {
        name: ResourceGroupConfig(id=f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{name}", name=name, environment="dev")
        for name in ("alpha", "beta")
    }

    assignments = expand_assignments(
        hierarchy, resolver, context, enable_resource_group=True, resource_groups=resource_groups,
    )

    assert len(assignments) == 2 * 8 * 3 == 48
    assert len({a.key for a in assignments}) == 48
    assert "resource_group-alpha/acme-prod-admin-Reader" in {a.key for a in assignments}
    assert {a.scope_string for a in assignments} == {r.id for r in resource_groups.values()}


def test_resource_group_keys_do_not_collide_across_names() -> None:
    hierarchy = build_hierarchy("acme", ["dev", "acme-dev"])
    roles = {persona.value: ["Reader"] for persona in Persona}
    resolver = RoleResolver(environment_tables={"dev": roles, "acme-dev": roles})
    resource_groups = {
        name: ResourceGroupConfig(id=f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{name}", name=name, environment="dev")
        for name in ("x", "x-acme")
    }

    keys = [a.key for a in expand_assignments(
        hierarchy, resolver, ResolutionContext(), enable_resource_group=True, resource_groups=resource_groups,
    )]

    assert len(keys) == len(set(keys)) == 2 * 8
    assert "resource_group-x/acme-acme-dev-admin-Reader" in keys
    assert "resource_group-x-acme/acme-dev-admin-Reader" in keys


def test_resource_group_tier_with_empty_map(hierarchy, context) -> None:
    assert expand_assignments(hierarchy, RoleResolver(), context, enable_resource_group=True, resource_groups={}) == []


@pytest.mark.parametrize(
    "flags",
    [
        {"enable_management_group": True},
        {"enable_resource_group": True},
    ],
)
def test_missing_prerequisite(hierarchy, context, flags) -> None:
    with pytest.raises(ReferentialError):
        expand_assignments(hierarchy, RoleResolver(), context, **flags)


def test_missing_context_ids(hierarchy) -> None:
    empty = ResolutionContext()

    with pytest.raises(ReferentialError):
        expand_assignments(hierarchy, RoleResolver(), empty, enable_tenant=True)
    with pytest.raises(ReferentialError):
        expand_assignments(hierarchy, RoleResolver(), empty, enable_subscription=True)


@pytest.mark.parametrize("role", [["Reader", "Owner"], "Reader,Owner"])
def test_multi_role_assignment_is_rejected(role) -> None:
    with pytest.raises(CardinalityError):
        make_assignment(
            key="subscription-acme-dev-admin",
            tier=ScopeTier.SUBSCRIPTION,
            scope=SubscriptionScope(subscription_id=SUBSCRIPTION_ID),
            role=role,
            principal_key="acme-dev-admin",
        )


def test_custom_role_definitions(context) -> None:
    definitions = build_role_definitions(
        {
            "acme-reader": CustomRoleConfig(
                description="Read everything",
                actions=["*/read", "Microsoft.Storage/*/read", "*/read"],
            ),
        },
        context,
    )

    assert len(definitions) == 1
    assert definitions[0].key == "role-definition-acme-reader"
    assert definitions[0].actions == ["*/read", "Microsoft.Storage/*/read"]
    assert definitions[0].assignable_scopes == [f"/subscriptions/{SUBSCRIPTION_ID}"]


def test_no_custom_roles(context) -> None:
    assert build_role_definitions(None, context) == []
