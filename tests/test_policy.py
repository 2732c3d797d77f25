import json

import pytest

from rbac_compiler.core import config
from rbac_compiler.core.errors import ConfigValidationError, ReferentialError, RoleLookupError
from rbac_compiler.features.policy.assembler import load_policy_config, resolve_policy
from rbac_compiler.features.policy.diff import diff_policies
from rbac_compiler.features.policy.schemas import MASKED_SECRET

from conftest import SUBSCRIPTION_ID


@pytest.fixture
def full_config(base_config, resource_groups) -> dict:
    return {
        **base_config,
        "projects": ["billing", "claims"],
        "enable_project_groups": True,
        "enable_subscription_assignments": True,
        "enable_resource_group_assignments": True,
        "resource_groups": resource_groups,
        "service_principals": {
            "deployer": {
                "display_name": "acme-deployer",
                "roles": {"sub": {"scope": f"/subscriptions/{SUBSCRIPTION_ID}", "role": "Contributor"}},
            },
        },
        "custom_roles": {"acme-auditor": {"description": "Audit", "actions": ["*/read"]}},
    }


def _serialize(policy) -> str:
    return json.dumps(policy.to_document(), sort_keys=True)


def test_resolve_minimal_policy(base_config, context) -> None:
    policy = resolve_policy(base_config, context)

    assert len(policy.groups) == 11
    assert len(policy.memberships) == 10
    assert policy.assignments == []
    assert [g.key for g in policy.groups] == sorted(g.key for g in policy.groups)


def test_resolution_is_deterministic(full_config, context) -> None:
    shuffled = {
        **full_config,
        "environments": list(reversed(full_config["environments"])),
        "projects": list(reversed(full_config["projects"])),
        "resource_groups": dict(reversed(list(full_config["resource_groups"].items()))),
    }

    assert _serialize(resolve_policy(full_config, context)) == _serialize(resolve_policy(shuffled, context))


def test_assignments_union_all_tiers(full_config, context) -> None:
    policy = resolve_policy(full_config, context)

    subscription = [a for a in policy.assignments if a.tier.value == "subscription"]
    resource_group = [a for a in policy.assignments if a.tier.value == "resource_group"]
    assert len(subscription) == 22
    assert len(resource_group) == 2 * 22
    assert len(policy.service_principal_assignments()) == 1
    assert len(policy.assignments) == len({a.key for a in policy.assignments})


def test_adding_project_only_adds_its_entities(full_config, context) -> None:
    before = resolve_policy(full_config, context)
    after = resolve_policy({**full_config, "projects": ["billing", "claims", "payroll"]}, context)

    diff = diff_policies(before, after)
    assert diff.changes["groups"].added == sorted(
        f"acme-{env}-{persona}-payroll"
        for env in ("dev", "prod")
        for persona in ("non-technical", "technical", "solo-project")
    )
    assert len(diff.changes["memberships"].added) == 6
    assert diff.changes["groups"].removed == []
    assert diff.changes["groups"].changed == []
    assert diff.changes["assignments"].is_empty


def test_unchanged_input_diff_is_empty(full_config, context) -> None:
    assert diff_policies(resolve_policy(full_config, context), resolve_policy(full_config, context)).is_empty


def test_unknown_environment_produces_no_output(base_config, context) -> None:
    with pytest.raises(LookupError):
        resolve_policy({**base_config, "environments": ["staging"]}, context)


def test_environment_table_supplied_for_staging(base_config, context) -> None:
    table = {persona: ["Reader"] for persona in ("non_technical", "technical", "solo_project", "admin")}
    policy = resolve_policy(
        {
            **base_config,
            "environments": ["staging"],
            "environment_role_tables": {"staging": table},
            "environment_role_overrides": {"staging": {"admin": ["Owner", "Owner"]}},
            "enable_subscription_assignments": True,
        },
        context,
    )

    admin = [a for a in policy.assignments if a.principal_key == "acme-staging-admin"]
    assert [a.role for a in admin] == ["Owner"]


def test_summary_views(full_config, context) -> None:
    summary = resolve_policy(full_config, context).summary

    dev = summary.by_environment["dev"]
    assert dev.group_key == "acme-dev"
    assert dev.personas["technical"].projects == {
        "billing": "acme-dev-technical-billing",
        "claims": "acme-dev-technical-claims",
    }
    assert dev.personas["admin"].projects == {}

    technical = summary.by_persona["technical"]
    assert technical.groups == ["acme-dev-technical", "acme-prod-technical"]
    assert technical.environment_roles["dev"][0] == "Contributor"
    assert summary.by_persona["non_technical"].resource_type_roles["networking"] == []

    assert [g.key for g in summary.privileged_groups] == ["acme-dev-admin", "acme-prod-admin"]


def test_apply_stages_order(full_config, context) -> None:
    stages = resolve_policy(full_config, context).apply_stages()

    assert [name for name, _ in stages] == [
        "root",
        "environments",
        "personas",
        "projects",
        "memberships",
        "role_definitions",
        "assignments",
        "applications",
        "service_principals",
        "credentials",
        "owner_edges",
        "service_principal_assignments",
    ]
    assert dict(stages)["root"] == ["acme-org"]
    assert dict(stages)["role_definitions"] == ["role-definition-acme-auditor"]


def test_secrets_are_masked(full_config, context) -> None:
    policy = resolve_policy(full_config, context)
    credential = policy.credentials[0].model_copy(update={"secret_value": "s3cret"})
    policy = policy.model_copy(update={"credentials": [credential]})

    assert policy.to_document()["credentials"][0]["secret_value"] == MASKED_SECRET
    assert policy.to_document(mask_secrets=False)["credentials"][0]["secret_value"] == "s3cret"


def test_resource_group_with_unknown_environment(base_config, resource_groups, context) -> None:
    resource_groups["shared"]["environment"] = "qa"

    with pytest.raises(ReferentialError):
        resolve_policy({**base_config, "resource_groups": resource_groups}, context)


def test_resource_group_with_unknown_resource_type(base_config, resource_groups, context) -> None:
    resource_groups["shared"]["resource_types"] = ["queue"]

    with pytest.raises(RoleLookupError):
        resolve_policy({**base_config, "resource_groups": resource_groups}, context)


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"org_prefix": "acme_corp"}, "org_prefix"),
        ({"environments": []}, "environments"),
        ({"owners": []}, "owners"),
        ({"service_principals": {"ci/deploy": {"display_name": "ci"}}}, "service_principals"),
    ],
)
def test_invalid_configuration(base_config, overrides, field) -> None:
    with pytest.raises(ConfigValidationError) as excinfo:
        load_policy_config({**base_config, **overrides})

    assert field in excinfo.value.field_errors


def test_tier_without_prerequisite(base_config, context) -> None:
    with pytest.raises(ReferentialError):
        resolve_policy({**base_config, "enable_management_group_assignments": True}, context)


def test_hyphenated_service_principal_names_resolve(base_config, context) -> None:
    grant = {"scope": f"/subscriptions/{SUBSCRIPTION_ID}", "role": "Reader"}
    policy = resolve_policy({
        **base_config,
        "service_principals": {
            "a": {"display_name": "a", "roles": {"b-c": grant}},
            "a-b": {"display_name": "a-b", "roles": {"c": grant}},
        },
    }, context)

    assert [a.key for a in policy.service_principal_assignments()] == [
        "service_principal-a-b/c",
        "service_principal-a/b-c",
    ]


def test_explicit_context_ignores_rotation_settings(full_config, context, monkeypatch) -> None:
    before = resolve_policy(full_config, context)
    monkeypatch.setattr(config, "CREDENTIAL_ROTATION_DAYS", 10)
    monkeypatch.setattr(config, "CREDENTIAL_RENEW_WITHIN_DAYS", 5)
    after = resolve_policy(full_config, context)

    assert diff_policies(before, after).is_empty
