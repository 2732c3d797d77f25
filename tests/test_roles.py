import pytest

from rbac_compiler.core.errors import RoleLookupError
from rbac_compiler.core.personas import Persona
from rbac_compiler.features.roles.resolver import RoleResolver, dedupe_roles
from rbac_compiler.features.roles.tables import DEFAULT_ENVIRONMENT_ROLES


def test_dev_technical_roles() -> None:
    roles = RoleResolver().roles_for_environment("dev", Persona.TECHNICAL)

    assert roles == [
        "Contributor",
        "Key Vault Administrator",
        "Storage Blob Data Contributor",
        "Log Analytics Reader",
    ]


def test_persona_accepts_plain_string() -> None:
    resolver = RoleResolver()

    assert resolver.roles_for_environment("prod", "admin") == resolver.roles_for_environment("prod", Persona.ADMIN)


def test_built_in_tables_have_no_duplicates() -> None:
    resolver = RoleResolver()
    for environment in DEFAULT_ENVIRONMENT_ROLES:
        for persona in Persona:
            roles = resolver.roles_for_environment(environment, persona)
            assert len(roles) == len(set(roles))


def test_unknown_environment_raises_lookup_error() -> None:
    with pytest.raises(LookupError):
        RoleResolver().roles_for_environment("staging", Persona.TECHNICAL)

    with pytest.raises(RoleLookupError) as excinfo:
        RoleResolver().roles_for_environment("staging", Persona.TECHNICAL)
    assert excinfo.value.details["known"] == ["dev", "prod", "test"]


def test_supplied_table_covers_new_environment() -> None:
    resolver = RoleResolver(environment_tables={
        "staging": {
            "non_technical": ["Reader"],
            "technical": ["Contributor", "Contributor", "Reader"],
            "solo_project": ["Contributor"],
            "admin": ["Owner"],
        },
    })

    assert resolver.covers_environment("staging")
    assert resolver.roles_for_environment("staging", Persona.TECHNICAL) == ["Contributor", "Reader"]
    assert resolver.environments == ["dev", "prod", "staging", "test"]


def test_supplied_table_missing_persona() -> None:
    resolver = RoleResolver(environment_tables={"staging": {"technical": ["Reader"]}})

    with pytest.raises(RoleLookupError):
        resolver.roles_for_environment("staging", Persona.ADMIN)


def test_override_takes_precedence_over_tables() -> None:
    resolver = RoleResolver(
        environment_tables={"dev": {persona.value: ["Reader"] for persona in Persona}},
        environment_overrides={"dev": {"technical": ["Owner"]}},
    )

    assert resolver.roles_for_environment("dev", Persona.TECHNICAL) == ["Owner"]
    assert resolver.roles_for_environment("dev", Persona.ADMIN) == ["Reader"]


def test_resource_type_without_access_is_empty() -> None:
    resolver = RoleResolver()

    assert resolver.roles_for_resource_type("networking", Persona.NON_TECHNICAL) == []
    assert resolver.roles_for_resource_type("storage", Persona.NON_TECHNICAL) == ["Storage Blob Data Reader"]


def test_resource_type_override() -> None:
    resolver = RoleResolver(resource_type_overrides={"networking": {"non_technical": ["Reader"]}})

    assert resolver.roles_for_resource_type("networking", Persona.NON_TECHNICAL) == ["Reader"]


def test_unknown_resource_type() -> None:
    with pytest.raises(LookupError):
        RoleResolver().roles_for_resource_type("queue", Persona.ADMIN)


def test_dedupe_keeps_first_occurrence() -> None:
    assert dedupe_roles(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
