"""
Effective role lookup.

Precedence, highest first:
1. Per-pair overrides (environment or resource type, persona)
2. Caller-supplied tables
3. Built-in tables
"""
from typing import Dict, List, Mapping, Optional, Sequence

from rbac_compiler.core.errors import RoleLookupError
from rbac_compiler.core.personas import Persona
from rbac_compiler.features.roles.tables import (
    DEFAULT_ENVIRONMENT_ROLES,
    DEFAULT_RESOURCE_TYPE_ROLES,
)
from rbac_compiler.utils import get_logger


log = get_logger(__name__)

RoleTable = Mapping[str, Mapping[str, Sequence[str]]]


def dedupe_roles(roles: Sequence[str]) -> List[str]:
    """Drop repeated role names, keeping the first occurrence."""
    seen = set()
    unique = []
    for role in roles:
        if role in seen:
            continue
        seen.add(role)
        unique.append(role)
    return unique


def _normalize(table: Optional[RoleTable]) -> Dict[str, Dict[Persona, Sequence[str]]]:
    if not table:
        return {}
    return {
        name: {Persona(persona): tuple(roles) for persona, roles in entries.items()}
        for name, entries in table.items()
    }


class RoleResolver:
    """
    Pure lookups against the environment and resource-type role tables.

    Usage:
        resolver = RoleResolver(environment_tables={"staging": {...}})
        resolver.roles_for_environment("staging", Persona.TECHNICAL)
    """

    def __init__(
        self,
        environment_tables: Optional[RoleTable] = None,
        resource_type_tables: Optional[RoleTable] = None,
        environment_overrides: Optional[RoleTable] = None,
        resource_type_overrides: Optional[RoleTable] = None,
    ):
        self._environment_tables = {**_normalize(DEFAULT_ENVIRONMENT_ROLES), **_normalize(environment_tables)}
        self._resource_type_tables = {**_normalize(DEFAULT_RESOURCE_TYPE_ROLES), **_normalize(resource_type_tables)}
        self._environment_overrides = _normalize(environment_overrides)
        self._resource_type_overrides = _normalize(resource_type_overrides)

    @classmethod
    def from_config(cls, config) -> "RoleResolver":
        """Build a resolver from a :class:`PolicyConfig`."""
        return cls(
            environment_tables=config.environment_role_tables,
            resource_type_tables=config.resource_type_role_tables,
            environment_overrides=config.environment_role_overrides,
            resource_type_overrides=config.resource_type_role_overrides,
        )

    @property
    def environments(self) -> List[str]:
        return sorted(self._environment_tables)

    @property
    def resource_types(self) -> List[str]:
        return sorted(self._resource_type_tables)

    def covers_environment(self, environment: str) -> bool:
        return environment in self._environment_tables

    def roles_for_environment(self, environment: str, persona: Persona | str) -> List[str]:
        """
        Return the deduplicated role list for an (environment, persona) pair.

        Raises:
            RoleLookupError: no override, supplied table or built-in table covers the pair
        """
        persona = Persona(persona)
        override = self._environment_overrides.get(environment, {}).get(persona)
        if override is not None:
            log.debug("Using role override for %s/%s", environment, persona.value)
            return dedupe_roles(override)

        table = self._environment_tables.get(environment)
        if table is None:
            raise RoleLookupError(
                f"No role table for environment '{environment}'",
                details={"environment": environment, "known": self.environments},
            )
        if persona not in table:
            raise RoleLookupError(
                f"Role table for environment '{environment}' has no entry for persona '{persona.value}'",
                details={"environment": environment, "persona": persona.value},
            )
        return dedupe_roles(table[persona])

    def roles_for_resource_type(self, resource_type: str, persona: Persona | str) -> List[str]:
        """
        Return the deduplicated role list for a (resource type, persona) pair.

        A persona with no access yields ``[]``; an unknown resource type raises
        :class:`RoleLookupError`.
        """
        persona = Persona(persona)
        override = self._resource_type_overrides.get(resource_type, {}).get(persona)
        if override is not None:
            return dedupe_roles(override)

        table = self._resource_type_tables.get(resource_type)
        if table is None:
            raise RoleLookupError(
                f"No role table for resource type '{resource_type}'",
                details={"resource_type": resource_type, "known": self.resource_types},
            )
        return dedupe_roles(table.get(persona, ()))
