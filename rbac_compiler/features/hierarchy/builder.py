"""
Group hierarchy construction.

Builds four fixed layers: organization root, environments, personas and,
when enabled, per-project persona groups. Inputs are sorted before any key is
derived so that caller ordering never reaches the output.
"""
import re
from typing import Dict, Iterable, List, Optional, Sequence

from rbac_compiler.core.errors import ConfigValidationError
from rbac_compiler.core.personas import PERSONAS, PROJECT_PERSONAS
from rbac_compiler.features.hierarchy.schemas import Group, GroupLevel, Hierarchy, MembershipEdge
from rbac_compiler.utils import get_logger


log = get_logger(__name__)

PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9-]{1,20}$")
NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")


def validate_prefix(prefix: str) -> str:
    if not isinstance(prefix, str) or not PREFIX_PATTERN.match(prefix):
        raise ConfigValidationError(
            "Organization prefix must be 1-20 characters of letters, digits or hyphens",
            field_errors={"org_prefix": f"invalid value {prefix!r}"},
        )
    return prefix


def validate_names(names: Iterable[str], field: str) -> List[str]:
    """Return the names sorted, rejecting malformed entries and duplicates."""
    names = list(names)
    for name in names:
        if not isinstance(name, str) or not NAME_PATTERN.match(name):
            raise ConfigValidationError(
                f"Invalid {field} name {name!r}: use lowercase letters, digits and hyphens",
                field_errors={field: f"invalid value {name!r}"},
            )
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ConfigValidationError(
            f"Duplicate {field} names: {', '.join(duplicates)}",
            field_errors={field: "duplicate values"},
        )
    return sorted(names)


def group_key(*segments: str) -> str:
    return "-".join(segments)


def build_hierarchy(
    prefix: str,
    environments: Sequence[str],
    projects: Optional[Sequence[str]] = None,
    enable_project_groups: bool = False,
    owners: Optional[Iterable[str]] = None,
) -> Hierarchy:
    """
    Build the complete group set and its parent edges.

    Args:
        prefix: Organization prefix, at most 20 letters, digits or hyphens
        environments: Non-empty list of environment names
        projects: Optional project names, only used when project groups are enabled
        enable_project_groups: Add one group per (environment, project, non-admin persona)
        owners: Owner ids attached to every group

    Raises:
        ConfigValidationError: bad prefix, empty environment list or a key collision
    """
    validate_prefix(prefix)
    if not environments:
        raise ConfigValidationError(
            "At least one environment is required",
            field_errors={"environments": "must not be empty"},
        )
    environments = validate_names(environments, "environments")
    projects = validate_names(projects or [], "projects")
    owners = sorted(set(owners or []))

    groups: List[Group] = []

    root = Group(
        key=group_key(prefix, "org"),
        display_name=group_key(prefix, "org"),
        description=f"{prefix.title()} organization",
        parent_key=None,
        level=GroupLevel.ROOT,
        owners=owners,
    )
    groups.append(root)

    for environment in environments:
        env_key = group_key(prefix, environment)
        groups.append(Group(
            key=env_key,
            display_name=env_key,
            description=f"{environment.title()} environment",
            parent_key=root.key,
            level=GroupLevel.ENVIRONMENT,
            environment=environment,
            owners=owners,
        ))

        for persona in PERSONAS:
            persona_key = group_key(env_key, persona.label)
            groups.append(Group(
                key=persona_key,
                display_name=persona_key,
                description=persona.display_label,
                parent_key=env_key,
                level=GroupLevel.PERSONA,
                environment=environment,
                persona=persona,
                owners=owners,
            ))

            if not enable_project_groups or persona not in PROJECT_PERSONAS:
                continue
            for project in projects:
                project_key = group_key(persona_key, project)
                groups.append(Group(
                    key=project_key,
                    display_name=project_key,
                    description=f"{persona.display_label} ({project})",
                    parent_key=persona_key,
                    level=GroupLevel.PROJECT,
                    environment=environment,
                    persona=persona,
                    project=project,
                    owners=owners,
                ))

    _check_unique(groups)
    memberships = [
        MembershipEdge(parent_group_key=group.parent_key, child_group_key=group.key)
        for group in groups
        if group.parent_key is not None
    ]
    log.debug(
        "Built hierarchy for %s: %d groups, %d memberships",
        prefix, len(groups), len(memberships),
    )
    return Hierarchy(groups=groups, memberships=memberships)


def _check_unique(groups: List[Group]) -> None:
    seen: Dict[str, Group] = {}
    for group in groups:
        if group.key in seen:
            raise ConfigValidationError(
                f"Group key collision on '{group.key}'",
                details={"key": group.key},
            )
        seen[group.key] = group

