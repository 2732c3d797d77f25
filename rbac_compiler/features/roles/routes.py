"""
Read-only role table API routes, backed by the built-in tables.
"""
from fastapi import APIRouter

from rbac_compiler.core.personas import Persona
from rbac_compiler.features.roles.resolver import RoleResolver
from rbac_compiler.features.roles.schemas import RoleListResponse, RoleTablesResponse


router = APIRouter()
resolver = RoleResolver()


@router.get("", response_model=RoleTablesResponse)
async def list_tables():
    """Names covered by the built-in tables."""
    return RoleTablesResponse(environments=resolver.environments, resource_types=resolver.resource_types)


@router.get("/environments/{environment}/{persona}", response_model=RoleListResponse)
async def roles_for_environment(environment: str, persona: Persona):
    """Default roles for an (environment, persona) pair."""
    return RoleListResponse(
        persona=persona,
        environment=environment,
        roles=resolver.roles_for_environment(environment, persona),
    )


@router.get("/resource-types/{resource_type}/{persona}", response_model=RoleListResponse)
async def roles_for_resource_type(resource_type: str, persona: Persona):
    """Default roles for a (resource type, persona) pair; empty when the persona has no access."""
    return RoleListResponse(
        persona=persona,
        resource_type=resource_type,
        roles=resolver.roles_for_resource_type(resource_type, persona),
    )
