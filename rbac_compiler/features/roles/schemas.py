"""
Pydantic schemas for role lookups.
"""
from typing import List, Optional
from pydantic import BaseModel

from rbac_compiler.core.personas import Persona


class RoleListResponse(BaseModel):
    persona: Persona
    environment: Optional[str] = None
    resource_type: Optional[str] = None
    roles: List[str] = []


class RoleTablesResponse(BaseModel):
    environments: List[str]
    resource_types: List[str]
