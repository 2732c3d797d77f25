"""
Pydantic schemas for the group hierarchy.
"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from rbac_compiler.core.personas import Persona


class GroupLevel(str, Enum):
    ROOT = "root"
    ENVIRONMENT = "environment"
    PERSONA = "persona"
    PROJECT = "project"


class Group(BaseModel):
    """A security group addressed by its stable key."""
    key: str = Field(..., description="Hyphen-joined ancestor path, globally unique")
    display_name: str
    description: str
    parent_key: Optional[str] = Field(None, description="Null only for the root group")
    level: GroupLevel
    environment: Optional[str] = None
    persona: Optional[Persona] = None
    project: Optional[str] = None
    owners: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def is_privileged(self) -> bool:
        return self.persona is Persona.ADMIN


class MembershipEdge(BaseModel):
    """Nests ``child_group_key`` inside ``parent_group_key``."""
    parent_group_key: str
    child_group_key: str

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> str:
        return f"{self.parent_group_key}/{self.child_group_key}"


class Hierarchy(BaseModel):
    """Flat group collection plus the parent edges derived from it."""
    groups: List[Group] = []
    memberships: List[MembershipEdge] = []

    model_config = ConfigDict(frozen=True)

    @property
    def root(self) -> Group:
        return next(group for group in self.groups if group.parent_key is None)

    def children(self, key: str) -> List[Group]:
        """Groups whose parent is ``key``, found by scanning parent keys."""
        return [group for group in self.groups if group.parent_key == key]

    def persona_groups(self) -> List[Group]:
        return [group for group in self.groups if group.level is GroupLevel.PERSONA]

    def project_groups(self) -> List[Group]:
        return [group for group in self.groups if group.level is GroupLevel.PROJECT]
