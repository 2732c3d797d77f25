"""
Explicit resolution context.

Built once at the start of a run and passed to every component, so no part of
the pipeline reads ambient tenant, subscription or rotation settings.
"""
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from rbac_compiler.core import config


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Read timestamps without an offset as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ResolutionContext(BaseModel):
    tenant_id: Optional[str] = Field(None, description="Directory (tenant) id")
    subscription_id: Optional[str] = Field(None, description="Target subscription id")
    management_group_id: Optional[str] = Field(
        None, description="Resolved management group id; derived from the configured name when absent"
    )
    now: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    rotation_days: int = Field(90, description="Credential validity when a principal sets none")
    renew_within_days: int = Field(30, description="Rotation window used by credential renewal")

    model_config = ConfigDict(frozen=True)

    @field_validator('now')
    @classmethod
    def now_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @classmethod
    def from_settings(cls, tenant_id: Optional[str] = None, now: Optional[datetime] = None) -> "ResolutionContext":
        """
        Build a context from environment settings.

        An explicit ``tenant_id`` (usually from the policy config) wins over
        ``AZURE_TENANT_ID``.
        """
        values = {
            "tenant_id": tenant_id or config.AZURE_TENANT_ID,
            "subscription_id": config.AZURE_SUBSCRIPTION_ID,
            "management_group_id": config.MANAGEMENT_GROUP_ID,
            "rotation_days": config.CREDENTIAL_ROTATION_DAYS,
            "renew_within_days": config.CREDENTIAL_RENEW_WITHIN_DAYS,
        }
        if now is not None:
            values["now"] = now
        return cls(**values)
