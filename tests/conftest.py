from datetime import datetime, timezone

import pytest

from rbac_compiler.core.context import ResolutionContext


NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)
TENANT_ID = "22222222-2222-2222-2222-222222222222"
SUBSCRIPTION_ID = "11111111-1111-1111-1111-111111111111"
OWNER_ID = "00000000-0000-0000-0000-000000000001"


@pytest.fixture
def context() -> ResolutionContext:
    return ResolutionContext(tenant_id=TENANT_ID, subscription_id=SUBSCRIPTION_ID, now=NOW)


@pytest.fixture
def base_config() -> dict:
    return {
        "org_prefix": "acme",
        "environments": ["dev", "prod"],
        "owners": [OWNER_ID],
    }


@pytest.fixture
def resource_groups() -> dict:
    return {
        "shared": {
            "id": f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/acme-shared",
            "name": "acme-shared",
            "environment": "dev",
            "resource_types": ["storage", "key_vault"],
            "criticality_level": "high",
        },
        "data": {
            "id": f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/acme-data",
            "name": "acme-data",
            "environment": "prod",
            "resource_types": ["database"],
            "criticality_level": "critical",
        },
    }
