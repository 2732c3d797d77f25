"""
Policy resolution API routes.
"""
from typing import Any, Dict
from fastapi import APIRouter, Request

from rbac_compiler.core import config
from rbac_compiler.core.context import ResolutionContext
from rbac_compiler.core.limiter import limiter
from rbac_compiler.features.policy.assembler import resolve_policy
from rbac_compiler.features.policy.diff import diff_policies
from rbac_compiler.features.policy.schemas import PolicyDiff, PolicyDiffRequest, PolicyRequest
from rbac_compiler.utils import get_logger


log = get_logger(__name__)
router = APIRouter()


@router.post("/resolve")
@limiter.limit(config.RESOLVE_RATE_LIMIT)
async def resolve(request: Request, body: PolicyRequest) -> Dict[str, Any]:
    """Resolve a policy configuration into the flat policy document (secrets masked)."""
    context = body.context or ResolutionContext.from_settings(tenant_id=body.config.tenant_id)
    policy = resolve_policy(body.config, context)
    return policy.to_document(mask_secrets=True)


@router.post("/diff", response_model=PolicyDiff)
async def diff(body: PolicyDiffRequest):
    """Compare two resolved documents by key."""
    result = diff_policies(body.previous, body.current)
    log.info("Policy diff computed, empty=%s", result.is_empty)
    return result
