"""
Service principal credential API routes.
"""
from fastapi import APIRouter

from rbac_compiler.core.context import ResolutionContext
from rbac_compiler.features.service_principals.resolver import rotate_credentials
from rbac_compiler.features.service_principals.schemas import (
    CredentialRotationRequest,
    CredentialRotationResult,
)


router = APIRouter()


@router.post("/credentials/rotate", response_model=CredentialRotationResult)
async def rotate(body: CredentialRotationRequest):
    """
    Renew credentials expiring inside the rotation window.

    Has to be called periodically; resolution alone never extends an expiry.
    """
    return rotate_credentials(
        body.credentials,
        ResolutionContext.from_settings(now=body.now),
        rotation_days=body.rotation_days,
        renew_within_days=body.renew_within_days,
    )
