"""
Service principal expansion and credential rotation.

Expiry is computed once, at resolution time, from the context clock. Nothing
rotates on its own: :func:`rotate_credentials` has to be invoked periodically.
"""
import uuid
from datetime import datetime, timedelta
from typing import Iterable, List, Mapping, Optional, Sequence

from rbac_compiler.core.context import ResolutionContext
from rbac_compiler.core.errors import ConfigValidationError
from rbac_compiler.features.assignments.expander import make_assignment
from rbac_compiler.features.assignments.schemas import CustomScope, ScopeTier
from rbac_compiler.features.service_principals.schemas import (
    MASKED_SECRET,
    ApplicationRecord,
    CredentialRecord,
    CredentialRotationResult,
    OwnerEdge,
    ResolvedServicePrincipals,
    ServicePrincipalConfig,
    ServicePrincipalRecord,
)
from rbac_compiler.utils import get_logger


log = get_logger(__name__)

MIN_ROTATION_DAYS = 1
MAX_ROTATION_DAYS = 730

# Fixed namespace so key ids are reproducible for identical input
CREDENTIAL_NAMESPACE = uuid.UUID("0b8f4c1e-5d0a-5b55-9a57-3f7f1c3e2a10")


def validate_rotation_days(rotation_days: int, field: str = "rotation_days") -> int:
    if not isinstance(rotation_days, int) or not MIN_ROTATION_DAYS <= rotation_days <= MAX_ROTATION_DAYS:
        raise ConfigValidationError(
            f"{field} must be between {MIN_ROTATION_DAYS} and {MAX_ROTATION_DAYS} days",
            field_errors={field: f"invalid value {rotation_days!r}"},
        )
    return rotation_days


def credential_key_id(application_key: str, end_date: datetime) -> str:
    return str(uuid.uuid5(CREDENTIAL_NAMESPACE, f"{application_key}:{end_date.isoformat()}"))


def issue_credential(application_key: str, name: str, now: datetime, rotation_days: int) -> CredentialRecord:
    end_date = now + timedelta(hours=rotation_days * 24)
    return CredentialRecord(
        key=f"credential-{name}",
        application_id=application_key,
        key_id=credential_key_id(application_key, end_date),
        end_date=end_date,
    )


def mask_credential(credential: CredentialRecord) -> CredentialRecord:
    if credential.secret_value is None:
        return credential
    return credential.model_copy(update={"secret_value": MASKED_SECRET})


def resolve_service_principals(
    service_principals: Optional[Mapping[str, ServicePrincipalConfig]],
    context: ResolutionContext,
    default_owners: Iterable[str] = (),
) -> ResolvedServicePrincipals:
    """
    Expand service principal definitions into application, principal,
    credential, owner and assignment records.

    Roles are taken verbatim from each definition; no role table is consulted.
    """
    applications: List[ApplicationRecord] = []
    principals: List[ServicePrincipalRecord] = []
    owner_edges: List[OwnerEdge] = []
    credentials: List[CredentialRecord] = []
    assignments = []

    for name, definition in sorted((service_principals or {}).items()):
        rotation_days = validate_rotation_days(
            definition.rotation_days if definition.rotation_days is not None else context.rotation_days,
            field=f"service_principals.{name}.rotation_days",
        )
        owners = sorted(set(definition.owners or default_owners))
        if not owners:
            raise ConfigValidationError(
                f"Service principal '{name}' has no owners",
                field_errors={f"service_principals.{name}.owners": "must not be empty"},
            )
        tags = sorted(set(definition.tags))

        application = ApplicationRecord(
            key=f"application-{name}",
            name=name,
            display_name=definition.display_name,
            description=definition.description,
            owners=owners,
            tags=tags,
        )
        principal = ServicePrincipalRecord(
            key=f"service-principal-{name}",
            application_key=application.key,
            owners=owners,
            tags=tags,
        )
        applications.append(application)
        principals.append(principal)
        credentials.append(issue_credential(application.key, name, context.now, rotation_days))
        owner_edges += [OwnerEdge(principal_key=principal.key, owner_id=owner) for owner in owners]

        for label, grant in sorted(definition.roles.items()):
            assignments.append(make_assignment(
                key=f"{ScopeTier.SERVICE_PRINCIPAL.value}-{name}/{label}",
                tier=ScopeTier.SERVICE_PRINCIPAL,
                scope=CustomScope(id=grant.scope),
                role=grant.role,
                principal_key=principal.key,
                principal_type="service_principal",
            ))

    if applications:
        log.info("Resolved %d service principals with %d role assignments", len(applications), len(assignments))
    return ResolvedServicePrincipals(
        applications=applications,
        service_principals=principals,
        owner_edges=owner_edges,
        credentials=credentials,
        assignments=assignments,
    )


def rotate_credentials(
    credentials: Sequence[CredentialRecord],
    context: ResolutionContext,
    rotation_days: Optional[int] = None,
    renew_within_days: Optional[int] = None,
) -> CredentialRotationResult:
    """
    Renew credentials whose expiry falls inside the rotation window.

    Args:
        credentials: Previously resolved credential records
        context: Supplies the reference time and the default rotation period
            and window
        rotation_days: Validity of a renewed credential, 1-730 days
        renew_within_days: Credentials expiring within this many days are renewed;
            must be smaller than ``rotation_days``

    Returns:
        All credentials, renewed ones carrying a new end date and key id.
        Secret values passed in are never echoed back.
    """
    rotation_days = validate_rotation_days(context.rotation_days if rotation_days is None else rotation_days)
    if renew_within_days is None:
        renew_within_days = context.renew_within_days
    if not 0 <= renew_within_days < rotation_days:
        raise ConfigValidationError(
            "renew_within_days must be at least 0 and smaller than rotation_days",
            field_errors={"renew_within_days": f"invalid value {renew_within_days!r}"},
        )

    now = context.now
    window_end = now + timedelta(days=renew_within_days)
    renewed: List[CredentialRecord] = []
    rotated: List[str] = []
    for credential in credentials:
        if credential.end_date > window_end:
            renewed.append(mask_credential(credential))
            continue
        end_date = now + timedelta(hours=rotation_days * 24)
        renewed.append(credential.model_copy(update={
            "end_date": end_date,
            "key_id": credential_key_id(credential.application_id, end_date),
            "secret_value": None,
        }))
        rotated.append(credential.key)

    log.info("Rotated %d of %d credentials", len(rotated), len(credentials))
    return CredentialRotationResult(credentials=renewed, rotated=rotated)
