"""
Policy feature module.

Resolves a declarative multi-tenant RBAC configuration into a flat policy
document (groups, memberships, single-role assignments, service principals)
that a provisioning executor can apply idempotently.
"""
