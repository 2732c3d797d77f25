"""
Built-in default role tables.

Keyed by environment (or resource type), then by persona. These are data: a
caller can supply a different table for any name and the resolver will prefer it.
"""
from types import MappingProxyType

from rbac_compiler.core.personas import Persona


DEFAULT_ENVIRONMENT_ROLES = MappingProxyType({
    "dev": {
        Persona.NON_TECHNICAL: ("Reader", "Log Analytics Reader"),
        Persona.TECHNICAL: (
            "Contributor",
            "Key Vault Administrator",
            "Storage Blob Data Contributor",
            "Log Analytics Reader",
        ),
        Persona.SOLO_PROJECT: ("Contributor", "Key Vault Secrets Officer", "Storage Blob Data Contributor"),
        Persona.ADMIN: ("Owner", "User Access Administrator", "Key Vault Administrator"),
    },
    "test": {
        Persona.NON_TECHNICAL: ("Reader",),
        Persona.TECHNICAL: (
            "Contributor",
            "Key Vault Secrets User",
            "Storage Blob Data Contributor",
            "Log Analytics Reader",
        ),
        Persona.SOLO_PROJECT: ("Contributor", "Storage Blob Data Reader"),
        Persona.ADMIN: ("Owner", "User Access Administrator"),
    },
    "prod": {
        Persona.NON_TECHNICAL: ("Reader",),
        Persona.TECHNICAL: (
            "Reader",
            "Key Vault Secrets User",
            "Storage Blob Data Reader",
            "Log Analytics Reader",
        ),
        Persona.SOLO_PROJECT: ("Reader", "Storage Blob Data Reader"),
        Persona.ADMIN: ("Owner", "User Access Administrator", "Key Vault Administrator"),
    },
})


# An empty tuple means the persona has no access to that resource type
DEFAULT_RESOURCE_TYPE_ROLES = MappingProxyType({
    "key_vault": {
        Persona.NON_TECHNICAL: (),
        Persona.TECHNICAL: ("Key Vault Secrets User",),
        Persona.SOLO_PROJECT: ("Key Vault Secrets User",),
        Persona.ADMIN: ("Key Vault Administrator",),
    },
    "storage": {
        Persona.NON_TECHNICAL: ("Storage Blob Data Reader",),
        Persona.TECHNICAL: ("Storage Blob Data Contributor",),
        Persona.SOLO_PROJECT: ("Storage Blob Data Contributor",),
        Persona.ADMIN: ("Storage Account Contributor", "Storage Blob Data Owner"),
    },
    "networking": {
        Persona.NON_TECHNICAL: (),
        Persona.TECHNICAL: ("Reader",),
        Persona.SOLO_PROJECT: (),
        Persona.ADMIN: ("Network Contributor",),
    },
    "compute": {
        Persona.NON_TECHNICAL: (),
        Persona.TECHNICAL: ("Virtual Machine Contributor",),
        Persona.SOLO_PROJECT: ("Virtual Machine User Login",),
        Persona.ADMIN: ("Virtual Machine Contributor", "Virtual Machine Administrator Login"),
    },
    "database": {
        Persona.NON_TECHNICAL: (),
        Persona.TECHNICAL: ("SQL DB Contributor",),
        Persona.SOLO_PROJECT: ("SQL DB Contributor",),
        Persona.ADMIN: ("SQL Server Contributor", "SQL Security Manager"),
    },
    "monitoring": {
        Persona.NON_TECHNICAL: ("Monitoring Reader",),
        Persona.TECHNICAL: ("Monitoring Contributor", "Log Analytics Reader"),
        Persona.SOLO_PROJECT: ("Monitoring Reader",),
        Persona.ADMIN: ("Monitoring Contributor", "Log Analytics Contributor"),
    },
})

