import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Defaults for the explicit resolution context; nothing in the pipeline reads these directly
AZURE_TENANT_ID: Optional[str] = os.environ.get("AZURE_TENANT_ID")
AZURE_SUBSCRIPTION_ID: Optional[str] = os.environ.get("AZURE_SUBSCRIPTION_ID")
MANAGEMENT_GROUP_ID: Optional[str] = os.environ.get("MANAGEMENT_GROUP_ID")

# Service principal secrets
CREDENTIAL_ROTATION_DAYS: int = int(os.environ.get("CREDENTIAL_ROTATION_DAYS", "90"))
CREDENTIAL_RENEW_WITHIN_DAYS: int = int(os.environ.get("CREDENTIAL_RENEW_WITHIN_DAYS", "30"))

LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

# Allow requests from this origin
ALLOW_ORIGIN: Optional[str] = os.environ.get("ALLOW_ORIGIN")

# If true, enable docs and openapi.json endpoints
ENABLE_DOCS: bool = os.environ.get("ENABLE_DOCS") == "1"

# Rate limit applied to policy resolution requests
RESOLVE_RATE_LIMIT: str = os.environ.get("RESOLVE_RATE_LIMIT", "60/minute")

# JSON policy file read by scripts/preview_policy.py
POLICY_CONFIG_PATH: Optional[str] = os.environ.get("POLICY_CONFIG_PATH")
