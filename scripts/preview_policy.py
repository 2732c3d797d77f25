"""
Preview script that resolves a policy file and logs its summary.

Reads the JSON configuration named by POLICY_CONFIG_PATH, resolves it with a
context built from the environment and logs the summary views and apply
stages. Nothing is created against any backend.

Usage:
    POLICY_CONFIG_PATH=policy.json uv run python -m scripts.preview_policy
"""
import json
import sys
from pathlib import Path

from rbac_compiler.core import config
from rbac_compiler.core.context import ResolutionContext
from rbac_compiler.core.errors import PolicyError
from rbac_compiler.features.policy.assembler import load_policy_config, resolve_policy
from rbac_compiler.utils import get_logger


log = get_logger(__name__)


def main() -> int:
    """Resolve the configured policy file and log what would be applied."""
    if not config.POLICY_CONFIG_PATH:
        log.error("POLICY_CONFIG_PATH is not set")
        return 2

    path = Path(config.POLICY_CONFIG_PATH)
    log.info("Loading policy configuration from %s", path)
    try:
        policy_config = load_policy_config(json.loads(path.read_text(encoding="utf-8")))
        context = ResolutionContext.from_settings(tenant_id=policy_config.tenant_id)
        policy = resolve_policy(policy_config, context)
    except PolicyError as e:
        log.error("Policy resolution failed: %s %s", e, e.details)
        return 1

    log.info("")
    log.info("Apply stages:")
    for stage, keys in policy.apply_stages():
        log.info("  - %s: %d", stage, len(keys))

    log.info("")
    log.info("Environments:")
    for environment, summary in policy.summary.by_environment.items():
        log.info("  - %s (%s)", environment, summary.group_key)
        for persona, persona_summary in summary.personas.items():
            log.info("      %s: %s", persona, ", ".join(persona_summary.roles) or "-")

    log.info("")
    log.info("Privileged groups:")
    for group in policy.summary.privileged_groups:
        log.info("  - %s: %s", group.key, ", ".join(group.roles))
    return 0


if __name__ == "__main__":
    sys.exit(main())
