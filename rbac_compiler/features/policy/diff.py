"""
Key-based comparison of two resolved policies.
"""
from rbac_compiler.features.policy.schemas import EntityDiff, PolicyDiff, ResolvedPolicy


def diff_policies(previous: ResolvedPolicy, current: ResolvedPolicy) -> PolicyDiff:
    """
    Compare two resolutions kind by kind.

    Records present in both with different content are reported as changed.
    Unchanged input yields an empty diff.
    """
    before = previous.entity_index()
    after = current.entity_index()
    changes = {}
    for kind in after:
        old, new = before[kind], after[kind]
        changes[kind] = EntityDiff(
            added=sorted(new.keys() - old.keys()),
            removed=sorted(old.keys() - new.keys()),
            changed=sorted(key for key in new.keys() & old.keys() if new[key] != old[key]),
        )
    return PolicyDiff(changes=changes)
