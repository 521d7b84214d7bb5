"""
Category tree operations.

All functions in this package are pure (no store access); callers load the
forest, compute, and write back only the affected root document.
"""

from domain.tree.config_resolver import AI_CONFIG_MERGE_POLICY, MergePolicy, merge_ai_config, resolve_ai_config
from domain.tree.flatten import build_breadcrumb, flatten_forest, prune_inactive, shallow_summary
from domain.tree.locator import DEFAULT_MAX_DEPTH, TreeIndex, find_by_id, iter_nodes, normalize_id
from domain.tree.reconcile import TreeReconciler

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "TreeIndex",
    "find_by_id",
    "iter_nodes",
    "normalize_id",
    "flatten_forest",
    "build_breadcrumb",
    "prune_inactive",
    "shallow_summary",
    "resolve_ai_config",
    "merge_ai_config",
    "MergePolicy",
    "AI_CONFIG_MERGE_POLICY",
    "TreeReconciler",
]
