"""
Inherited AI configuration.

A node's effective aiConfig is built by walking its `parent` chain to the root and
merging every ancestor's own config, oldest first, with the descendant winning.
How each key merges is declared in AI_CONFIG_MERGE_POLICY rather than inferred
from the value's shape.
"""

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from domain.errors import TreeStructureError
from domain.schemas import AiConfig, CategoryNode
from domain.tree.locator import DEFAULT_MAX_DEPTH, TreeIndex, normalize_id

logger = logging.getLogger(__name__)


class MergePolicy(str, Enum):
    """How a descendant's value combines with the value resolved so far."""

    OVERRIDE = "override"
    MERGE_ONE_LEVEL = "merge_one_level"


AI_CONFIG_MERGE_POLICY: dict[str, MergePolicy] = {
    "systemPrompt": MergePolicy.OVERRIDE,
    "domainContext": MergePolicy.OVERRIDE,
    "inheritToChildren": MergePolicy.OVERRIDE,
    "categoryGenerationConfig": MergePolicy.MERGE_ONE_LEVEL,
    "flashcardConfig": MergePolicy.MERGE_ONE_LEVEL,
    "questionConfig": MergePolicy.MERGE_ONE_LEVEL,
    "transcriptConfig": MergePolicy.MERGE_ONE_LEVEL,
}


def policy_for(key: str, value: Any) -> MergePolicy:
    """Declared policy for key; undeclared keys merge one level when object-valued."""
    policy = AI_CONFIG_MERGE_POLICY.get(key)
    if policy is not None:
        return policy
    return MergePolicy.MERGE_ONE_LEVEL if isinstance(value, Mapping) else MergePolicy.OVERRIDE


def _config_dict(config: AiConfig | Mapping[str, Any] | None) -> dict[str, Any]:
    if config is None:
        return {}
    if not isinstance(config, AiConfig):
        config = AiConfig.model_validate(config)
    return config.model_dump(by_alias=True, exclude_none=True)


def merge_ai_config(
    base: Mapping[str, Any],
    override: AiConfig | Mapping[str, Any] | None,
) -> dict[str, Any]:
    """
    Merge one config over an already-resolved one.

    Null values in `override` never erase a resolved value. Nested objects under a
    MERGE_ONE_LEVEL key merge per key; keys missing from the override survive.
    """
    result: dict[str, Any] = dict(base)

    for key, value in _config_dict(override).items():
        policy = policy_for(key, value)
        current = result.get(key)
        if policy is MergePolicy.MERGE_ONE_LEVEL and isinstance(value, Mapping) and isinstance(current, Mapping):
            result[key] = {**current, **value}
        elif isinstance(value, Mapping):
            result[key] = dict(value)
        else:
            result[key] = value

    return result


def ancestor_chain(
    forest: Iterable[CategoryNode] | TreeIndex,
    node: CategoryNode,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[CategoryNode]:
    """
    Return [root, ..., parent, node] following `parent` references.

    The walk stops when a parent id is missing or cannot be found in the forest.

    Raises:
        TreeStructureError: parent references loop, or the chain is longer than max_depth.
    """
    index = forest if isinstance(forest, TreeIndex) else TreeIndex.build(forest, max_depth=max_depth)

    chain = [node]
    visited = {normalize_id(node.id)} if node.id is not None else set()
    current = node

    while current.parent is not None:
        parent_id = normalize_id(current.parent)
        if parent_id in visited:
            raise TreeStructureError(f"Parent cycle detected at node {parent_id!r}", field="parent", value=parent_id)
        if len(chain) > max_depth:
            raise TreeStructureError(
                f"Ancestor chain of {node.id!r} exceeds maximum depth {max_depth}", field="parent", value=node.id
            )
        parent = index.get(parent_id)
        if parent is None:
            logger.debug("Parent %s of node %s not found; treating it as root", parent_id, current.id)
            break
        visited.add(parent_id)
        chain.append(parent)
        current = parent

    chain.reverse()
    return chain


def resolve_ai_config(
    forest: Iterable[CategoryNode] | TreeIndex,
    node: CategoryNode,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, Any]:
    """Effective aiConfig for node; `{}` when no ancestor (nor the node) has one."""
    resolved: dict[str, Any] = {}
    for ancestor in ancestor_chain(forest, node, max_depth=max_depth):
        if ancestor.ai_config is not None:
            resolved = merge_ai_config(resolved, ancestor.ai_config)
    return resolved
