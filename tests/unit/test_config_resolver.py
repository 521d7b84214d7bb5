import pytest

from domain.errors import TreeStructureError
from domain.schemas import CategoryNode
from domain.tree import TreeIndex, find_by_id, merge_ai_config, resolve_ai_config
from domain.tree.config_resolver import ancestor_chain


def test_child_scalar_overrides_and_ancestor_only_keys_survive(forest) -> None:
    najdorf = find_by_id(forest, "n")
    resolved = resolve_ai_config(forest, najdorf)

    assert resolved["systemPrompt"] == "N"
    assert resolved["domainContext"] == "chess openings"


def test_nested_config_merges_per_key(forest) -> None:
    resolved = resolve_ai_config(forest, find_by_id(forest, "n"))
    assert resolved["questionConfig"] == {"defaultDifficulty": "medium", "focusArea": "sharp lines"}


def test_node_without_own_config_inherits_through_gaps(forest) -> None:
    english = find_by_id(forest, "e")
    resolved = resolve_ai_config(TreeIndex.build(forest), english)
    assert resolved["systemPrompt"] == "N"
    assert resolved["questionConfig"]["defaultDifficulty"] == "medium"


def test_no_config_anywhere_resolves_to_empty(forest) -> None:
    assert resolve_ai_config(forest, find_by_id(forest, "w")) == {}


def test_missing_parent_stops_the_walk() -> None:
    orphan = CategoryNode(id="o", name="Orphan", parent="gone", ai_config={"systemPrompt": "O"})
    assert [n.id for n in ancestor_chain([orphan], orphan)] == ["o"]
    assert resolve_ai_config([orphan], orphan) == {"systemPrompt": "O"}


def test_parent_cycle_is_rejected() -> None:
    a = CategoryNode(id="a", name="A", parent="b")
    b = CategoryNode(id="b", name="B", parent="a")
    with pytest.raises(TreeStructureError):
        resolve_ai_config([a, b], a)


def test_null_override_never_erases_resolved_value() -> None:
    base = {"systemPrompt": "S", "flashcardConfig": {"defaultDifficulty": 3}}
    merged = merge_ai_config(base, {"systemPrompt": None, "flashcardConfig": {"focusAreas": ["endgames"]}})

    assert merged["systemPrompt"] == "S"
    assert merged["flashcardConfig"] == {"defaultDifficulty": 3, "focusAreas": ["endgames"]}
    assert base == {"systemPrompt": "S", "flashcardConfig": {"defaultDifficulty": 3}}


def test_undeclared_object_keys_merge_per_key() -> None:
    merged = merge_ai_config({"customBlock": {"a": 1, "b": 2}}, {"customBlock": {"b": 3}})
    assert merged["customBlock"] == {"a": 1, "b": 3}


def test_undeclared_scalar_keys_override() -> None:
    merged = merge_ai_config({"tone": "formal", "customBlock": {"a": 1}}, {"tone": "casual"})
    assert merged == {"tone": "casual", "customBlock": {"a": 1}}


def test_undeclared_nested_config_is_inherited_through_tree() -> None:
    root = CategoryNode(id="r", name="Root", ai_config={"videoConfig": {"a": 1, "b": 2}})
    child = CategoryNode(id="c", name="Child", parent="r", ai_config={"videoConfig": {"b": 3}})
    root.children.append(child)

    assert resolve_ai_config([root], child) == {"videoConfig": {"a": 1, "b": 3}}
