import pytest

from domain.errors import TreeStructureError
from domain.schemas import CategoryNode
from domain.tree import TreeIndex, find_by_id, iter_nodes


def test_find_by_id_reaches_nested_nodes(forest) -> None:
    found = find_by_id(forest, "e")
    assert found is not None
    assert found.name == "English Attack"


def test_find_by_id_returns_none_for_unknown_or_missing_id(forest) -> None:
    assert find_by_id(forest, "nope") is None
    assert find_by_id(forest, None) is None


def test_find_by_id_compares_ids_as_strings() -> None:
    roots = [CategoryNode.model_validate({"_id": 42, "name": "Ruy Lopez"})]
    assert find_by_id(roots, 42) is roots[0]
    assert find_by_id(roots, "42") is roots[0]


def test_iter_nodes_is_pre_order(forest) -> None:
    names = [node.name for node, _, _ in iter_nodes(forest)]
    assert names == ["Sicilian", "Dragon", "Najdorf", "English Attack", "French", "Winawer"]


def test_iter_nodes_rejects_trees_deeper_than_limit() -> None:
    node = CategoryNode(name="leaf")
    for i in range(5):
        node = CategoryNode(name=f"level{i}", children=[node])

    with pytest.raises(TreeStructureError):
        list(iter_nodes([node], max_depth=3))

    assert len(list(iter_nodes([node], max_depth=5))) == 6


def test_iter_nodes_detects_cycles() -> None:
    root = CategoryNode(id="r", name="Loop")
    root.children.append(root)
    with pytest.raises(TreeStructureError):
        list(iter_nodes([root]))


def test_tree_index_maps_nodes_to_owning_root(forest) -> None:
    index = TreeIndex.build(forest)

    assert len(index) == 6
    assert "e" in index
    assert index.root_of("e") == "s"
    assert index.root_of("w") == "f"
    assert index.root_of("s") == "s"
    assert index.parent_ids["e"] == "n"
    assert [c.name for c in index.children_of("s")] == ["Dragon", "Najdorf"]


def test_tree_index_keeps_first_occurrence_of_duplicate_id() -> None:
    roots = [
        CategoryNode(id="x", name="first"),
        CategoryNode(id="y", name="other", children=[CategoryNode(id="x", name="second")]),
    ]
    index = TreeIndex.build(roots)
    assert index.get("x").name == "first"
    assert find_by_id(roots, "x").name == "first"
