import json

import pytest

from domain.errors import BadInputError, ConflictError, NotFoundError, StoreError
from domain.schemas import CategoryNode
from infrastructure.store import InMemoryCategoryStore, JsonFileCategoryStore


def test_load_forest_returns_copies(store) -> None:
    forest = store.load_forest()
    forest[0].name = "changed"
    assert store.load_forest()[0].name == "Sicilian"


def test_persist_subtree_creates_then_requires_matching_revision() -> None:
    store = InMemoryCategoryStore()
    created = store.persist_subtree("r", fields={"name": "Pirc"}, children=[], expected_revision=0)
    assert created.revision == 1

    with pytest.raises(ConflictError):
        store.persist_subtree("r", fields={"name": "Pirc"}, expected_revision=0)

    updated = store.persist_subtree("r", fields={"name": "Pirc Defence"}, expected_revision=1)
    assert updated.name == "Pirc Defence"
    assert updated.revision == 2
    assert len(store.load_forest()) == 1


def test_persist_subtree_children_only_keeps_fields(store) -> None:
    stored = store.persist_subtree("f", children=[{"id": "t", "name": "Tarrasch", "parent": "f"}])
    assert stored.name == "French"
    assert [c.name for c in stored.children] == ["Tarrasch"]


def test_persist_subtree_ignores_identity_keys_in_fields(store) -> None:
    stored = store.persist_subtree("f", fields={"id": "other", "revision": 99, "name": "French Defence"})
    assert stored.id == "f"
    assert stored.revision == 1


def test_persist_subtree_needs_something_to_write(store) -> None:
    with pytest.raises(BadInputError):
        store.persist_subtree("f")


def test_append_child_at_any_depth(store) -> None:
    child = CategoryNode(id="z", name="Zagreb", parent="e")
    stored = store.append_child("e", child)

    assert stored.id == "z"
    sicilian = store.load_forest()[0]
    assert [c.name for c in sicilian.children[1].children[0].children] == ["Zagreb"]
    assert sicilian.revision == 1
    assert store.write_count == 1


def test_append_child_unknown_parent(store) -> None:
    with pytest.raises(NotFoundError):
        store.append_child("missing", {"id": "z", "name": "Zagreb"})
    assert store.write_count == 0


def test_json_file_store_round_trip(tmp_path, forest) -> None:
    path = tmp_path / "store" / "categories.json"
    store = JsonFileCategoryStore(path)
    assert store.load_forest() == []

    for root in forest:
        store.persist_subtree(root.id, fields=root, children=root.children, expected_revision=0)

    reopened = JsonFileCategoryStore(path).load_forest()
    assert [r.name for r in reopened] == ["Sicilian", "French"]
    assert reopened[0].children[1].children[0].name == "English Attack"
    assert reopened[0].created_date == forest[0].created_date
    assert reopened[0].ai_config.system_prompt == "S"


def test_json_file_store_accepts_export_object(tmp_path) -> None:
    path = tmp_path / "export.json"
    path.write_text(json.dumps({"success": True, "categories": [{"_id": "x", "name": "Dutch", "__v": 3}]}))

    roots = JsonFileCategoryStore(path).load_forest()
    assert roots[0].id == "x"
    assert roots[0].revision == 3


def test_json_file_store_reports_bad_files_as_store_errors(tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(StoreError):
        JsonFileCategoryStore(path).load_forest()

    path.write_text(json.dumps({"name": "not a list"}))
    with pytest.raises(StoreError):
        JsonFileCategoryStore(path).load_forest()
