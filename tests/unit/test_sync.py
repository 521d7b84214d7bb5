import pytest

from application import SyncCoordinator
from domain.errors import BadInputError, NotFoundError
from domain.tree import find_by_id
from infrastructure.store import InMemoryCategoryStore


@pytest.fixture
def sync(store, reconciler) -> SyncCoordinator:
    return SyncCoordinator(store, reconciler)


def test_import_creates_every_descriptor_as_root(reconciler) -> None:
    store = InMemoryCategoryStore()
    result = SyncCoordinator(store, reconciler).import_tree(
        {"categories": [{"name": "Caro-Kann", "children": [{"name": "Advance"}]}, {"name": "Pirc"}]}
    )

    assert result.success
    assert result.processed == 2
    roots = store.load_forest()
    assert [r.name for r in roots] == ["Caro-Kann", "Pirc"]
    assert roots[0].children[0].parent == roots[0].id


def test_import_collects_per_item_errors_and_continues(reconciler) -> None:
    store = InMemoryCategoryStore()
    result = SyncCoordinator(store, reconciler).import_tree(
        [
            {"name": "Bad", "children": [{"createUuid": "x"}, {"createUuid": "x"}]},
            "not an object",
            {"name": "Good"},
        ]
    )

    assert not result.success
    assert result.processed == 1
    assert [e.name for e in result.errors] == ["Bad", None]
    assert [r.name for r in store.load_forest()] == ["Good"]


def test_non_array_payload_is_rejected(sync) -> None:
    with pytest.raises(BadInputError):
        sync.import_tree({"name": "Sicilian"})
    with pytest.raises(BadInputError):
        sync.sync_tree("Sicilian")


def test_sync_create_matches_by_name(sync, store) -> None:
    result = sync.sync_create([{"name": "Sicilian"}, {"name": "Caro-Kann"}])

    assert [(r["name"], r["existed"]) for r in result.results] == [("Sicilian", True), ("Caro-Kann", False)]
    assert [r.name for r in store.load_forest()] == ["Sicilian", "French", "Caro-Kann"]


def test_sync_tree_merges_creates_and_deactivates(sync, store) -> None:
    result = sync.sync_tree(
        [
            {"createUuid": "s1", "name": "Sicilian Defence", "children": [{"createUuid": "d1", "name": "Dragon X"}]},
            {"name": "Caro-Kann"},
        ]
    )

    assert result.success
    assert result.processed == 2
    sicilian, french, caro = store.load_forest()

    assert sicilian.id == "s"
    assert sicilian.name == "Sicilian Defence"
    assert [(c.id, c.name, c.active) for c in sicilian.children] == [("d", "Dragon X", True), ("n", "Najdorf", False)]
    assert french.active is False
    assert caro.name == "Caro-Kann"
    assert caro.active is True


def test_sync_tree_can_keep_missing_roots(sync, store) -> None:
    sync.sync_tree([{"createUuid": "s1"}], deactivate_missing=False)
    assert all(r.active for r in store.load_forest())


def test_sync_tree_error_in_one_root_does_not_stop_the_batch(sync, store) -> None:
    result = sync.sync_tree(
        [
            {"createUuid": "s1", "name": "Sicilian", "children": [{"createUuid": "d1"}, {"createUuid": "d1"}]},
            {"createUuid": "f1", "name": "French Defence"},
        ]
    )

    assert result.processed == 1
    assert [e.name for e in result.errors] == ["Sicilian"]
    assert result.errors[0].field == "createUuid"
    names = {r.id: r.name for r in store.load_forest()}
    assert names == {"s": "Sicilian", "f": "French Defence"}


def test_ensure_subcategory_returns_existing_child(sync, store) -> None:
    result = sync.ensure_subcategory("s", "Dragon")
    assert result.existed
    assert result.category["id"] == "d"
    assert store.write_count == 0


def test_ensure_subcategory_appends_once(sync, store) -> None:
    first = sync.ensure_subcategory("n", "Adams Attack")
    second = sync.ensure_subcategory("n", "Adams Attack")

    assert not first.existed
    assert second.existed
    assert first.category["id"] == second.category["id"]
    assert first.category["parent"] == "n"
    najdorf = find_by_id(store.load_forest(), "n")
    assert [c.name for c in najdorf.children] == ["English Attack", "Adams Attack"]
    assert store.write_count == 1


def test_ensure_subcategory_validates_input(sync) -> None:
    with pytest.raises(BadInputError):
        sync.ensure_subcategory("s", "")
    with pytest.raises(BadInputError):
        sync.ensure_subcategory(None, "Dragon")
    with pytest.raises(NotFoundError):
        sync.ensure_subcategory("missing", "Dragon")


def test_sync_tree_rejects_repeated_create_uuid_in_batch(sync, store) -> None:
    result = sync.sync_tree([{"createUuid": "s1", "name": "A"}, {"createUuid": "s1", "name": "B"}])

    assert not result.success
    assert result.processed == 1
    assert [e.name for e in result.errors] == ["B"]
    assert result.errors[0].field == "createUuid"
    assert [r.name for r in store.load_forest() if r.create_uuid == "s1"] == ["A"]
