import pytest

from domain.errors import BadInputError
from domain.grid import GridRequest, run_grid_query, search_rows, sort_rows
from domain.grid.query import SortModelItem


def _rows(n: int = 10) -> list[dict]:
    return [{"id": str(i), "name": f"Line {i}", "depth": i % 3} for i in range(n)]


def test_page_of_two_reports_total_row_count() -> None:
    result = run_grid_query(_rows(), {"startRow": 0, "endRow": 2})
    assert len(result.rows) == 2
    assert result.last_row == 10
    assert result.model_dump(by_alias=True)["lastRow"] == 10


def test_start_past_end_returns_empty_page() -> None:
    result = run_grid_query(_rows(), {"startRow": 50, "endRow": 60})
    assert result.rows == []
    assert result.last_row == 10


def test_missing_window_uses_defaults() -> None:
    result = run_grid_query(_rows(150), None)
    assert len(result.rows) == 100
    assert result.last_row == 150

    result = run_grid_query(_rows(), {}, default_start_row=8, default_end_row=20)
    assert [r["id"] for r in result.rows] == ["8", "9"]


def test_total_is_independent_of_window() -> None:
    params = {"filterModel": {"depth": {"filterType": "number", "type": "equals", "filter": 0}}}
    totals = {
        run_grid_query(_rows(), {**params, "startRow": s, "endRow": e}).last_row for s, e in [(0, 1), (2, 3), (9, 100)]
    }
    assert totals == {4}


def test_multi_key_sort_is_stable() -> None:
    rows = [
        {"id": "a", "depth": 1, "name": "b"},
        {"id": "b", "depth": 0, "name": "z"},
        {"id": "c", "depth": 1, "name": "a"},
        {"id": "d", "depth": 1, "name": "a"},
        {"id": "e", "depth": 0, "name": "z"},
    ]
    ordered = sort_rows(rows, [SortModelItem(field="depth"), SortModelItem(field="name", direction="desc")])
    assert [r["id"] for r in ordered] == ["b", "e", "a", "c", "d"]


def test_sort_model_accepts_grid_wire_shape() -> None:
    result = run_grid_query(_rows(), {"sortModel": [{"colId": "id", "sort": "desc"}], "startRow": 0, "endRow": 3})
    assert [r["id"] for r in result.rows] == ["9", "8", "7"]


def test_missing_values_sort_first_ascending() -> None:
    rows = [{"id": "1", "n": 5}, {"id": "2"}, {"id": "3", "n": 1}]
    assert [r["id"] for r in sort_rows(rows, [SortModelItem(field="n")])] == ["2", "3", "1"]


def test_invalid_request_is_bad_input() -> None:
    with pytest.raises(BadInputError):
        GridRequest.parse({"startRow": "first"})
    with pytest.raises(BadInputError):
        run_grid_query(_rows(), {"filterModel": {"name": {"filterType": "fuzzy"}}})


def test_search_accepts_two_characters_and_rejects_one() -> None:
    rows = [{"name": "Sicilian"}, {"name": "Najdorf"}, {"name": None}]
    assert [r["name"] for r in search_rows(rows, "ab")] == []
    assert [r["name"] for r in search_rows(rows, "IL")] == ["Sicilian"]
    with pytest.raises(BadInputError):
        search_rows(rows, "a")
    with pytest.raises(BadInputError):
        search_rows(rows, None)
