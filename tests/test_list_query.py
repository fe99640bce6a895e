import pytest

from partner_directory.core.list_query import ListQuery


def test_defaults() -> None:
    query = ListQuery.default()

    assert query.page == 1
    assert query.page_size == 50
    assert query.offset == 0
    assert query.limit == 50
    assert query.search is None
    assert query.filters == {}
    assert query.sort_by is None
    assert query.sort_order is None


@pytest.mark.parametrize("page", [None, "0", "-3", "abc", 0])
def test_invalid_page_falls_back_to_first(page) -> None:
    assert ListQuery.parse({"page": page}).page == 1


@pytest.mark.parametrize("page_size", [None, "0", "101", "nope", -5])
def test_invalid_page_size_falls_back_to_default(page_size) -> None:
    assert ListQuery.parse({"page_size": page_size}).page_size == 50


def test_parse_keeps_valid_values() -> None:
    query = ListQuery.parse(
        {
            "page": "3",
            "page_size": "100",
            "search": "  gateway ",
            "sort_by": "name",
            "sort_order": "asc",
            "filters": {"type": "internal", "status": ["active", "pending"], "empty": ""},
        }
    )

    assert query.page == 3
    assert query.page_size == 100
    assert query.offset == 200
    assert query.search == "gateway"
    assert query.sort_by == "name"
    assert query.sort_order == "asc"
    assert query.filter_value("type") == "internal"
    assert query.filter_value("status") == "active"
    assert query.filter_value("empty") is None
    assert query.filter_value("missing") is None


def test_unknown_sort_order_is_dropped() -> None:
    assert ListQuery.parse({"sort_order": "sideways"}).sort_order is None


def test_pagination_metadata() -> None:
    query = ListQuery.parse({"page": "2", "page_size": "10"})

    pagination = query.pagination(25)

    assert pagination.total == 25
    assert pagination.total_pages == 3
    assert pagination.has_next is True
    assert pagination.has_previous is True

    last = ListQuery.parse({"page": "3", "page_size": "10"}).pagination(25)
    assert last.has_next is False

    empty = ListQuery.default().pagination(0)
    assert empty.total_pages == 0
    assert empty.has_next is False
    assert empty.has_previous is False
