import pytest

from shiftly_access.utils.pagination import (
    MAX_PAGE_SIZE,
    PaginationParams,
    build_paginated_response,
    calculate_offset,
    parse_pagination_params,
)


def test_parse_defaults():
    params = parse_pagination_params({})
    assert params == PaginationParams(page=1, page_size=10, sort_order="asc")


@pytest.mark.parametrize(
    "raw,page,page_size",
    [
        ({"page": "0", "page_size": "0"}, 1, 1),
        ({"page": "-3", "page_size": "1000"}, 1, MAX_PAGE_SIZE),
        ({"page": "abc", "page_size": None}, 1, 10),
        ({"page": "4", "page_size": "25"}, 4, 25),
    ],
)
def test_parse_clamps_page_and_size(raw, page, page_size):
    params = parse_pagination_params(raw)
    assert (params.page, params.page_size) == (page, page_size)


def test_parse_search_sort_and_filters():
    params = parse_pagination_params(
        {"search": "  ada ", "sort_by": "name", "sort_order": "desc", "role_id": "r1", "team_id": ""}
    )
    assert params.search == "ada"
    assert params.sort_by == "name"
    assert params.sort_order == "desc"
    assert params.role_id == "r1"
    assert params.team_id is None
    assert parse_pagination_params({"sort_order": "sideways"}).sort_order == "asc"


def test_offset_and_total_pages():
    assert calculate_offset(1, 10) == 0
    assert calculate_offset(3, 20) == 40
    resp = build_paginated_response(["a", "b"], 21, PaginationParams(page=3, page_size=10))
    assert resp.total_pages == 3
    assert resp.data == ["a", "b"]
    assert build_paginated_response([], 0, PaginationParams()).total_pages == 0
